from relief_stock.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    InsufficientStockError,
    InvalidStateError,
    ConflictError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "InsufficientStockError",
    "InvalidStateError",
    "ConflictError",
]
