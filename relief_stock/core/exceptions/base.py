from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class AuthenticationError(AppException):
    """Caller identity missing."""

    def __init__(self, message: str = "Actor identity required"):
        super().__init__(message=message, status_code=401)


class InsufficientStockError(AppException):
    """Operation would make the quantity on hand negative."""

    def __init__(self, item_id: int | str, requested: int, available: int):
        message = f"Insufficient stock for item {item_id}: requested {requested}, available {available}"
        super().__init__(
            message=message,
            status_code=400,
            details={"item_id": item_id, "requested": requested, "available": available},
        )


class InvalidStateError(AppException):
    """Stored data violates an invariant; the operation refuses to act on it."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=409)


class ConflictError(AppException):
    """Uniqueness violation."""

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} with {field}={value} already exists"
        super().__init__(message=message, status_code=409, details={"field": field, "value": value})
