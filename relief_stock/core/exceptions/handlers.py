"""Render every error as the ErrorResponse envelope."""

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from relief_stock.core.config import settings
from relief_stock.core.exceptions import AppException
from relief_stock.shared.schemas import ErrorResponse, ErrorDetail

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, errors: list[ErrorDetail]) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Domain errors raised by services."""
    if exc.status_code == 409:
        logger.warning("%s %s refused: %s", request.method, request.url.path, exc.message)
    return _error_response(
        exc.status_code,
        exc.message,
        [ErrorDetail(field=exc.details.get("field"), message=exc.message)],
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body/query validation errors, one entry per offending field."""
    errors = []
    for error in exc.errors():
        # "body.counts.0.new_quantity" reads better as "counts.0.new_quantity"
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append(
            ErrorDetail(field=".".join(loc) or None, message=error.get("msg", "Invalid value"))
        )
    return _error_response(422, "Validation error", errors)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = str(exc.detail) if exc.detail else "HTTP error"
    return _error_response(exc.status_code, message, [ErrorDetail(message=message)])


# Named constraints (PostgreSQL reports the name, SQLite the columns) and how to
# present them: (markers, message, field, status)
_CONSTRAINT_MESSAGES: list[tuple[tuple[str, ...], str, str | None, int]] = [
    (
        ("uq_item_stocks_category_name", "item_stocks.category, item_stocks.name"),
        "An item with this category and name already exists",
        "name",
        409,
    ),
    (
        ("uq_inventory_change_reasons_reason_type", "inventory_change_reasons.reason"),
        "This reason already exists for the change type",
        "reason",
        409,
    ),
    (
        ("serial_number_counters.serial_type", "serial_number_counters_serial_type"),
        "Serial number counter already exists",
        "serial_type",
        409,
    ),
    (
        ("ck_item_stocks_total_stock_non_negative",),
        "Stock quantity cannot be negative",
        "total_stock",
        400,
    ),
    (
        ("ck_inventory_logs_change_amount_non_negative",),
        "Change amount cannot be negative",
        "change_amount",
        400,
    ),
    (
        ("ck_donation_items_quantity_positive", "ck_disbursement_items_quantity_positive"),
        "Item quantity must be positive",
        "quantity",
        400,
    ),
]


def _friendly_db_error(exc: Exception) -> tuple[str, str | None, int]:
    """
    Map an integrity error to (message, field, status_code).

    Raw driver text is returned only with DEBUG on.
    """
    raw = str(getattr(exc, "orig", exc))
    lower = raw.lower()

    for markers, message, field, status_code in _CONSTRAINT_MESSAGES:
        if any(marker in lower for marker in markers):
            return (message, field, status_code)

    if "foreign key" in lower:
        return ("Referenced item or record does not exist or is still in use", None, 409)

    if "unique" in lower or "duplicate key" in lower:
        return ("Record already exists", None, 409)

    if "does not exist" in lower and "column" in lower:
        return ("Database schema is out of date, run alembic upgrade head", None, 500)

    if settings.debug:
        return (raw, None, 500)

    return ("Database error", None, 500)


async def sqlalchemy_db_error_handler(request: Request, exc: Exception) -> JSONResponse:
    message, field, status_code = _friendly_db_error(exc)
    if status_code >= 500:
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(status_code, message, [ErrorDetail(field=field, message=message)])
