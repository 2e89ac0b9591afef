"""Relief stock FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from relief_stock.core.config import settings
from relief_stock.core.database.session import engine
from relief_stock.core.exceptions import AppException
from relief_stock.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    sqlalchemy_db_error_handler,
    validation_exception_handler,
)
from relief_stock.core.logging_config import configure_logging
from relief_stock.modules.inventory.router import router as inventory_router
from relief_stock.modules.records.router import router as records_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Relief Stock",
        description="Inventory ledger and serial numbers for supply distribution",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, sqlalchemy_db_error_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(inventory_router, prefix="/api/v1")
    app.include_router(records_router, prefix="/api/v1")

    return app


app = create_app()
