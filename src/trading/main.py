"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from trading.config.settings import get_settings
from trading.config.logging_config import setup_logging
from trading.repositories.sqlalchemy.database import init_db
from trading.api.routers import (
    stocks_router,
    portfolios_router,
    transactions_router,
    reports_router,
)
from trading.core.exceptions import AppError

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    "VALIDATION_ERROR": 400,
    "NOT_FOUND": 404,
    "STOCK_NOT_FOUND": 404,
    "INVALID_TRANSITION": 409,
    "VENDOR_BAD_RESPONSE": 502,
    "VENDOR_UNAVAILABLE": 503,
    "STORAGE_ERROR": 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    init_db()
    yield
    # Shutdown (nothing to clean up)


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Stock trading backend: vendor prices, purchases, portfolios and reports",
    version=settings.app_version,
    lifespan=lifespan,
)

# Include routers
app.include_router(stocks_router)
app.include_router(portfolios_router)
app.include_router(transactions_router)
app.include_router(reports_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    status_code = ERROR_STATUS_CODES.get(exc.code, 400)
    if status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
