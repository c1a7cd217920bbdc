"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from assetbook import __version__
from assetbook.api.routers import deposits_router, portfolio_router
from assetbook.app_context import get_app_context
from assetbook.config.logging_config import setup_logging
from assetbook.config.settings import get_settings
from assetbook.core.exceptions import (
    AppError,
    ConcurrencyConflict,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

_ERROR_STATUS: dict[type, int] = {
    ValidationError: 400,
    NotFoundError: 404,
    ConcurrencyConflict: 409,
    PersistenceError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    setup_logging()
    context = get_app_context()
    context.startup()
    yield
    context.close()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Portfolio consolidation, valuation and daily deposit accrual",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(portfolio_router)
app.include_router(deposits_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    status_code = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        400,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy", "accrual_timer": get_app_context().timer_running}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
