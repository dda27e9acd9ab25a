"""Context Memory Store - Main FastAPI Application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.routes import api_router
from core.errors import (
    AlreadyDeletedError,
    ContextStoreError,
    MigrationError,
    NotFoundError,
    PreconditionFailedError,
    ValidationError,
)
from infrastructure.config import get_settings
from infrastructure.database import Database
from infrastructure.database.migrations import MigrationRunner
from infrastructure.logging_config import setup_logging
from services import build_services

settings = get_settings()
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    AlreadyDeletedError: 409,
    PreconditionFailedError: 412,
    MigrationError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    setup_logging(
        json_output=settings.log_json or settings.is_production,
        level="DEBUG" if settings.debug else settings.log_level,
    )

    # Startup
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)
    logger.info("Environment: %s", settings.environment)

    db = Database.from_settings(settings)
    runner = MigrationRunner(db)
    try:
        applied = await runner.run_pending_migrations()
    except ContextStoreError:
        # Never serve a store at an unknown schema version
        logger.critical("Startup migration failed; refusing to serve")
        await db.close()
        raise

    if applied:
        logger.info("Applied %d migration(s)", len(applied))

    app.state.migration_runner = runner
    app.state.services = build_services(db, settings)
    logger.info("Application started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await db.close()
    logger.info("Application stopped.")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Per-project context memory store: migrations and data lifecycle",
    version=settings.app_version,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)


@app.exception_handler(ContextStoreError)
async def context_store_error_handler(request: Request, exc: ContextStoreError):
    status_code = next(
        (code for cls, code in ERROR_STATUS_CODES.items() if isinstance(exc, cls)), 500
    )
    if exc.recoverable:
        logger.info("%s %s refused: %s", request.method, request.url.path, exc.message)
    else:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg', 'invalid input')}" if field else "Invalid request"
    error = ValidationError(message)
    return JSONResponse(status_code=400, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    if settings.environment == "production":
        logger.error("Unhandled exception: %s: %s", type(exc).__name__, str(exc)[:200])
    else:
        logger.error("Unhandled exception: %s", str(exc), exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": ContextStoreError.code},
    )


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Response-Time"] = f"{duration_ms:.1f}ms"

    # Skip logging for health check endpoints to avoid log noise
    path = request.url.path
    if not path.startswith("/api/v1/health"):
        logger.info(
            "%s %s %s %.1fms",
            request.method,
            path,
            response.status_code,
            round(duration_ms, 1),
        )
    return response


# Include API routes
app.include_router(api_router, prefix="/api/v1")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs" if settings.is_development else "disabled",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
