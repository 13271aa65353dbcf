"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy.exc import SQLAlchemyError

from portal_analytics.api.v1 import analytics, health, marketing_spend
from portal_analytics.config import settings
from portal_analytics.database import engine
from portal_analytics.middleware.logging import LoggingMiddleware, get_request_id, setup_logging
from portal_analytics.middleware.metrics import MetricsMiddleware
from portal_analytics.schemas.error import (
    REMEDIATION_HINTS,
    VALIDATION_CODE_MAPPING,
    ErrorCode,
    ErrorDetail,
    ErrorResponse,
)

# Setup structured logging
setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("application_starting", env=settings.app_env)
    yield
    logger.info("application_shutting_down")
    await engine.dispose()


app = FastAPI(
    title="Portal Revenue Analytics",
    description="Subscription revenue analytics for the pest-control customer portal",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

# Mount Prometheus metrics endpoint
app.mount("/metrics", make_asgi_app())


def _error_response(status_code: int, body: ErrorResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic validation errors with structured response.

    Returns 422 with field-level validation errors.
    """
    request_id = get_request_id(request)

    details = [
        ErrorDetail(
            code=VALIDATION_CODE_MAPPING.get(error["type"], ErrorCode.VALIDATION_ERROR),
            message=error["msg"],
            field=".".join(str(loc) for loc in error["loc"]),
            value=error.get("input"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_count=len(details),
    )

    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorResponse(
            error="ValidationError",
            message="Request validation failed",
            details=details,
            remediation="Check the API documentation for correct request format at /docs",
            request_id=request_id,
            documentation_url=f"{request.base_url}docs",
        ),
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Handle record store failures.

    Returns 503 Service Unavailable; no partial report is ever returned.
    """
    request_id = get_request_id(request)

    logger.error(
        "database_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )

    # Don't expose internal database details in production
    error_message = "Database temporarily unavailable" if settings.app_env == "production" else str(exc)

    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorResponse(
            error="DatabaseError",
            message="A database error occurred",
            details=[ErrorDetail(code=ErrorCode.DATABASE_ERROR, message=error_message)],
            remediation=REMEDIATION_HINTS[ErrorCode.DATABASE_ERROR],
            request_id=request_id,
        ),
        headers={"Retry-After": "30"},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all other uncaught exceptions.

    Logs the stack trace and returns a safe error message.
    """
    request_id = get_request_id(request)

    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        exception_type=type(exc).__name__,
    )

    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(
            error="InternalServerError",
            message="An unexpected error occurred",
            details=[
                ErrorDetail(
                    code=ErrorCode.INTERNAL_ERROR,
                    message=str(exc) if settings.debug else "Internal server error",
                )
            ],
            remediation="Please contact support with the request ID",
            request_id=request_id,
            documentation_url=f"{request.base_url}docs",
        ),
    )


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "service": "Portal Revenue Analytics",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
        "generated_at": datetime.utcnow().isoformat(),
    }


app.include_router(health.router, tags=["Health"])
app.include_router(analytics.router, prefix="/v1", tags=["Analytics"])
app.include_router(marketing_spend.router, prefix="/v1")
