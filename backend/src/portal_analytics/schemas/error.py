"""Structured error response schemas."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(default=None, description="Field that caused the error (for validation errors)")
    value: Any | None = Field(default=None, description="Invalid value (for validation errors)")


class ErrorResponse(BaseModel):
    """Standard error response body returned by every exception handler."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "DatabaseError",
                "message": "A database error occurred",
                "details": [{"code": "database_error", "message": "Database temporarily unavailable"}],
                "remediation": "The record store is temporarily unavailable. Please try again in a few moments.",
                "request_id": "req_1234567890ab",
                "timestamp": "2025-03-15T10:30:00Z",
            }
        }
    )

    error: str = Field(..., description="Error type (e.g. 'ValidationError', 'DatabaseError')")
    message: str = Field(..., description="Primary error message")
    details: list[ErrorDetail] | None = Field(default=None, description="Detailed error information")
    remediation: str | None = Field(default=None, description="Suggestion for fixing the error")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")
    documentation_url: str | None = Field(default=None, description="Link to the API documentation")


class ErrorCode:
    """Standard error codes used across the API."""

    # Validation errors (400/422)
    INVALID_DATE = "invalid_date"
    INVALID_MONTH = "invalid_month"
    INVALID_WINDOW = "invalid_window"
    VALIDATION_ERROR = "validation_error"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    VALUE_TOO_SMALL = "value_too_small"
    VALUE_TOO_LARGE = "value_too_large"

    # Not found errors (404)
    SPEND_MONTH_NOT_FOUND = "spend_month_not_found"

    # External service errors (503)
    DATABASE_ERROR = "database_error"

    # Internal errors (500)
    INTERNAL_ERROR = "internal_error"


# Pydantic v2 error types mapped to our codes
VALIDATION_CODE_MAPPING = {
    "missing": ErrorCode.MISSING_REQUIRED_FIELD,
    "date_from_datetime_parsing": ErrorCode.INVALID_DATE,
    "date_parsing": ErrorCode.INVALID_DATE,
    "greater_than_equal": ErrorCode.VALUE_TOO_SMALL,
    "less_than_equal": ErrorCode.VALUE_TOO_LARGE,
}

# Remediation hints for common errors
REMEDIATION_HINTS = {
    ErrorCode.INVALID_DATE: "Provide dates in ISO format: YYYY-MM-DD",
    ErrorCode.INVALID_MONTH: "Provide months in the format YYYY-MM",
    ErrorCode.INVALID_WINDOW: "The window start must not be after the window end",
    ErrorCode.SPEND_MONTH_NOT_FOUND: "List the recorded months with GET /v1/marketing-spend?year=YYYY",
    ErrorCode.DATABASE_ERROR: "The record store is temporarily unavailable. Please try again in a few moments.",
}
