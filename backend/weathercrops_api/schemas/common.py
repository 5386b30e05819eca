"""
WeatherCrops API - Shared Response Schemas
===========================================

What:  The error envelope and timestamp formatting shared by every endpoint.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

# All timestamps in payloads look like "2024-01-15 12:00:00" (UTC)
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value: Optional[datetime] = None) -> str:
    """Formats `value` (default: now) as a UTC payload timestamp."""
    if value is None:
        value = datetime.now(timezone.utc)
    elif value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        success: Always false
        error: Machine-readable error code (e.g., "validation_error", "conflict")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "success": false,
            "error": "conflict",
            "message": "Email already registered",
            "request_id": "a1b2c3d4"
        }
    """
    success: bool = Field(default=False, description="Always false for errors")
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
