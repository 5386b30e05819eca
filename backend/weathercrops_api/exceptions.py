"""
WeatherCrops API - Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{"success": false, "message": ...}` JSON bodies with the
       matching HTTP status code.
Who:   Raised by services; caught by global handlers.
When:  During request processing when recoverable errors occur.

Exception Hierarchy:
    WeatherCropsError (base)
    ├── ValidationError   → 400 Bad Request (client can fix)
    ├── ConflictError     → 409 Conflict (resource already exists)
    └── DatabaseError     → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class WeatherCropsError(Exception):
    """
    Base exception for all WeatherCrops application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, not returned for server errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(WeatherCropsError):
    """
    Raised when client input fails validation.

    When:    Missing email/password, malformed email, short password,
             or a request body that is not a JSON object of strings.
    HTTP:    400 Bad Request

    Example response:
        {
            "success": false,
            "error": "validation_error",
            "message": "Invalid email format",
            "details": {"field": "email"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(WeatherCropsError):
    """
    Raised when a write would duplicate a unique value.

    When:    Registering an email that already belongs to a user, either
             caught by the pre-insert lookup or by the unique index.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(WeatherCropsError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, insert rejected, table missing, etc.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        Driver error text goes into `context` and is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
