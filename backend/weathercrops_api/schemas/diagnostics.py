"""
WeatherCrops API - Diagnostic Response Schemas
===============================================

What:  Response models for GET /test and /test_connection.
Who:   Used by the mobile app's connection screen and by operators
       checking a deployment from a browser.
"""

from typing import Optional

from pydantic import BaseModel, Field


class DiagnosticsResponse(BaseModel):
    """
    What:  API + database health summary returned by GET /test.

    Optional fields only appear when they apply (the route excludes None):
        - database_name / table_exists: once the database answered
        - user_count: only when the users table exists
        - database_error: only when the connection failed
    """
    success: bool = Field(default=True)
    message: str = Field(default="API is working!")
    timestamp: str = Field(description="Server time (UTC, YYYY-MM-DD HH:MM:SS)")
    database_status: str = Field(
        default="unknown",
        description="Database connectivity: unknown, connected, failed",
    )
    database_name: Optional[str] = Field(default=None)
    table_exists: Optional[bool] = Field(default=None)
    user_count: Optional[int] = Field(default=None)
    database_error: Optional[str] = Field(default=None)


class ConnectionTestResponse(BaseModel):
    """Liveness echo returned by /test_connection; never touches the database."""
    success: bool = Field(default=True)
    message: str = Field(default="Connection successful!")
    timestamp: str
    server: str = Field(description="Host name the request was addressed to")
    method: str = Field(description="HTTP method of the request")
