"""
WeatherCrops API - User Request/Response Schemas
=================================================

What:  Pydantic models defining the registration and listing contracts.
How:   FastAPI validates request bodies against these models and serializes
       responses through them (which is also what keeps `password` out of
       every response: no response model declares it).

Request fields are deliberately loose (optional strings): the presence,
format and length rules live in UserService so that every violation maps to
a 400 with the registration-specific message instead of FastAPI's generic 422.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer

from weathercrops_api.schemas.common import format_timestamp


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    """Body of POST /register (and POST /test_register)."""
    email: Optional[str] = Field(default=None, description="Email address (required)")
    password: Optional[str] = Field(
        default=None,
        description="Plaintext password, at least 8 characters (required)",
    )
    firebase_uid: Optional[str] = Field(
        default=None,
        description="Optional Firebase identity reference",
    )

    model_config = {
        "extra": "ignore",
        "json_schema_extra": {
            "examples": [{"email": "test@example.com", "password": "Test1234!"}],
        },
    }


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterResponse(BaseModel):
    """
    What:  Returned by POST /register with HTTP 201 Created.
    Why:   Echoes the email back so the client can confirm what was stored.
    """
    success: bool = Field(default=True)
    message: str = Field(default="User registered successfully")
    user_id: int = Field(description="Server-generated user identifier")
    email: str = Field(description="Registered (trimmed) email address")


class RegisterEchoResponse(RegisterResponse):
    """Registration tester response; additionally echoes the stored timestamp."""
    created_at: str = Field(description="Registration timestamp (UTC, YYYY-MM-DD HH:MM:SS)")


class UserListItem(BaseModel):
    """
    What:  Public view of one user row.
    Who:   Returned inside GET /users.
    """
    id: int
    email: str
    firebase_uid: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return format_timestamp(value)


class UserListResponse(BaseModel):
    """Returned by GET /users, newest registrations first."""
    success: bool = Field(default=True)
    count: int = Field(description="Number of users returned")
    users: List[UserListItem] = Field(description="All registered users")
