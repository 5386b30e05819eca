"""
WeatherCrops API - Registration Route Handler
==============================================

What:  Handles POST /register for creating a user account.
Who:   Called by the mobile/web app's sign-up screen, usually right after
       the client created the matching Firebase account.

Request Flow:
    1. FastAPI parses the JSON body into RegisterRequest (all fields optional)
    2. UserService applies the field rules, duplicate check and insert
    3. Return 201 Created with the new id and the stored email

Error responses (handled by global exception handlers):
    HTTP 400: Missing fields, invalid email, short password, malformed body
    HTTP 405: Any method other than POST
    HTTP 409: Email already registered
    HTTP 500: Storage failure
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from weathercrops_api.database import get_db_session
from weathercrops_api.schemas.common import ErrorResponse
from weathercrops_api.schemas.user import RegisterRequest, RegisterResponse
from weathercrops_api.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


@router.post(
    "/register",
    status_code=201,
    response_model=RegisterResponse,
    responses={
        201: {"description": "User registered", "model": RegisterResponse},
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Register a new user",
    description=(
        "Creates a user from an email, a password (at least 8 characters) and an "
        "optional Firebase UID. The password is stored as a bcrypt hash."
    ),
)
async def register(
    payload: Optional[RegisterRequest] = None,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    # An absent or null body is reported as missing fields, not as a parse error
    user = await user_service.register(db=db, payload=payload or RegisterRequest())
    return RegisterResponse(user_id=user.id, email=user.email)
