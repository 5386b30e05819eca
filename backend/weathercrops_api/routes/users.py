"""
WeatherCrops API - User Listing Route Handler
==============================================

What:  Handles GET /users, a read-only dump of registered users.
Who:   Used while developing the app to confirm that registrations landed.

The response model has no password field, so the hash can never leak
through this endpoint even if the query changed.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from weathercrops_api.database import get_db_session
from weathercrops_api.schemas.common import ErrorResponse
from weathercrops_api.schemas.user import UserListResponse
from weathercrops_api.services.user_service import user_service

router = APIRouter(tags=["Users"])


@router.get(
    "/users",
    response_model=UserListResponse,
    responses={
        200: {"description": "All users, newest first", "model": UserListResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="List registered users",
)
async def list_users(db: AsyncSession = Depends(get_db_session)) -> UserListResponse:
    """Return every user (id, email, firebase_uid, created_at) with a count."""
    return await user_service.list_users(db=db)
