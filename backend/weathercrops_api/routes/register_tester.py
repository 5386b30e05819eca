"""
WeatherCrops API - Registration Tester
=======================================

What:  GET /test_register serves a small HTML form; POST /test_register runs
       the normal registration operation on JSON *or* form data.
Who:   Developers testing sign-up from a browser or Postman without the app.

The POST path shares every rule with POST /register (same service call),
and additionally echoes created_at so the tester can see the server stamp.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from weathercrops_api.config import settings
from weathercrops_api.database import get_db_session
from weathercrops_api.exceptions import ValidationError
from weathercrops_api.schemas.common import ErrorResponse, format_timestamp
from weathercrops_api.schemas.user import RegisterEchoResponse, RegisterRequest
from weathercrops_api.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Diagnostics"])


def _template_environment() -> Jinja2Templates:
    base_dir = Path(__file__).resolve().parent.parent
    return Jinja2Templates(directory=str(base_dir / "templates"))


templates = _template_environment()


@router.get(
    "/test_register",
    response_class=HTMLResponse,
    summary="Registration test form",
)
async def registration_form(request: Request) -> HTMLResponse:
    # Values are autoescaped by Jinja2Templates
    return templates.TemplateResponse(
        request,
        "test_register.html",
        {
            "action": request.url.path,
            "url": str(request.url),
            "min_length": settings.password_min_length,
        },
    )


async def _read_payload(request: Request) -> RegisterRequest:
    """
    Parse the request body as JSON or form data into a RegisterRequest.

    Raises:
        ValidationError: Body is not valid JSON, not an object, or has
        non-string field values.
    """
    content_type = request.headers.get("content-type", "")
    data: Any
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            raise ValidationError(message="Request body is not valid JSON")
    else:
        form = await request.form()
        data = {key: value for key, value in form.items()}

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError(message="Request body must be a JSON object")

    try:
        return RegisterRequest.model_validate(data)
    except SchemaValidationError as e:
        raise ValidationError(
            message="Invalid request body",
            context={"errors": _field_errors(e)},
        )


def _field_errors(exc: SchemaValidationError) -> Dict[str, str]:
    return {
        ".".join(str(part) for part in err["loc"]): err["msg"]
        for err in exc.errors(include_url=False)
    }


@router.post(
    "/test_register",
    status_code=201,
    response_model=RegisterEchoResponse,
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Register a user from JSON or form data",
)
async def register_from_tester(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterEchoResponse:
    payload = await _read_payload(request)
    user = await user_service.register(db=db, payload=payload)
    return RegisterEchoResponse(
        user_id=user.id,
        email=user.email,
        created_at=format_timestamp(user.created_at),
    )
