"""
WeatherCrops API - Diagnostic Route Handlers
=============================================

What:  GET /test (API + database health) and /test_connection (liveness).
Who:   Called by the mobile app's connection check, by operators from a
       browser, and by container health checks.

Status semantics:
    /test always answers 200; database problems are reported in the body
    (database_status: "connected" | "failed").
    /test_connection never touches the database, so it answers even when
    the database is down.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from weathercrops_api.database import get_engine
from weathercrops_api.schemas.diagnostics import (
    ConnectionTestResponse,
    DiagnosticsResponse,
)
from weathercrops_api.services.diagnostics_service import diagnostics_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Diagnostics"])


@router.get(
    "/test",
    response_model=DiagnosticsResponse,
    response_model_exclude_none=True,
    summary="API and database health check",
    description=(
        "Reports whether the API is up, whether the database is reachable, "
        "whether the users table exists and how many users it holds."
    ),
)
async def api_test(bind: AsyncEngine = Depends(get_engine)) -> DiagnosticsResponse:
    """
    Check the database behind the application engine.

    Returns:
        DiagnosticsResponse; optional fields that do not apply are omitted.
    """
    report = await diagnostics_service.database_report(bind)
    logger.debug("Diagnostics: database_status=%s", report.database_status)
    return report


@router.api_route(
    "/test_connection",
    methods=["GET", "POST"],
    response_model=ConnectionTestResponse,
    summary="Liveness check",
)
async def test_connection(request: Request) -> ConnectionTestResponse:
    """Echo the server name and request method; no dependencies are checked."""
    return diagnostics_service.connection_report(
        host=request.url.hostname,
        method=request.method,
    )
