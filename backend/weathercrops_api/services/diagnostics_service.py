"""
WeatherCrops API - Diagnostics Service
=======================================

What:  Builds the payloads for the two diagnostic endpoints.
How:   `database_report()` opens a connection on the given engine and probes
       the users table; `connection_report()` echoes request metadata only.
Who:   Called by routes/diagnostics.py.

Check details:
    Connection: engine.connect() must succeed
    Table:      SQLAlchemy inspector has_table("users")
    Count:      SELECT count(*) FROM users (only when the table exists)

A failed probe never raises; it is reported in the payload with
database_status="failed" so the endpoint always answers 200.
"""

import asyncio
import logging

from sqlalchemy import func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from weathercrops_api.models.user import User
from weathercrops_api.schemas.common import format_timestamp
from weathercrops_api.schemas.diagnostics import (
    ConnectionTestResponse,
    DiagnosticsResponse,
)

logger = logging.getLogger(__name__)

MISSING_TABLE_MESSAGE = (
    "Database connected but users table does not exist. "
    "Please run the database migrations."
)


class DiagnosticsService:
    """Stateless builder for health and liveness payloads."""

    async def database_report(self, bind: AsyncEngine) -> DiagnosticsResponse:
        """
        Probe the database behind `bind` and summarize the result.

        Returns:
            DiagnosticsResponse with database_status "connected" or "failed".
        """
        report = DiagnosticsResponse(timestamp=format_timestamp())

        try:
            async with bind.connect() as conn:
                report.database_status = "connected"
                report.database_name = bind.url.database

                table_exists = await conn.run_sync(
                    lambda sync_conn: inspect(sync_conn).has_table(User.__tablename__)
                )
                report.table_exists = table_exists

                if table_exists:
                    result = await conn.execute(select(func.count()).select_from(User))
                    report.user_count = result.scalar_one()
                else:
                    report.message = MISSING_TABLE_MESSAGE

        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            # Driver text is more useful to an operator than SQLAlchemy's wrapper
            error = getattr(e, "orig", None) or e
            logger.warning("Diagnostics: database unreachable: %s", error)
            report.database_status = "failed"
            report.database_error = str(error)
            report.message = "Database connection failed"

        return report

    def connection_report(self, host: str | None, method: str) -> ConnectionTestResponse:
        """Liveness payload; does not touch the database."""
        return ConnectionTestResponse(
            timestamp=format_timestamp(),
            server=host or "unknown",
            method=method or "unknown",
        )


diagnostics_service = DiagnosticsService()
