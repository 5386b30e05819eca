"""
WeatherCrops API - Request Logging Middleware
==============================================

What:  One access-log line per HTTP request.
How:   Measures the time spent downstream and logs method, path, status,
       duration, request ID and client IP.
Who:   Applied to every request via Starlette middleware.
When:  After RequestIDMiddleware (uses request ID for correlation).

Example line:
    2024-01-15T12:00:00 [INFO] weathercrops.access: POST /register 201 212.4ms [a1b2c3d4] from 10.0.0.7

What we log vs what we don't:
    Logged:     method, path, status, duration, IP, request ID
    Not logged: request bodies (passwords), headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from weathercrops_api.middleware.request_id import request_id_var

logger = logging.getLogger("weathercrops.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    Log level follows the status class:
        5xx → ERROR, 4xx → WARNING, everything else → INFO

    Liveness probes (/test_connection) are not logged; they are polled
    often and carry no information beyond "the process answered".
    """

    SKIPPED_PATHS = {"/test_connection"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
