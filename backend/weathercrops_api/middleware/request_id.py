"""
WeatherCrops API - Request ID Middleware
=========================================

What:  Assigns a correlation ID to each incoming request and adds it to the response.
How:   Reuses the client's X-Request-ID header or generates a short UUID,
       stores it in a ContextVar and returns it in the X-Request-ID header.
Who:   Applied to every request via Starlette middleware.
When:  Outermost application middleware (runs before logging and routing).

The same ID appears in the access log line and in the `request_id` field of
every JSON error body, so a user-reported error can be found in the logs.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local storage for the current request ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a unique ID to each request for tracing.

    Behavior:
        1. If the client sent X-Request-ID: use it
        2. Otherwise: generate the first 8 characters of a UUID4
        3. Store in ContextVar (loggers, exception handlers) and request.state
        4. Echo it in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
