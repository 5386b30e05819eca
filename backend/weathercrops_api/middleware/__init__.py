# Middleware package init
"""
WeatherCrops API - Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line and every error body
    carry the same correlation ID.
"""
