"""API key authentication middleware.

Single-key Bearer token authentication. The key is read from TRACER_API_KEY.
When no key is configured, authentication is disabled (development mode).

Exempt paths: /health, /docs, /openapi.json, /redoc, /
"""

from __future__ import annotations

import logging
import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from tracer.api.handlers import error_response
from tracer.config import settings
from tracer.errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

# Paths that don't require authentication
_EXEMPT_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc", "/"})


class APIKeyAuthMiddleware(BaseHTTPMiddleware):
    """Validates the Bearer token on every non-exempt request.

    If TRACER_API_KEY is empty, all requests are allowed (dev mode).
    """

    async def dispatch(self, request: Request, call_next):
        api_key = settings.tracer_api_key

        # Dev mode: no key configured, skip auth
        if not api_key:
            return await call_next(request)

        if request.url.path in _EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        token = self._extract_token(request)
        if token is None:
            err = UnauthorizedError("Missing authentication. Use Authorization: Bearer <key>")
            return error_response(err.status_code, err.message, err.code, request.url.path)

        if not secrets.compare_digest(token, api_key):
            logger.warning(
                "Invalid API key attempt from %s on %s",
                request.client.host if request.client else "unknown",
                request.url.path,
            )
            err = ForbiddenError("Invalid API key")
            return error_response(err.status_code, err.message, err.code, request.url.path)

        return await call_next(request)

    @staticmethod
    def _extract_token(request: Request) -> str | None:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            return auth_header[7:]
        return None
