"""Request timeout middleware.

Requests that take longer than the configured budget get a 408 envelope.
"""

from __future__ import annotations

import asyncio
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from tracer.api.handlers import error_response
from tracer.errors import RequestTimeoutError

logger = logging.getLogger(__name__)


class TimeoutMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, timeout_seconds: float = 10.0) -> None:
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Request %s %s exceeded %.1fs",
                request.method,
                request.url.path,
                self.timeout_seconds,
            )
            err = RequestTimeoutError()
            return error_response(err.status_code, err.message, err.code, request.url.path)
