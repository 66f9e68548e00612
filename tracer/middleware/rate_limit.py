"""Rate limiting middleware using in-memory token buckets.

Limits are per client IP and configurable via Settings:
- Global: rate_limit_rpm requests/minute
- Writes (POST, PUT, DELETE): additionally rate_limit_write_rpm requests/minute
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from tracer.api.handlers import error_response

logger = logging.getLogger(__name__)

_WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# Exempt from rate limiting
_EXEMPT_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc", "/"})


class TokenBucket:
    """Simple token bucket rate limiter."""

    def __init__(self, rate: float, capacity: int) -> None:
        self.rate = rate  # tokens per second
        self.capacity = capacity
        self.tokens = float(capacity)
        self.last_refill = time.monotonic()

    def consume(self) -> bool:
        """Try to consume a token. Returns True if allowed."""
        now = time.monotonic()
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.last_refill = now

        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True
        return False


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory rate limiter per client IP.

    Args:
        global_rpm: Requests per minute per client, all methods.
        write_rpm: Requests per minute per client for mutating methods.
    """

    def __init__(self, app, global_rpm: int = 120, write_rpm: int = 60) -> None:
        super().__init__(app)
        self.global_rpm = global_rpm
        self.write_rpm = write_rpm
        self._global_buckets: dict[str, TokenBucket] = defaultdict(
            lambda: TokenBucket(rate=global_rpm / 60.0, capacity=global_rpm)
        )
        self._write_buckets: dict[str, TokenBucket] = defaultdict(
            lambda: TokenBucket(rate=write_rpm / 60.0, capacity=write_rpm)
        )

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in _EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        if not self._global_buckets[client_ip].consume():
            logger.warning("Rate limit exceeded for %s on %s", client_ip, path)
            return self._limited(path, "Rate limit exceeded. Please retry later.")

        if request.method in _WRITE_METHODS and not self._write_buckets[client_ip].consume():
            logger.warning("Write rate limit exceeded for %s on %s %s", client_ip, request.method, path)
            return self._limited(path, "Write rate limit exceeded. Please retry later.")

        return await call_next(request)

    @staticmethod
    def _limited(path: str, message: str):
        return error_response(429, message, "RATE_LIMITED", path, headers={"Retry-After": "60"})
