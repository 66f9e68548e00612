"""Retry and timeout helpers for async calls against the API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tracer.errors import ApiError, RequestTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    delay: float = 1.0,
) -> T:
    """Run ``operation`` up to ``max_retries`` times with linear back-off.

    Client errors (ApiError with a 4xx status) are raised immediately; any
    other failure is retried after ``delay * attempt`` seconds. The last
    error is re-raised once attempts run out.
    """
    for attempt in range(1, max_retries + 1):
        try:
            return await operation()
        except ApiError as e:
            if 400 <= e.status_code < 500 or attempt == max_retries:
                raise
            logger.warning("Attempt %d/%d failed (%s %s), retrying", attempt, max_retries, e.status_code, e.code)
        except Exception as e:
            if attempt == max_retries:
                raise
            logger.warning("Attempt %d/%d failed: %s, retrying", attempt, max_retries, e)
        await asyncio.sleep(delay * attempt)
    raise ValueError("max_retries must be at least 1")


async def with_timeout(awaitable: Awaitable[T], timeout_seconds: float = 10.0) -> T:
    """Await with a deadline; raises RequestTimeoutError (408, TIMEOUT) when it passes."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        raise RequestTimeoutError() from e
