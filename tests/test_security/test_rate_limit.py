"""Tests for rate limiting and request timeout middleware."""

import asyncio
import time

from fastapi import FastAPI
from fastapi.testclient import TestClient

from tracer.middleware.rate_limit import RateLimitMiddleware, TokenBucket
from tracer.middleware.timeout import TimeoutMiddleware


# === TokenBucket tests ===


def test_token_bucket_initial_capacity():
    """Bucket should start with full capacity."""
    bucket = TokenBucket(rate=1.0, capacity=10)
    for _ in range(10):
        assert bucket.consume() is True
    assert bucket.consume() is False


def test_token_bucket_refill():
    bucket = TokenBucket(rate=100.0, capacity=5)
    for _ in range(5):
        bucket.consume()
    assert bucket.consume() is False
    time.sleep(0.1)
    assert bucket.consume() is True


# === RateLimitMiddleware ===


def _limited_app(global_rpm, write_rpm):
    test_app = FastAPI()
    test_app.add_middleware(RateLimitMiddleware, global_rpm=global_rpm, write_rpm=write_rpm)

    @test_app.get("/items")
    async def list_items():
        return {"ok": True}

    @test_app.post("/items")
    async def create_item():
        return {"ok": True}

    @test_app.get("/health")
    async def health():
        return {"status": "healthy"}

    return test_app


def test_rate_limit_returns_429_envelope():
    client = TestClient(_limited_app(global_rpm=3, write_rpm=3))
    for _ in range(3):
        assert client.get("/items").status_code == 200
    resp = client.get("/items")
    assert resp.status_code == 429
    assert resp.headers["Retry-After"] == "60"
    body = resp.json()
    assert body["code"] == "RATE_LIMITED"
    assert body["success"] is False


def test_write_limit_is_separate():
    client = TestClient(_limited_app(global_rpm=10, write_rpm=1))
    assert client.post("/items").status_code == 200
    resp = client.post("/items")
    assert resp.status_code == 429
    assert "Write rate limit" in resp.json()["error"]
    assert client.get("/items").status_code == 200


def test_health_exempt_from_rate_limit():
    client = TestClient(_limited_app(global_rpm=1, write_rpm=1))
    for _ in range(10):
        assert client.get("/health").status_code == 200


# === TimeoutMiddleware ===


def test_slow_request_returns_408():
    test_app = FastAPI()
    test_app.add_middleware(TimeoutMiddleware, timeout_seconds=0.05)

    @test_app.get("/slow")
    async def slow():
        await asyncio.sleep(1)
        return {"ok": True}

    @test_app.get("/fast")
    async def fast():
        return {"ok": True}

    client = TestClient(test_app)
    resp = client.get("/slow")
    assert resp.status_code == 408
    assert resp.json()["code"] == "TIMEOUT"
    assert client.get("/fast").status_code == 200
