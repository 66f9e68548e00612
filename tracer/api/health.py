"""Health check endpoint: database connectivity and runtime configuration."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from tracer import __version__
from tracer.config import settings

router = APIRouter()


class HealthStatus(BaseModel):
    status: str  # "healthy" | "degraded" | "unhealthy"
    version: str
    environment: str
    checks: dict[str, dict]
    timestamp: datetime


@router.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    checks: dict[str, dict] = {}
    healthy = True
    has_warning = False

    try:
        from tracer.db.database import engine
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
            detail = "connected"
            if settings.database_url.startswith("sqlite"):
                mode = conn.execute(text("PRAGMA journal_mode")).fetchone()
                detail = f"journal_mode={mode[0]}"
            checks["database"] = {"status": "ok", "detail": detail}
    except Exception as e:
        checks["database"] = {"status": "error", "detail": str(e)[:200]}
        healthy = False

    if settings.tracer_api_key:
        checks["auth"] = {"status": "ok", "detail": "API key required"}
    elif settings.is_production:
        checks["auth"] = {"status": "warning", "detail": "TRACER_API_KEY not set in production"}
        has_warning = True
    else:
        checks["auth"] = {"status": "disabled", "detail": "set TRACER_API_KEY to require a Bearer token"}

    if healthy:
        status = "degraded" if has_warning else "healthy"
    else:
        status = "unhealthy"

    return HealthStatus(
        status=status,
        version=__version__,
        environment=settings.environment,
        checks=checks,
        timestamp=datetime.now(timezone.utc),
    )
