"""Tracer FastAPI application.

Entry point for the backend server:
    uvicorn tracer.main:app
    python -m tracer.main
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tracer import __version__
from tracer.api.handlers import register_exception_handlers
from tracer.api.health import router as health_router
from tracer.api.v1.agents import router as agents_router
from tracer.api.v1.planning_sessions import router as planning_sessions_router
from tracer.api.v1.projects import router as projects_router
from tracer.api.v1.tasks import router as tasks_router
from tracer.config import settings
from tracer.db.database import create_db_and_tables
from tracer.middleware.auth import APIKeyAuthMiddleware
from tracer.middleware.rate_limit import RateLimitMiddleware
from tracer.middleware.timeout import TimeoutMiddleware

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    create_db_and_tables()
    logger.info("Tracer %s started (environment=%s)", __version__, settings.environment)
    yield
    logger.info("Tracer shutting down")


app = FastAPI(
    title="Tracer",
    description="Project, task and agent management API",
    version=__version__,
    lifespan=lifespan,
)

# Middleware (last added = outermost)
app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)
app.add_middleware(
    RateLimitMiddleware,
    global_rpm=settings.rate_limit_rpm,
    write_rpm=settings.rate_limit_write_rpm,
)
app.add_middleware(APIKeyAuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

register_exception_handlers(app)

# Routes
app.include_router(health_router)
app.include_router(projects_router)
app.include_router(tasks_router)
app.include_router(agents_router)
app.include_router(planning_sessions_router)


@app.get("/")
async def root():
    return {"name": "Tracer", "version": __version__, "status": "running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("tracer.main:app", host="0.0.0.0", port=8000, reload=not settings.is_production)
