"""Shared test setup for Tracer tests."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TRACER_API_KEY", "")
# The app-level limiter is shared by every test that uses tracer.main.app
os.environ.setdefault("RATE_LIMIT_RPM", "100000")
os.environ.setdefault("RATE_LIMIT_WRITE_RPM", "100000")

from datetime import datetime, timedelta, timezone

import pytest

from tracer.models import Agent, PlanningSession, Project, Task
from tracer.models.ids import new_object_id


@pytest.fixture
def project():
    return Project(id=new_object_id(), name="Tracer", description="Test project")


@pytest.fixture
def make_task(project):
    """Factory for unsaved Task rows in the fixture project."""

    def _make(**overrides) -> Task:
        fields = {
            "id": new_object_id(),
            "project_id": project.id,
            "title": "Task",
            "description": "Do the thing",
        }
        fields.update(overrides)
        return Task(**fields)

    return _make


@pytest.fixture
def make_agent(project):
    """Factory for unsaved Agent rows in the fixture project."""

    def _make(**overrides) -> Agent:
        fields = {
            "id": new_object_id(),
            "project_id": project.id,
            "name": "Agent",
            "type": "backend",
        }
        fields.update(overrides)
        return Agent(**fields)

    return _make


@pytest.fixture
def make_session(project):
    def _make(**overrides) -> PlanningSession:
        fields = {
            "id": new_object_id(),
            "project_id": project.id,
            "name": "Sprint",
            "description": "Planning",
        }
        fields.update(overrides)
        return PlanningSession(**fields)

    return _make


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def days_ago(now):
    def _ago(days: float) -> datetime:
        return now - timedelta(days=days)

    return _ago
