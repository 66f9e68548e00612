"""Client-side records mirroring the API's JSON shapes.

Records are plain mutable pydantic models so the assignment engine can work
on copies of them exactly as it works on database rows.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectRecord(_Record):
    name: str
    description: str = ""
    status: str = "active"


class TaskRecord(_Record):
    project_id: str
    title: str
    description: str = ""
    status: str = "pending"
    priority: str = "medium"
    agent_id: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    estimated_hours: float | None = None
    actual_hours: float | None = 0.0


class AgentRecord(_Record):
    project_id: str
    name: str
    type: str
    status: str = "idle"
    current_task_id: str | None = None
    capabilities: list[str] = Field(default_factory=list)
    efficiency: float = 0.8


class PlanningSessionRecord(_Record):
    project_id: str
    name: str
    description: str = ""
    status: str = "draft"
    tasks: list[str] = Field(default_factory=list)
    agents: list[str] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ApiResponse(BaseModel):
    """Envelope returned by every ApiClient call, success or not."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    data: Any = None
    message: str | None = None
    error: str | None = None
    code: str | None = None
    status_code: int | None = None
    pagination: Pagination | None = None
