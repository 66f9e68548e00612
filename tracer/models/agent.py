"""Agent model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from sqlmodel import JSON, Column, SQLModel
from sqlmodel import Field as SQLField

from tracer.models.ids import new_object_id


class Agent(SQLModel, table=True):
    """A worker (human or AI) that holds at most one task at a time."""

    __tablename__ = "agent"

    id: str = SQLField(default_factory=new_object_id, primary_key=True, max_length=24)
    project_id: str = SQLField(index=True, max_length=24)
    name: str = SQLField(max_length=100)
    type: str = SQLField(index=True)  # "frontend" | "backend" | "fullstack" | "devops" | "ai"
    status: str = SQLField(default="idle", index=True)  # "idle" | "working" | "busy" | "suspended"
    current_task_id: str | None = SQLField(default=None, index=True, max_length=24)
    capabilities: list[str] = SQLField(default_factory=list, sa_column=Column(JSON))
    efficiency: float = 0.8  # 0-1 scale
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def workload(self) -> str:
        return workload_for_status(self.status)

    @property
    def is_available(self) -> bool:
        return self.status == "idle"


AgentType = Literal["frontend", "backend", "fullstack", "devops", "ai"]
AgentStatus = Literal["idle", "working", "busy", "suspended"]

AGENT_TYPES: tuple[str, ...] = ("frontend", "backend", "fullstack", "devops", "ai")
AGENT_STATUSES: tuple[str, ...] = ("idle", "working", "busy", "suspended")


def workload_for_status(status: str) -> str:
    if status in ("working", "busy"):
        return "high"
    if status == "idle":
        return "low"
    return "none"
