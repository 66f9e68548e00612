"""Task model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from sqlmodel import JSON, Column, SQLModel
from sqlmodel import Field as SQLField

from tracer.models.ids import new_object_id


class Task(SQLModel, table=True):
    """A unit of work within a project, optionally assigned to one agent."""

    __tablename__ = "task"

    id: str = SQLField(default_factory=new_object_id, primary_key=True, max_length=24)
    project_id: str = SQLField(index=True, max_length=24)
    title: str = SQLField(max_length=200)
    description: str = SQLField(max_length=1000)
    status: str = SQLField(default="pending", index=True)  # "pending" | "in-progress" | "completed" | "blocked"
    priority: str = SQLField(default="medium", index=True)  # "low" | "medium" | "high" | "urgent"
    agent_id: str | None = SQLField(default=None, index=True, max_length=24)
    dependencies: list[str] = SQLField(default_factory=list, sa_column=Column(JSON))  # Task IDs
    estimated_hours: float | None = None
    actual_hours: float | None = 0.0
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def progress_percentage(self) -> int:
        return progress_for_status(self.status)


TaskStatus = Literal["pending", "in-progress", "completed", "blocked"]
TaskPriority = Literal["low", "medium", "high", "urgent"]

TASK_STATUSES: tuple[str, ...] = ("pending", "in-progress", "completed", "blocked")
TASK_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "urgent")

# Higher rank sorts first
PRIORITY_RANK: dict[str, int] = {"urgent": 4, "high": 3, "medium": 2, "low": 1}


def progress_for_status(status: str) -> int:
    """Coarse progress percentage implied by a task status."""
    if status == "completed":
        return 100
    if status == "in-progress":
        return 50
    return 0
