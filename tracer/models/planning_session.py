"""Planning session model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from sqlmodel import JSON, Column, SQLModel
from sqlmodel import Field as SQLField

from tracer.models.ids import new_object_id


class PlanningSession(SQLModel, table=True):
    """A named grouping of a project's tasks and agents for coordination."""

    __tablename__ = "planning_session"

    id: str = SQLField(default_factory=new_object_id, primary_key=True, max_length=24)
    project_id: str = SQLField(index=True, max_length=24)
    name: str = SQLField(max_length=200)
    description: str = SQLField(max_length=1000)
    status: str = SQLField(default="draft", index=True)  # "draft" | "active" | "completed"
    tasks: list[str] = SQLField(default_factory=list, sa_column=Column(JSON))  # Task IDs
    agents: list[str] = SQLField(default_factory=list, sa_column=Column(JSON))  # Agent IDs
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))


SessionStatus = Literal["draft", "active", "completed"]
SESSION_STATUSES: tuple[str, ...] = ("draft", "active", "completed")
