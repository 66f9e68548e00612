"""Project model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from sqlmodel import Field as SQLField
from sqlmodel import SQLModel

from tracer.models.ids import new_object_id


class Project(SQLModel, table=True):
    """Top-level grouping of tasks, agents and planning sessions."""

    __tablename__ = "project"

    id: str = SQLField(default_factory=new_object_id, primary_key=True, max_length=24)
    name: str = SQLField(max_length=200)
    description: str = SQLField(max_length=1000)
    status: str = SQLField(default="active", index=True)  # "active" | "completed" | "paused" | "archived"
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))


ProjectStatus = Literal["active", "completed", "paused", "archived"]
PROJECT_STATUSES: tuple[str, ...] = ("active", "completed", "paused", "archived")
