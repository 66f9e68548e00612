"""Search, filter and sort for task and agent lists shown in client views."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from tracer.engines.statistics import as_utc
from tracer.models.task import PRIORITY_RANK

SortField = Literal["title", "status", "priority", "created_at", "updated_at"]
SortOrder = Literal["asc", "desc"]


class FilterState(BaseModel):
    """Criteria for narrowing task and agent lists. Empty lists mean no filter."""

    search_term: str = ""
    status: list[str] = Field(default_factory=list)
    priority: list[str] = Field(default_factory=list)
    agent_type: list[str] = Field(default_factory=list)
    created_from: datetime | None = None
    created_to: datetime | None = None
    sort_by: SortField = "created_at"
    sort_order: SortOrder = "desc"


def _sort_key(sort_by: str):
    if sort_by == "title":
        return lambda task: task.title.lower()
    if sort_by == "status":
        return lambda task: task.status
    if sort_by == "priority":
        return lambda task: PRIORITY_RANK.get(task.priority, 0)
    if sort_by == "updated_at":
        return lambda task: _timestamp(task.updated_at)
    return lambda task: _timestamp(task.created_at)


def _timestamp(value: datetime | None) -> datetime | None:
    return as_utc(value) if value is not None else None


def filter_tasks(tasks: Sequence[Any], filters: FilterState) -> list[Any]:
    filtered = list(tasks)

    if filters.search_term:
        needle = filters.search_term.lower()
        filtered = [
            t for t in filtered
            if needle in t.title.lower() or needle in t.description.lower() or needle in t.id.lower()
        ]
    if filters.status:
        filtered = [t for t in filtered if t.status in filters.status]
    if filters.priority:
        filtered = [t for t in filtered if t.priority in filters.priority]
    if filters.created_from is not None:
        start = as_utc(filters.created_from)
        filtered = [t for t in filtered if t.created_at is not None and as_utc(t.created_at) >= start]
    if filters.created_to is not None:
        end = as_utc(filters.created_to)
        filtered = [t for t in filtered if t.created_at is not None and as_utc(t.created_at) <= end]

    # sorted() is stable, so ties keep their incoming order in both directions.
    # Records without a sort value go last whichever the order.
    key = _sort_key(filters.sort_by)
    present = [t for t in filtered if key(t) is not None]
    missing = [t for t in filtered if key(t) is None]
    return sorted(present, key=key, reverse=filters.sort_order == "desc") + missing


def filter_agents(agents: Sequence[Any], filters: FilterState) -> list[Any]:
    filtered = list(agents)

    if filters.search_term:
        needle = filters.search_term.lower()
        filtered = [
            a for a in filtered
            if needle in a.name.lower()
            or needle in a.type.lower()
            or any(needle in cap.lower() for cap in a.capabilities)
        ]
    if filters.agent_type:
        filtered = [a for a in filtered if a.type in filters.agent_type]
    return filtered
