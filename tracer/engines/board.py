"""Board views: kanban columns, dependency graph and timeline.

Derived read-only structures over a project's tasks and agents, shaped for
direct rendering by a client.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from tracer.engines.statistics import as_utc
from tracer.models.task import TASK_STATUSES, progress_for_status

_COLUMN_TITLES = {
    "pending": "Pending",
    "in-progress": "In Progress",
    "completed": "Completed",
    "blocked": "Blocked",
}


class BoardCard(BaseModel):
    id: str
    title: str
    status: str
    priority: str
    agent_id: str | None = None
    estimated_hours: float | None = None


class KanbanColumn(BaseModel):
    id: str
    title: str
    tasks: list[BoardCard] = Field(default_factory=list)


class DependencyNode(BaseModel):
    id: str
    title: str
    status: str
    dependencies: list[str] = Field(default_factory=list)
    dependents: list[str] = Field(default_factory=list)


class TimelineEntry(BaseModel):
    id: str
    title: str
    status: str
    created_at: datetime
    updated_at: datetime
    progress_percentage: int
    agent_efficiency: float


class BoardView(BaseModel):
    progress: int
    columns: list[KanbanColumn]
    dependency_graph: list[DependencyNode]
    timeline: list[TimelineEntry]


def _card(task: Any) -> BoardCard:
    return BoardCard(
        id=task.id,
        title=task.title,
        status=task.status,
        priority=task.priority,
        agent_id=task.agent_id,
        estimated_hours=task.estimated_hours,
    )


def kanban_columns(tasks: Sequence[Any]) -> list[KanbanColumn]:
    """One column per task status, in workflow order."""
    columns = {status: KanbanColumn(id=status, title=_COLUMN_TITLES[status]) for status in TASK_STATUSES}
    for task in tasks:
        column = columns.get(task.status)
        if column is not None:
            column.tasks.append(_card(task))
    return list(columns.values())


def dependency_graph(tasks: Sequence[Any]) -> list[DependencyNode]:
    """Nodes with both directions of the dependency relation."""
    dependents: dict[str, list[str]] = {task.id: [] for task in tasks}
    for task in tasks:
        for dep_id in task.dependencies or []:
            if dep_id in dependents:
                dependents[dep_id].append(task.id)
    return [
        DependencyNode(
            id=task.id,
            title=task.title,
            status=task.status,
            dependencies=list(task.dependencies or []),
            dependents=dependents[task.id],
        )
        for task in tasks
    ]


def timeline(tasks: Sequence[Any], agents: Sequence[Any]) -> list[TimelineEntry]:
    """Tasks in creation order, with the assigned agent's efficiency."""
    efficiency = {agent.id: agent.efficiency for agent in agents}
    ordered = sorted(tasks, key=lambda task: as_utc(task.created_at))
    return [
        TimelineEntry(
            id=task.id,
            title=task.title,
            status=task.status,
            created_at=task.created_at,
            updated_at=task.updated_at,
            progress_percentage=progress_for_status(task.status),
            agent_efficiency=efficiency.get(task.agent_id, 0.0) if task.agent_id else 0.0,
        )
        for task in ordered
    ]


def project_progress(tasks: Sequence[Any]) -> int:
    """Rounded percentage of completed tasks."""
    completed = sum(1 for task in tasks if task.status == "completed")
    return round(completed / max(len(tasks), 1) * 100)


def build_board(tasks: Sequence[Any], agents: Sequence[Any]) -> BoardView:
    return BoardView(
        progress=project_progress(tasks),
        columns=kanban_columns(tasks),
        dependency_graph=dependency_graph(tasks),
        timeline=timeline(tasks, agents),
    )
