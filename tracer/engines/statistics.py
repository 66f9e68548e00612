"""Aggregation/statistics over current task, agent and session collections.

Pure functions: every figure is recomputed from the lists passed in, nothing
is cached. Rates are percentages (0-100); empty collections yield 0.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from tracer.models.agent import AGENT_STATUSES, AGENT_TYPES
from tracer.models.planning_session import SESSION_STATUSES
from tracer.models.task import TASK_PRIORITIES, TASK_STATUSES


class TaskStats(BaseModel):
    total: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
    total_estimated_hours: float
    total_actual_hours: float
    time_variance: float
    completion_rate: float
    blocked_count: int  # explicitly blocked or waiting on unfinished dependencies


class AgentStats(BaseModel):
    total: int
    by_type: dict[str, int]
    by_status: dict[str, int]
    average_efficiency: float
    utilization_rate: float


class PlanningStats(BaseModel):
    total: int
    by_status: dict[str, int]


class ProjectTimeline(BaseModel):
    created_at: datetime
    updated_at: datetime
    duration: int  # whole days since creation


class ProductivityMetrics(BaseModel):
    tasks_per_day: float
    completion_velocity: float
    agent_productivity: float


class ProjectSummary(BaseModel):
    """Headline counts embedded in the single-project view."""

    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    blocked_tasks: int
    total_agents: int
    active_agents: int
    planning_sessions: int


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _count_by(items: Sequence[Any], attr: str, keys: Sequence[str]) -> dict[str, int]:
    counts = {key: 0 for key in keys}
    for item in items:
        value = getattr(item, attr)
        if value in counts:
            counts[value] += 1
    return counts


def completion_rate(tasks: Sequence[Any]) -> float:
    if not tasks:
        return 0.0
    completed = sum(1 for task in tasks if task.status == "completed")
    return completed / len(tasks) * 100


def average_efficiency(agents: Sequence[Any]) -> float:
    if not agents:
        return 0.0
    return sum(agent.efficiency for agent in agents) / len(agents)


def utilization_rate(agents: Sequence[Any]) -> float:
    if not agents:
        return 0.0
    engaged = sum(1 for agent in agents if agent.status in ("working", "busy"))
    return engaged / len(agents) * 100


def is_blocked(task: Any, tasks_by_id: dict[str, Any]) -> bool:
    """A task is blocked if marked so or if any dependency is not completed.

    Dependencies missing from ``tasks_by_id`` count as not completed.
    """
    if task.status == "blocked":
        return True
    for dep_id in task.dependencies or []:
        dep = tasks_by_id.get(dep_id)
        if dep is None or dep.status != "completed":
            return True
    return False


def blocked_count(tasks: Sequence[Any]) -> int:
    tasks_by_id = {task.id: task for task in tasks}
    return sum(1 for task in tasks if is_blocked(task, tasks_by_id))


def compute_task_stats(tasks: Sequence[Any]) -> TaskStats:
    estimated = sum(task.estimated_hours or 0 for task in tasks)
    actual = sum(task.actual_hours or 0 for task in tasks)
    return TaskStats(
        total=len(tasks),
        by_status=_count_by(tasks, "status", TASK_STATUSES),
        by_priority=_count_by(tasks, "priority", TASK_PRIORITIES),
        total_estimated_hours=estimated,
        total_actual_hours=actual,
        time_variance=actual - estimated,
        completion_rate=completion_rate(tasks),
        blocked_count=blocked_count(tasks),
    )


def compute_agent_stats(agents: Sequence[Any]) -> AgentStats:
    return AgentStats(
        total=len(agents),
        by_type=_count_by(agents, "type", AGENT_TYPES),
        by_status=_count_by(agents, "status", AGENT_STATUSES),
        average_efficiency=average_efficiency(agents),
        utilization_rate=utilization_rate(agents),
    )


def compute_planning_stats(sessions: Sequence[Any]) -> PlanningStats:
    return PlanningStats(
        total=len(sessions),
        by_status=_count_by(sessions, "status", SESSION_STATUSES),
    )


def compute_timeline(project: Any, now: datetime | None = None) -> ProjectTimeline:
    now = now or datetime.now(timezone.utc)
    created_at = as_utc(project.created_at)
    return ProjectTimeline(
        created_at=created_at,
        updated_at=as_utc(project.updated_at),
        duration=max(0, (now - created_at).days),
    )


def compute_productivity(
    task_stats: TaskStats,
    agent_stats: AgentStats,
    timeline: ProjectTimeline,
) -> ProductivityMetrics:
    tasks_per_day = task_stats.total / timeline.duration if timeline.duration > 0 else 0.0
    return ProductivityMetrics(
        tasks_per_day=tasks_per_day,
        completion_velocity=task_stats.completion_rate,
        agent_productivity=agent_stats.average_efficiency * agent_stats.utilization_rate / 100,
    )


def summarize_project(
    tasks: Sequence[Any],
    agents: Sequence[Any],
    sessions: Sequence[Any],
) -> ProjectSummary:
    return ProjectSummary(
        total_tasks=len(tasks),
        completed_tasks=sum(1 for t in tasks if t.status == "completed"),
        in_progress_tasks=sum(1 for t in tasks if t.status == "in-progress"),
        blocked_tasks=sum(1 for t in tasks if t.status == "blocked"),
        total_agents=len(agents),
        active_agents=sum(1 for a in agents if a.status in ("idle", "working")),
        planning_sessions=len(sessions),
    )
