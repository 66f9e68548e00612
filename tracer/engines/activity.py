"""Activity feed derived from the current tasks and agents.

Events are reconstructed from entity state rather than stored, so each one
is stamped with the creation or last-update time of the entity it describes.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from tracer.engines.statistics import as_utc

ActivityType = Literal[
    "task-created",
    "task-completed",
    "agent-assigned",
    "dependency-added",
    "time-tracked",
    "agent-working",
]
ActivityFilter = Literal[ActivityType, "all"]
ActivitySeverity = Literal["info", "success", "warning", "error"]
Timeframe = Literal["day", "week", "month", "all"]

_TIMEFRAME_DAYS = {"day": 1, "week": 7, "month": 30}


class Activity(BaseModel):
    id: str
    type: ActivityType
    timestamp: datetime
    title: str
    description: str
    severity: ActivitySeverity = "info"
    task_id: str | None = None
    agent_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


def _task_activities(task: Any, agents_by_id: dict[str, Any]) -> list[Activity]:
    created = as_utc(task.created_at)
    updated = as_utc(task.updated_at)
    events = [
        Activity(
            id=f"activity-{task.id}-created",
            type="task-created",
            timestamp=created,
            task_id=task.id,
            title="Task Created",
            description=f'"{task.title}" was created',
            metadata={"priority": task.priority},
        )
    ]
    if task.status == "completed":
        events.append(Activity(
            id=f"activity-{task.id}-completed",
            type="task-completed",
            timestamp=updated,
            task_id=task.id,
            title="Task Completed",
            description=f'"{task.title}" was completed',
            severity="success",
            metadata={"actual_hours": task.actual_hours},
        ))
    if task.agent_id:
        agent = agents_by_id.get(task.agent_id)
        agent_name = agent.name if agent is not None else "Unknown Agent"
        events.append(Activity(
            id=f"activity-{task.id}-assigned",
            type="agent-assigned",
            timestamp=updated,
            task_id=task.id,
            agent_id=task.agent_id,
            title="Agent Assigned",
            description=f'"{task.title}" was assigned to {agent_name}',
            metadata={
                "agent_name": agent_name,
                "agent_type": agent.type if agent is not None else None,
            },
        ))
    if task.dependencies:
        events.append(Activity(
            id=f"activity-{task.id}-dependencies",
            type="dependency-added",
            timestamp=created,
            task_id=task.id,
            title="Dependencies Added",
            description=f'"{task.title}" has {len(task.dependencies)} dependency(ies)',
            metadata={"dependency_count": len(task.dependencies)},
        ))
    if task.actual_hours:
        events.append(Activity(
            id=f"activity-{task.id}-time",
            type="time-tracked",
            timestamp=updated,
            task_id=task.id,
            title="Time Tracked",
            description=f'{task.actual_hours:g}h logged for "{task.title}"',
            metadata={"actual_hours": task.actual_hours, "estimated_hours": task.estimated_hours},
        ))
    return events


def build_activity_feed(tasks: Sequence[Any], agents: Sequence[Any]) -> list[Activity]:
    """All derivable events, newest first."""
    agents_by_id = {agent.id: agent for agent in agents}
    tasks_by_id = {task.id: task for task in tasks}

    events: list[Activity] = []
    for task in tasks:
        events.extend(_task_activities(task, agents_by_id))

    for agent in agents:
        if agent.status == "working" and agent.current_task_id:
            task = tasks_by_id.get(agent.current_task_id)
            task_title = task.title if task is not None else "Unknown Task"
            events.append(Activity(
                id=f"activity-{agent.id}-working",
                type="agent-working",
                timestamp=as_utc(agent.updated_at),
                agent_id=agent.id,
                task_id=agent.current_task_id,
                title="Agent Working",
                description=f'{agent.name} is actively working on "{task_title}"',
                severity="success",
                metadata={"agent_name": agent.name, "agent_type": agent.type, "efficiency": agent.efficiency},
            ))

    events.sort(key=lambda event: event.timestamp, reverse=True)
    return events


def filter_activities(
    events: Sequence[Activity],
    activity_type: ActivityFilter | None = None,
    search: str | None = None,
    timeframe: Timeframe = "all",
    now: datetime | None = None,
) -> list[Activity]:
    """Narrow a feed by type, case-insensitive search and look-back window."""
    filtered = list(events)
    if search:
        needle = search.lower()
        filtered = [e for e in filtered if needle in e.title.lower() or needle in e.description.lower()]
    if activity_type and activity_type != "all":
        filtered = [e for e in filtered if e.type == activity_type]
    if timeframe != "all":
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=_TIMEFRAME_DAYS[timeframe])
        filtered = [e for e in filtered if e.timestamp >= cutoff]
    return filtered
