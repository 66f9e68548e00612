"""Assignment rule engine for the task/agent pairing invariant.

If task T has ``agent_id == A`` then agent A has ``current_task_id == T.id``
and ``status == "working"``. Every operation that creates or breaks a
pairing goes through this module and updates both sides together.

Functions are duck-typed over anything exposing the entity attributes
(``id``, ``project_id``, ``status``, ``agent_id`` / ``current_task_id``,
``dependencies``), so the same rules apply to database rows and to client
state records. Callers own persistence: the API layer commits the session,
the state reducer works on copies.

``busy`` is accepted as a manually-set agent status but no rule here ever
produces it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from tracer.errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)


def _touch(*entities: Any) -> None:
    now = datetime.now(timezone.utc)
    for entity in entities:
        if hasattr(entity, "updated_at"):
            entity.updated_at = now


def assign(task: Any, agent: Any) -> None:
    """Pair an unassigned task with an idle agent.

    Raises:
        ValidationError: task and agent belong to different projects.
        ConflictError: task already has an agent, or the agent is not idle.
    """
    if task.project_id != agent.project_id:
        raise ValidationError(
            "Task and agent belong to different projects",
            details={"task_project_id": task.project_id, "agent_project_id": agent.project_id},
        )
    if task.agent_id:
        raise ConflictError(
            "Task is already assigned to an agent",
            details={"task_id": task.id, "agent_id": task.agent_id},
        )
    if agent.status != "idle" or agent.current_task_id:
        raise ConflictError(
            "Agent is not available for assignment",
            details={"agent_id": agent.id, "status": agent.status},
        )

    task.agent_id = agent.id
    task.status = "in-progress"
    agent.current_task_id = task.id
    agent.status = "working"
    _touch(task, agent)
    logger.info("Assigned task %s to agent %s", task.id, agent.id)


def unassign(task: Any, agent: Any) -> None:
    """Break the pairing between a task and the agent holding it.

    Raises:
        ValidationError: the task is not assigned to this agent.
    """
    if task.agent_id != agent.id:
        raise ValidationError(
            "Task is not assigned to the specified agent",
            details={"task_id": task.id, "agent_id": agent.id, "assigned_agent_id": task.agent_id},
        )

    task.agent_id = None
    task.status = "pending"
    agent.current_task_id = None
    agent.status = "idle"
    _touch(task, agent)
    logger.info("Unassigned task %s from agent %s", task.id, agent.id)


def release_agent(agent: Any, tasks: Iterable[Any]) -> list[Any]:
    """Reset every task held by an agent that is about to be deleted.

    Returns the tasks that were changed.
    """
    released = []
    for task in tasks:
        if task.agent_id == agent.id:
            task.agent_id = None
            task.status = "pending"
            _touch(task)
            released.append(task)
    agent.current_task_id = None
    agent.status = "idle"
    if released:
        logger.info("Released %d task(s) from agent %s", len(released), agent.id)
    return released


def release_task(task: Any, agent: Any | None, tasks: Iterable[Any]) -> list[Any]:
    """Detach a task that is about to be deleted.

    Resets its agent (if assigned) to idle and prunes the task id from every
    other task's dependency list. Returns the other tasks that were changed.
    """
    if task.agent_id and agent is not None and agent.id == task.agent_id:
        agent.current_task_id = None
        agent.status = "idle"
        _touch(agent)

    pruned = []
    for other in tasks:
        if other.id == task.id:
            continue
        if task.id in (other.dependencies or []):
            # Reassign rather than mutate so JSON columns register the change
            other.dependencies = [dep for dep in other.dependencies if dep != task.id]
            _touch(other)
            pruned.append(other)
    return pruned


def check_agent_status_change(agent: Any, new_status: str) -> None:
    """Guard manual agent status edits against breaking a pairing.

    Raises:
        ConflictError: the agent holds a task and would leave ``working``.
        ValidationError: the agent holds no task and would enter ``working``.
    """
    if new_status == agent.status:
        return
    if agent.current_task_id and new_status != "working":
        raise ConflictError(
            "Agent has an assigned task; unassign it before changing status",
            details={"agent_id": agent.id, "current_task_id": agent.current_task_id},
        )
    if not agent.current_task_id and new_status == "working":
        raise ValidationError("Agent can only start working through task assignment")


def check_dependencies(
    task_id: str | None,
    project_id: str,
    dependencies: Iterable[str],
    tasks_by_id: Mapping[str, Any],
) -> list[str]:
    """Validate a dependency list and return it with duplicates removed.

    Raises:
        ValidationError: self dependency, unknown task, or task from another project.
    """
    cleaned: list[str] = []
    for dep_id in dependencies:
        if dep_id in cleaned:
            continue
        if task_id is not None and dep_id == task_id:
            raise ValidationError("Task cannot depend on itself", details={"task_id": task_id})
        dep = tasks_by_id.get(dep_id)
        if dep is None:
            raise ValidationError(
                f"Dependency task {dep_id} does not exist",
                details={"dependency_id": dep_id},
            )
        if dep.project_id != project_id:
            raise ValidationError(
                f"Dependency task {dep_id} belongs to a different project",
                details={"dependency_id": dep_id},
            )
        cleaned.append(dep_id)
    return cleaned


def find_pairing_violations(tasks: Iterable[Any], agents: Iterable[Any]) -> list[str]:
    """Describe every task/agent pair that breaks the pairing invariant."""
    agents_by_id = {agent.id: agent for agent in agents}
    violations = []
    for task in tasks:
        if not task.agent_id:
            continue
        agent = agents_by_id.get(task.agent_id)
        if agent is None:
            violations.append(f"task {task.id} references missing agent {task.agent_id}")
        elif agent.current_task_id != task.id:
            violations.append(
                f"task {task.id} references agent {agent.id} whose current task is {agent.current_task_id}"
            )
        elif agent.status != "working":
            violations.append(f"task {task.id} references agent {agent.id} with status {agent.status}")
    return violations
