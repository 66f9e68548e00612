"""Application state for client views: an immutable value plus a reducer.

``reduce`` never mutates its input. Actions that touch the task/agent pairing
run the assignment engine on copies of the affected records; when the engine
rejects an action its message lands in ``state.error`` and every entity is
left as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tracer.client.models import AgentRecord, PlanningSessionRecord, ProjectRecord, TaskRecord
from tracer.engines import assignment
from tracer.errors import ApiError
from tracer.state import actions as a

logger = logging.getLogger(__name__)


class AppState(BaseModel):
    model_config = ConfigDict(frozen=True)

    projects: list[ProjectRecord] = Field(default_factory=list)
    current_project: ProjectRecord | None = None
    tasks: list[TaskRecord] = Field(default_factory=list)
    agents: list[AgentRecord] = Field(default_factory=list)
    planning_sessions: list[PlanningSessionRecord] = Field(default_factory=list)
    current_session: PlanningSessionRecord | None = None
    loading: bool = False
    error: str | None = None


def _replace(items: list, record) -> list:
    """Return items with ``record`` swapped in by id, or appended if new."""
    if any(item.id == record.id for item in items):
        return [record if item.id == record.id else item for item in items]
    return [*items, record]


def _find(items: list, entity_id: str):
    return next((item for item in items if item.id == entity_id), None)


def _without_member(sessions: list[PlanningSessionRecord], field: str, member_id: str) -> list[PlanningSessionRecord]:
    return [
        s.model_copy(update={field: [m for m in getattr(s, field) if m != member_id]})
        if member_id in getattr(s, field)
        else s
        for s in sessions
    ]


# === Per-action reducers ===


def _update_project(state: AppState, action: a.UpdateProject) -> AppState:
    projects = [
        p.model_copy(update=action.updates) if p.id == action.project_id else p
        for p in state.projects
    ]
    current = state.current_project
    if current is not None and current.id == action.project_id:
        current = current.model_copy(update=action.updates)
    return state.model_copy(update={"projects": projects, "current_project": current})


def _delete_project(state: AppState, action: a.DeleteProject) -> AppState:
    pid = action.project_id
    projects = [p for p in state.projects if p.id != pid]
    current = state.current_project
    if current is not None and current.id == pid:
        current = projects[0] if projects else None
    session = state.current_session
    if session is not None and session.project_id == pid:
        session = None
    return state.model_copy(update={
        "projects": projects,
        "current_project": current,
        "tasks": [t for t in state.tasks if t.project_id != pid],
        "agents": [ag for ag in state.agents if ag.project_id != pid],
        "planning_sessions": [s for s in state.planning_sessions if s.project_id != pid],
        "current_session": session,
    })


def _delete_task(state: AppState, action: a.DeleteTask) -> AppState:
    task = _find(state.tasks, action.task_id)
    if task is None:
        return state
    agent = _find(state.agents, task.agent_id) if task.agent_id else None
    agent_copy = agent.model_copy() if agent is not None else None
    others = [t.model_copy() for t in state.tasks if t.id != task.id]
    assignment.release_task(task, agent_copy, others)

    agents = state.agents if agent_copy is None else _replace(state.agents, agent_copy)
    return state.model_copy(update={
        "tasks": others,
        "agents": agents,
        "planning_sessions": _without_member(state.planning_sessions, "tasks", task.id),
    })


def _delete_agent(state: AppState, action: a.DeleteAgent) -> AppState:
    agent = _find(state.agents, action.agent_id)
    if agent is None:
        return state
    tasks = [t.model_copy() for t in state.tasks]
    assignment.release_agent(agent.model_copy(), tasks)
    return state.model_copy(update={
        "tasks": tasks,
        "agents": [ag for ag in state.agents if ag.id != agent.id],
        "planning_sessions": _without_member(state.planning_sessions, "agents", agent.id),
    })


def _pairing(state: AppState, task_id: str, agent_id: str, rule: Callable[[Any, Any], None]) -> AppState:
    task = _find(state.tasks, task_id)
    if task is None:
        return state.model_copy(update={"error": f"Task with ID {task_id} not found"})
    agent = _find(state.agents, agent_id)
    if agent is None:
        return state.model_copy(update={"error": f"Agent with ID {agent_id} not found"})

    task_copy, agent_copy = task.model_copy(), agent.model_copy()
    try:
        rule(task_copy, agent_copy)
    except ApiError as e:
        logger.debug("Rejected %s(%s, %s): %s", rule.__name__, task_id, agent_id, e.message)
        return state.model_copy(update={"error": e.message})
    return state.model_copy(update={
        "tasks": _replace(state.tasks, task_copy),
        "agents": _replace(state.agents, agent_copy),
        "error": None,
    })


def reduce(state: AppState, action: a.Action) -> AppState:
    """Return the state that results from applying ``action`` to ``state``."""
    if isinstance(action, a.SetLoading):
        return state.model_copy(update={"loading": action.loading})
    if isinstance(action, a.SetError):
        return state.model_copy(update={"error": action.error})
    if isinstance(action, a.LoadProjects):
        return state.model_copy(update={"projects": list(action.projects)})
    if isinstance(action, a.CreateProject):
        return state.model_copy(update={
            "projects": [*state.projects, action.project],
            "current_project": action.project,
        })
    if isinstance(action, a.SetCurrentProject):
        return state.model_copy(update={"current_project": action.project})
    if isinstance(action, a.UpdateProject):
        return _update_project(state, action)
    if isinstance(action, a.DeleteProject):
        return _delete_project(state, action)
    if isinstance(action, a.LoadTasks):
        return state.model_copy(update={"tasks": list(action.tasks)})
    if isinstance(action, a.UpsertTask):
        return state.model_copy(update={"tasks": _replace(state.tasks, action.task)})
    if isinstance(action, a.DeleteTask):
        return _delete_task(state, action)
    if isinstance(action, a.LoadAgents):
        return state.model_copy(update={"agents": list(action.agents)})
    if isinstance(action, a.UpsertAgent):
        return state.model_copy(update={"agents": _replace(state.agents, action.agent)})
    if isinstance(action, a.DeleteAgent):
        return _delete_agent(state, action)
    if isinstance(action, a.AssignTask):
        return _pairing(state, action.task_id, action.agent_id, assignment.assign)
    if isinstance(action, a.UnassignTask):
        return _pairing(state, action.task_id, action.agent_id, assignment.unassign)
    if isinstance(action, a.LoadPlanningSessions):
        return state.model_copy(update={"planning_sessions": list(action.sessions)})
    if isinstance(action, a.CreatePlanningSession):
        return state.model_copy(update={
            "planning_sessions": [*state.planning_sessions, action.session],
            "current_session": action.session,
        })
    if isinstance(action, a.SetCurrentSession):
        return state.model_copy(update={"current_session": action.session})
    return state


Listener = Callable[[AppState], None]


class Store:
    """Owns the current AppState; every change goes through ``dispatch``."""

    def __init__(self, state: AppState | None = None) -> None:
        self._state = state or AppState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: a.Action | dict[str, Any]) -> AppState:
        if isinstance(action, dict):
            action = a.parse_action(action)
        new_state = reduce(self._state, action)
        if new_state is not self._state:
            self._state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return new_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
