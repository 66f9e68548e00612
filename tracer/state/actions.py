"""Tagged actions accepted by the state reducer.

Each action is a pydantic model whose ``type`` literal is the discriminator,
so plain dicts (e.g. from a UI bridge) can be parsed with ``parse_action``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from tracer.client.models import AgentRecord, PlanningSessionRecord, ProjectRecord, TaskRecord


class SetLoading(BaseModel):
    type: Literal["set_loading"] = "set_loading"
    loading: bool


class SetError(BaseModel):
    type: Literal["set_error"] = "set_error"
    error: str | None = None


class LoadProjects(BaseModel):
    type: Literal["load_projects"] = "load_projects"
    projects: list[ProjectRecord]


class CreateProject(BaseModel):
    type: Literal["create_project"] = "create_project"
    project: ProjectRecord


class SetCurrentProject(BaseModel):
    type: Literal["set_current_project"] = "set_current_project"
    project: ProjectRecord | None = None


class UpdateProject(BaseModel):
    type: Literal["update_project"] = "update_project"
    project_id: str
    updates: dict[str, Any]


class DeleteProject(BaseModel):
    type: Literal["delete_project"] = "delete_project"
    project_id: str


class LoadTasks(BaseModel):
    type: Literal["load_tasks"] = "load_tasks"
    tasks: list[TaskRecord]


class UpsertTask(BaseModel):
    type: Literal["upsert_task"] = "upsert_task"
    task: TaskRecord


class DeleteTask(BaseModel):
    type: Literal["delete_task"] = "delete_task"
    task_id: str


class LoadAgents(BaseModel):
    type: Literal["load_agents"] = "load_agents"
    agents: list[AgentRecord]


class UpsertAgent(BaseModel):
    type: Literal["upsert_agent"] = "upsert_agent"
    agent: AgentRecord


class DeleteAgent(BaseModel):
    type: Literal["delete_agent"] = "delete_agent"
    agent_id: str


class AssignTask(BaseModel):
    type: Literal["assign_task"] = "assign_task"
    task_id: str
    agent_id: str


class UnassignTask(BaseModel):
    type: Literal["unassign_task"] = "unassign_task"
    task_id: str
    agent_id: str


class LoadPlanningSessions(BaseModel):
    type: Literal["load_planning_sessions"] = "load_planning_sessions"
    sessions: list[PlanningSessionRecord]


class CreatePlanningSession(BaseModel):
    type: Literal["create_planning_session"] = "create_planning_session"
    session: PlanningSessionRecord


class SetCurrentSession(BaseModel):
    type: Literal["set_current_session"] = "set_current_session"
    session: PlanningSessionRecord | None = None


Action = Annotated[
    Union[
        SetLoading,
        SetError,
        LoadProjects,
        CreateProject,
        SetCurrentProject,
        UpdateProject,
        DeleteProject,
        LoadTasks,
        UpsertTask,
        DeleteTask,
        LoadAgents,
        UpsertAgent,
        DeleteAgent,
        AssignTask,
        UnassignTask,
        LoadPlanningSessions,
        CreatePlanningSession,
        SetCurrentSession,
    ],
    Field(discriminator="type"),
]

_action_adapter: TypeAdapter[Action] = TypeAdapter(Action)


def parse_action(data: dict[str, Any]) -> Action:
    """Validate a plain dict into the matching action model."""
    return _action_adapter.validate_python(data)
