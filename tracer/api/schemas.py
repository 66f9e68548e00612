"""Response models and row-to-response conversion with populated references.

References are populated from lookups the caller has already loaded, so one
list request costs a fixed number of queries regardless of page size.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session, select

from tracer.engines.statistics import as_utc
from tracer.errors import NotFoundError
from tracer.models import Agent, PlanningSession, Project, Task


class _Timestamped(BaseModel):
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class ProjectRef(BaseModel):
    id: str
    name: str
    status: str


class TaskRef(BaseModel):
    id: str
    title: str
    status: str
    priority: str


class AgentRef(BaseModel):
    id: str
    name: str
    type: str
    status: str


class ProjectResponse(_Timestamped):
    id: str
    name: str
    description: str
    status: str


class TaskResponse(_Timestamped):
    id: str
    project_id: str
    title: str
    description: str
    status: str
    priority: str
    agent_id: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    estimated_hours: float | None = None
    actual_hours: float | None = None
    progress_percentage: int
    project: ProjectRef | None = None
    agent: AgentRef | None = None
    dependency_details: list[TaskRef] = Field(default_factory=list)


class AgentResponse(_Timestamped):
    id: str
    project_id: str
    name: str
    type: str
    status: str
    current_task_id: str | None = None
    capabilities: list[str] = Field(default_factory=list)
    efficiency: float
    workload: str
    is_available: bool
    project: ProjectRef | None = None
    current_task: TaskRef | None = None


class AgentDetailResponse(AgentResponse):
    task_history: list[TaskRef] = Field(default_factory=list)


class PlanningSessionResponse(_Timestamped):
    id: str
    project_id: str
    name: str
    description: str
    status: str
    tasks: list[str] = Field(default_factory=list)
    agents: list[str] = Field(default_factory=list)
    project: ProjectRef | None = None
    task_details: list[TaskRef] = Field(default_factory=list)
    agent_details: list[AgentRef] = Field(default_factory=list)


# === Reference lookups ===


def _by_id(session: Session, model, ids: Iterable[str | None]) -> dict:
    wanted = {i for i in ids if i}
    if not wanted:
        return {}
    rows = session.exec(select(model).where(model.id.in_(wanted))).all()
    return {row.id: row for row in rows}


def get_or_404(session: Session, model, entity_id: str, resource: str):
    """Fetch a row by id or raise NotFoundError naming the resource."""
    row = session.get(model, entity_id)
    if row is None:
        raise NotFoundError(resource, entity_id)
    return row


def projects_by_id(session: Session, ids: Iterable[str | None]) -> dict[str, Project]:
    return _by_id(session, Project, ids)


def tasks_by_id(session: Session, ids: Iterable[str | None]) -> dict[str, Task]:
    return _by_id(session, Task, ids)


def agents_by_id(session: Session, ids: Iterable[str | None]) -> dict[str, Agent]:
    return _by_id(session, Agent, ids)


def project_ref(project: Project | None) -> ProjectRef | None:
    if project is None:
        return None
    return ProjectRef(id=project.id, name=project.name, status=project.status)


def task_ref(task: Task) -> TaskRef:
    return TaskRef(id=task.id, title=task.title, status=task.status, priority=task.priority)


def agent_ref(agent: Agent) -> AgentRef:
    return AgentRef(id=agent.id, name=agent.name, type=agent.type, status=agent.status)


# === Conversion ===


def project_response(project: Project) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        name=project.name,
        description=project.description,
        status=project.status,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


def task_response(
    task: Task,
    projects: Mapping[str, Project],
    agents: Mapping[str, Agent],
    dependencies: Mapping[str, Task],
) -> TaskResponse:
    agent = agents.get(task.agent_id) if task.agent_id else None
    return TaskResponse(
        id=task.id,
        project_id=task.project_id,
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        agent_id=task.agent_id,
        dependencies=list(task.dependencies or []),
        estimated_hours=task.estimated_hours,
        actual_hours=task.actual_hours,
        progress_percentage=task.progress_percentage,
        created_at=task.created_at,
        updated_at=task.updated_at,
        project=project_ref(projects.get(task.project_id)),
        agent=agent_ref(agent) if agent is not None else None,
        dependency_details=[task_ref(dependencies[d]) for d in task.dependencies or [] if d in dependencies],
    )


def agent_response(
    agent: Agent,
    projects: Mapping[str, Project],
    tasks: Mapping[str, Task],
) -> AgentResponse:
    current = tasks.get(agent.current_task_id) if agent.current_task_id else None
    return AgentResponse(
        id=agent.id,
        project_id=agent.project_id,
        name=agent.name,
        type=agent.type,
        status=agent.status,
        current_task_id=agent.current_task_id,
        capabilities=list(agent.capabilities or []),
        efficiency=agent.efficiency,
        workload=agent.workload,
        is_available=agent.is_available,
        created_at=agent.created_at,
        updated_at=agent.updated_at,
        project=project_ref(projects.get(agent.project_id)),
        current_task=task_ref(current) if current is not None else None,
    )


def planning_session_response(
    planning: PlanningSession,
    projects: Mapping[str, Project],
    tasks: Mapping[str, Task],
    agents: Mapping[str, Agent],
) -> PlanningSessionResponse:
    return PlanningSessionResponse(
        id=planning.id,
        project_id=planning.project_id,
        name=planning.name,
        description=planning.description,
        status=planning.status,
        tasks=list(planning.tasks or []),
        agents=list(planning.agents or []),
        created_at=planning.created_at,
        updated_at=planning.updated_at,
        project=project_ref(projects.get(planning.project_id)),
        task_details=[task_ref(tasks[t]) for t in planning.tasks or [] if t in tasks],
        agent_details=[agent_ref(agents[a]) for a in planning.agents or [] if a in agents],
    )


# Batch helpers: load every reference a page of rows needs, then convert.


def task_responses(session: Session, tasks: list[Task]) -> list[TaskResponse]:
    projects = projects_by_id(session, (t.project_id for t in tasks))
    agents = agents_by_id(session, (t.agent_id for t in tasks))
    deps = tasks_by_id(session, (d for t in tasks for d in t.dependencies or []))
    return [task_response(t, projects, agents, deps) for t in tasks]


def agent_responses(session: Session, agents: list[Agent]) -> list[AgentResponse]:
    projects = projects_by_id(session, (a.project_id for a in agents))
    tasks = tasks_by_id(session, (a.current_task_id for a in agents))
    return [agent_response(a, projects, tasks) for a in agents]


def planning_session_responses(
    session: Session,
    plannings: list[PlanningSession],
) -> list[PlanningSessionResponse]:
    projects = projects_by_id(session, (p.project_id for p in plannings))
    tasks = tasks_by_id(session, (t for p in plannings for t in p.tasks or []))
    agents = agents_by_id(session, (a for p in plannings for a in p.agents or []))
    return [planning_session_response(p, projects, tasks, agents) for p in plannings]
