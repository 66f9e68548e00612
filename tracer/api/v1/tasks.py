"""Tasks API: CRUD plus assignment.

GET    /api/v1/tasks                    list (filters: project_id, status, priority, agent_id)
POST   /api/v1/tasks                    create (optionally assigned on creation)
POST   /api/v1/tasks/assign             assign a task to an idle agent
DELETE /api/v1/tasks/assign             unassign (?task_id=&agent_id=)
GET    /api/v1/tasks/{id}               single task
PUT    /api/v1/tasks/{id}               update
DELETE /api/v1/tasks/{id}               delete, releasing its agent and dependents

Every change to the task/agent pairing goes through tracer.engines.assignment,
including create and update requests that carry ``agent_id``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import case
from sqlmodel import Session, func, select

from tracer.api.responses import (
    ObjectIdStr,
    PageParams,
    SuccessResponse,
    check_object_id,
    page_params,
    paginate,
)
from tracer.api.schemas import (
    AgentResponse,
    TaskResponse,
    agent_responses,
    get_or_404,
    task_responses,
    tasks_by_id,
)
from tracer.api.v1.planning_sessions import prune_session_member
from tracer.db.database import engine as db_engine
from tracer.engines import assignment
from tracer.models import Agent, Project, Task
from tracer.models.task import PRIORITY_RANK, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["tasks"])

# Fields that may be cleared with an explicit null
_NULLABLE_FIELDS = frozenset({"estimated_hours"})


# === Request / Response Models ===


class CreateTaskRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    project_id: ObjectIdStr
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    agent_id: ObjectIdStr | None = None
    dependencies: list[ObjectIdStr] = Field(default_factory=list)
    estimated_hours: float | None = Field(default=None, ge=0, le=1000)
    actual_hours: float = Field(default=0, ge=0, le=1000)


class UpdateTaskRequest(BaseModel):
    """All fields optional. ``agent_id: null`` unassigns; an id reassigns."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    agent_id: ObjectIdStr | None = None
    dependencies: list[ObjectIdStr] | None = None
    estimated_hours: float | None = Field(default=None, ge=0, le=1000)
    actual_hours: float | None = Field(default=None, ge=0, le=1000)


class AssignTaskRequest(BaseModel):
    task_id: ObjectIdStr
    agent_id: ObjectIdStr


class AssignmentResponse(BaseModel):
    task: TaskResponse
    agent: AgentResponse


def _checked_dependencies(session: Session, task_id: str | None, project_id: str, dependencies: list[str]) -> list[str]:
    return assignment.check_dependencies(task_id, project_id, dependencies, tasks_by_id(session, dependencies))


def _assignment_response(session: Session, task: Task, agent: Agent) -> AssignmentResponse:
    session.refresh(task)
    session.refresh(agent)
    return AssignmentResponse(
        task=task_responses(session, [task])[0],
        agent=agent_responses(session, [agent])[0],
    )


def _reassign(session: Session, task: Task, new_agent_id: str | None) -> None:
    """Move a task to another agent (or to none) through the assignment rules."""
    if new_agent_id == task.agent_id:
        return
    if task.agent_id:
        current = session.get(Agent, task.agent_id)
        if current is not None:
            assignment.unassign(task, current)
            session.add(current)
        else:
            logger.warning("Task %s referenced missing agent %s; clearing", task.id, task.agent_id)
            task.agent_id = None
            task.status = "pending"
    if new_agent_id:
        agent = get_or_404(session, Agent, new_agent_id, "Agent")
        assignment.assign(task, agent)
        session.add(agent)


# === Endpoints ===


@router.get("/tasks", response_model=SuccessResponse[list[TaskResponse]])
async def list_tasks(
    project_id: str | None = Query(default=None),
    status: TaskStatus | None = Query(default=None),
    priority: TaskPriority | None = Query(default=None),
    agent_id: str | None = Query(default=None),
    params: PageParams = Depends(page_params),
) -> SuccessResponse[list[TaskResponse]]:
    """List tasks, highest priority first, then newest."""
    project_id = check_object_id(project_id, "project")
    agent_id = check_object_id(agent_id, "agent")
    conditions = []
    if project_id:
        conditions.append(Task.project_id == project_id)
    if status:
        conditions.append(Task.status == status)
    if priority:
        conditions.append(Task.priority == priority)
    if agent_id:
        conditions.append(Task.agent_id == agent_id)

    priority_rank = case(PRIORITY_RANK, value=Task.priority, else_=0)
    with Session(db_engine) as session:
        total = session.exec(select(func.count()).select_from(Task).where(*conditions)).one()
        rows = session.exec(
            select(Task)
            .where(*conditions)
            .order_by(priority_rank.desc(), Task.created_at.desc())
            .offset(params.offset)
            .limit(params.limit)
        ).all()
        data = task_responses(session, list(rows))
    return SuccessResponse(data=data, pagination=paginate(params, total))


@router.post("/tasks", response_model=SuccessResponse[TaskResponse], status_code=201)
async def create_task(request: CreateTaskRequest) -> SuccessResponse[TaskResponse]:
    with Session(db_engine) as session:
        get_or_404(session, Project, request.project_id, "Project")
        dependencies = _checked_dependencies(session, None, request.project_id, request.dependencies)

        task = Task(
            project_id=request.project_id,
            title=request.title,
            description=request.description,
            status=request.status,
            priority=request.priority,
            dependencies=dependencies,
            estimated_hours=request.estimated_hours,
            actual_hours=request.actual_hours,
        )
        if request.agent_id:
            agent = get_or_404(session, Agent, request.agent_id, "Agent")
            assignment.assign(task, agent)
            session.add(agent)

        session.add(task)
        session.commit()
        session.refresh(task)
        data = task_responses(session, [task])[0]
    logger.info("Created task %s in project %s", data.id, data.project_id)
    return SuccessResponse(data=data, message="Task created successfully")


@router.post("/tasks/assign", response_model=SuccessResponse[AssignmentResponse])
async def assign_task(request: AssignTaskRequest) -> SuccessResponse[AssignmentResponse]:
    with Session(db_engine) as session:
        task = get_or_404(session, Task, request.task_id, "Task")
        agent = get_or_404(session, Agent, request.agent_id, "Agent")
        assignment.assign(task, agent)
        session.add(task)
        session.add(agent)
        session.commit()
        data = _assignment_response(session, task, agent)
    return SuccessResponse(data=data, message="Task assigned successfully")


@router.delete("/tasks/assign", response_model=SuccessResponse[AssignmentResponse])
async def unassign_task(
    task_id: str = Query(),
    agent_id: str = Query(),
) -> SuccessResponse[AssignmentResponse]:
    task_id = check_object_id(task_id, "task")
    agent_id = check_object_id(agent_id, "agent")
    with Session(db_engine) as session:
        task = get_or_404(session, Task, task_id, "Task")
        agent = get_or_404(session, Agent, agent_id, "Agent")
        assignment.unassign(task, agent)
        session.add(task)
        session.add(agent)
        session.commit()
        data = _assignment_response(session, task, agent)
    return SuccessResponse(data=data, message="Task unassigned successfully")


@router.get("/tasks/{task_id}", response_model=SuccessResponse[TaskResponse])
async def get_task(task_id: str) -> SuccessResponse[TaskResponse]:
    task_id = check_object_id(task_id, "task")
    with Session(db_engine) as session:
        task = get_or_404(session, Task, task_id, "Task")
        data = task_responses(session, [task])[0]
    return SuccessResponse(data=data)


@router.put("/tasks/{task_id}", response_model=SuccessResponse[TaskResponse])
async def update_task(task_id: str, request: UpdateTaskRequest) -> SuccessResponse[TaskResponse]:
    """Apply plain field edits, then any pairing change through the engine.

    A status edit alone never touches the pairing.
    """
    task_id = check_object_id(task_id, "task")
    with Session(db_engine) as session:
        task = get_or_404(session, Task, task_id, "Task")

        update_data = request.model_dump(exclude_unset=True)
        pairing_change = "agent_id" in update_data
        new_agent_id = update_data.pop("agent_id", None)

        if update_data.get("dependencies") is not None:
            update_data["dependencies"] = _checked_dependencies(
                session, task.id, task.project_id, update_data["dependencies"]
            )
        for key, value in update_data.items():
            if value is None and key not in _NULLABLE_FIELDS:
                continue
            setattr(task, key, value)
        task.updated_at = datetime.now(timezone.utc)

        if pairing_change:
            _reassign(session, task, new_agent_id)

        session.add(task)
        session.commit()
        session.refresh(task)
        data = task_responses(session, [task])[0]
    return SuccessResponse(data=data, message="Task updated successfully")


@router.delete("/tasks/{task_id}", response_model=SuccessResponse[None])
async def delete_task(task_id: str) -> SuccessResponse[None]:
    """Delete a task, freeing its agent and pruning it from dependency lists and sessions."""
    task_id = check_object_id(task_id, "task")
    with Session(db_engine) as session:
        task = get_or_404(session, Task, task_id, "Task")
        agent = session.get(Agent, task.agent_id) if task.agent_id else None
        others = session.exec(
            select(Task).where(Task.project_id == task.project_id, Task.id != task.id)
        ).all()

        for changed in assignment.release_task(task, agent, others):
            session.add(changed)
        if agent is not None:
            session.add(agent)
        prune_session_member(session, task.project_id, "tasks", task.id)

        session.delete(task)
        session.commit()
    logger.info("Deleted task %s", task_id)
    return SuccessResponse(data=None, message="Task deleted successfully")
