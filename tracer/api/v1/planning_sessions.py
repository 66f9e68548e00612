"""Planning sessions API: CRUD for named groupings of a project's tasks and agents.

GET    /api/v1/planning-sessions        list (optional ?project_id=&status=, paginated)
POST   /api/v1/planning-sessions        create
GET    /api/v1/planning-sessions/{id}   single session with task and agent details
PUT    /api/v1/planning-sessions/{id}   update
DELETE /api/v1/planning-sessions/{id}   delete
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
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
    PlanningSessionResponse,
    agents_by_id,
    get_or_404,
    planning_session_responses,
    tasks_by_id,
)
from tracer.db.database import engine as db_engine
from tracer.errors import ValidationError
from tracer.models import PlanningSession, Project
from tracer.models.planning_session import SessionStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["planning-sessions"])


# === Request Models ===


class CreatePlanningSessionRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    project_id: ObjectIdStr
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    status: SessionStatus = "draft"
    tasks: list[ObjectIdStr] = Field(default_factory=list)
    agents: list[ObjectIdStr] = Field(default_factory=list)


class UpdatePlanningSessionRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    status: SessionStatus | None = None
    tasks: list[ObjectIdStr] | None = None
    agents: list[ObjectIdStr] | None = None


def _check_members(session: Session, project_id: str, task_ids: list[str], agent_ids: list[str]) -> None:
    """Every listed task and agent must exist and belong to the session's project."""
    tasks = tasks_by_id(session, task_ids)
    for task_id in task_ids:
        task = tasks.get(task_id)
        if task is None or task.project_id != project_id:
            raise ValidationError(
                f"Task {task_id} does not exist in this project",
                details={"task_id": task_id, "project_id": project_id},
            )
    agents = agents_by_id(session, agent_ids)
    for agent_id in agent_ids:
        agent = agents.get(agent_id)
        if agent is None or agent.project_id != project_id:
            raise ValidationError(
                f"Agent {agent_id} does not exist in this project",
                details={"agent_id": agent_id, "project_id": project_id},
            )


def _dedupe(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def prune_session_member(session: Session, project_id: str, field: str, member_id: str) -> int:
    """Drop a deleted task or agent id from every planning session of a project.

    ``field`` is "tasks" or "agents". Returns the number of sessions changed.
    """
    plannings = session.exec(select(PlanningSession).where(PlanningSession.project_id == project_id)).all()
    changed = 0
    now = datetime.now(timezone.utc)
    for planning in plannings:
        members = getattr(planning, field) or []
        if member_id in members:
            setattr(planning, field, [m for m in members if m != member_id])
            planning.updated_at = now
            session.add(planning)
            changed += 1
    return changed


# === Endpoints ===


@router.get("/planning-sessions", response_model=SuccessResponse[list[PlanningSessionResponse]])
async def list_planning_sessions(
    project_id: str | None = Query(default=None),
    status: SessionStatus | None = Query(default=None),
    params: PageParams = Depends(page_params),
) -> SuccessResponse[list[PlanningSessionResponse]]:
    """List planning sessions, newest first."""
    project_id = check_object_id(project_id, "project")
    conditions = []
    if project_id:
        conditions.append(PlanningSession.project_id == project_id)
    if status:
        conditions.append(PlanningSession.status == status)

    with Session(db_engine) as session:
        total = session.exec(select(func.count()).select_from(PlanningSession).where(*conditions)).one()
        rows = session.exec(
            select(PlanningSession)
            .where(*conditions)
            .order_by(PlanningSession.created_at.desc())
            .offset(params.offset)
            .limit(params.limit)
        ).all()
        data = planning_session_responses(session, list(rows))
    return SuccessResponse(data=data, pagination=paginate(params, total))


@router.post(
    "/planning-sessions",
    response_model=SuccessResponse[PlanningSessionResponse],
    status_code=201,
)
async def create_planning_session(
    request: CreatePlanningSessionRequest,
) -> SuccessResponse[PlanningSessionResponse]:
    task_ids = _dedupe(request.tasks)
    agent_ids = _dedupe(request.agents)
    with Session(db_engine) as session:
        get_or_404(session, Project, request.project_id, "Project")
        _check_members(session, request.project_id, task_ids, agent_ids)

        planning = PlanningSession(
            project_id=request.project_id,
            name=request.name,
            description=request.description,
            status=request.status,
            tasks=task_ids,
            agents=agent_ids,
        )
        session.add(planning)
        session.commit()
        session.refresh(planning)
        data = planning_session_responses(session, [planning])[0]
    logger.info("Created planning session %s in project %s", data.id, data.project_id)
    return SuccessResponse(data=data, message="Planning session created successfully")


@router.get("/planning-sessions/{session_id}", response_model=SuccessResponse[PlanningSessionResponse])
async def get_planning_session(session_id: str) -> SuccessResponse[PlanningSessionResponse]:
    session_id = check_object_id(session_id, "planning session")
    with Session(db_engine) as session:
        planning = get_or_404(session, PlanningSession, session_id, "Planning session")
        data = planning_session_responses(session, [planning])[0]
    return SuccessResponse(data=data)


@router.put("/planning-sessions/{session_id}", response_model=SuccessResponse[PlanningSessionResponse])
async def update_planning_session(
    session_id: str,
    request: UpdatePlanningSessionRequest,
) -> SuccessResponse[PlanningSessionResponse]:
    session_id = check_object_id(session_id, "planning session")
    with Session(db_engine) as session:
        planning = get_or_404(session, PlanningSession, session_id, "Planning session")

        update_data = request.model_dump(exclude_unset=True, exclude_none=True)
        if "tasks" in update_data:
            update_data["tasks"] = _dedupe(update_data["tasks"])
        if "agents" in update_data:
            update_data["agents"] = _dedupe(update_data["agents"])
        _check_members(
            session,
            planning.project_id,
            update_data.get("tasks", []),
            update_data.get("agents", []),
        )

        for key, value in update_data.items():
            setattr(planning, key, value)
        planning.updated_at = datetime.now(timezone.utc)

        session.add(planning)
        session.commit()
        session.refresh(planning)
        data = planning_session_responses(session, [planning])[0]
    return SuccessResponse(data=data, message="Planning session updated successfully")


@router.delete("/planning-sessions/{session_id}", response_model=SuccessResponse[None])
async def delete_planning_session(session_id: str) -> SuccessResponse[None]:
    session_id = check_object_id(session_id, "planning session")
    with Session(db_engine) as session:
        planning = get_or_404(session, PlanningSession, session_id, "Planning session")
        session.delete(planning)
        session.commit()
    return SuccessResponse(data=None, message="Planning session deleted successfully")
