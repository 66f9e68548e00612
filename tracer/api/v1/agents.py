"""Agents API: CRUD for the workers tasks are assigned to.

GET    /api/v1/agents          list (filters: project_id, type, status)
POST   /api/v1/agents          create
GET    /api/v1/agents/{id}     single agent with current task and recent task history
PUT    /api/v1/agents/{id}     update (status edits guarded by the assignment rules)
DELETE /api/v1/agents/{id}     delete, releasing any task it holds
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
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
    AgentDetailResponse,
    AgentResponse,
    agent_responses,
    get_or_404,
    task_ref,
)
from tracer.api.v1.planning_sessions import prune_session_member
from tracer.db.database import engine as db_engine
from tracer.engines import assignment
from tracer.errors import ValidationError
from tracer.models import Agent, Project, Task
from tracer.models.agent import AgentStatus, AgentType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["agents"])

TASK_HISTORY_LIMIT = 10


def _clean_capabilities(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    cleaned = []
    for cap in value:
        cap = cap.strip()
        if not cap:
            raise ValueError("capabilities must be non-empty strings")
        if len(cap) > 50:
            raise ValueError("each capability must be at most 50 characters")
        if cap not in cleaned:
            cleaned.append(cap)
    return cleaned


# === Request Models ===


class CreateAgentRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    project_id: ObjectIdStr
    name: str = Field(min_length=1, max_length=100)
    type: AgentType
    status: AgentStatus = "idle"
    capabilities: list[str] = Field(default_factory=list)
    efficiency: float = Field(default=0.8, ge=0.0, le=1.0)

    @field_validator("capabilities")
    @classmethod
    def check_capabilities(cls, value: list[str] | None) -> list[str] | None:
        return _clean_capabilities(value)


class UpdateAgentRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    type: AgentType | None = None
    status: AgentStatus | None = None
    capabilities: list[str] | None = None
    efficiency: float | None = Field(default=None, ge=0.0, le=1.0)

    @field_validator("capabilities")
    @classmethod
    def check_capabilities(cls, value: list[str] | None) -> list[str] | None:
        return _clean_capabilities(value)


# === Endpoints ===


@router.get("/agents", response_model=SuccessResponse[list[AgentResponse]])
async def list_agents(
    project_id: str | None = Query(default=None),
    agent_type: AgentType | None = Query(default=None, alias="type"),
    status: AgentStatus | None = Query(default=None),
    params: PageParams = Depends(page_params),
) -> SuccessResponse[list[AgentResponse]]:
    """List agents ordered by type, then name."""
    project_id = check_object_id(project_id, "project")
    conditions = []
    if project_id:
        conditions.append(Agent.project_id == project_id)
    if agent_type:
        conditions.append(Agent.type == agent_type)
    if status:
        conditions.append(Agent.status == status)

    with Session(db_engine) as session:
        total = session.exec(select(func.count()).select_from(Agent).where(*conditions)).one()
        rows = session.exec(
            select(Agent)
            .where(*conditions)
            .order_by(Agent.type, Agent.name)
            .offset(params.offset)
            .limit(params.limit)
        ).all()
        data = agent_responses(session, list(rows))
    return SuccessResponse(data=data, pagination=paginate(params, total))


@router.post("/agents", response_model=SuccessResponse[AgentResponse], status_code=201)
async def create_agent(request: CreateAgentRequest) -> SuccessResponse[AgentResponse]:
    if request.status == "working":
        raise ValidationError("Agent can only start working through task assignment")
    agent = Agent(
        project_id=request.project_id,
        name=request.name,
        type=request.type,
        status=request.status,
        capabilities=request.capabilities,
        efficiency=request.efficiency,
    )
    with Session(db_engine) as session:
        get_or_404(session, Project, request.project_id, "Project")
        session.add(agent)
        session.commit()
        session.refresh(agent)
        data = agent_responses(session, [agent])[0]
    logger.info("Created agent %s (%s) in project %s", data.id, data.type, data.project_id)
    return SuccessResponse(data=data, message="Agent created successfully")


@router.get("/agents/{agent_id}", response_model=SuccessResponse[AgentDetailResponse])
async def get_agent(agent_id: str) -> SuccessResponse[AgentDetailResponse]:
    agent_id = check_object_id(agent_id, "agent")
    with Session(db_engine) as session:
        agent = get_or_404(session, Agent, agent_id, "Agent")
        history = session.exec(
            select(Task)
            .where(Task.agent_id == agent_id)
            .order_by(Task.updated_at.desc())
            .limit(TASK_HISTORY_LIMIT)
        ).all()
        base = agent_responses(session, [agent])[0]
        data = AgentDetailResponse(**base.model_dump(), task_history=[task_ref(t) for t in history])
    return SuccessResponse(data=data)


@router.put("/agents/{agent_id}", response_model=SuccessResponse[AgentResponse])
async def update_agent(agent_id: str, request: UpdateAgentRequest) -> SuccessResponse[AgentResponse]:
    agent_id = check_object_id(agent_id, "agent")
    with Session(db_engine) as session:
        agent = get_or_404(session, Agent, agent_id, "Agent")

        update_data = request.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in update_data:
            assignment.check_agent_status_change(agent, update_data["status"])
        for key, value in update_data.items():
            setattr(agent, key, value)
        agent.updated_at = datetime.now(timezone.utc)

        session.add(agent)
        session.commit()
        session.refresh(agent)
        data = agent_responses(session, [agent])[0]
    return SuccessResponse(data=data, message="Agent updated successfully")


@router.delete("/agents/{agent_id}", response_model=SuccessResponse[None])
async def delete_agent(agent_id: str) -> SuccessResponse[None]:
    """Delete an agent; tasks it held go back to pending."""
    agent_id = check_object_id(agent_id, "agent")
    with Session(db_engine) as session:
        agent = get_or_404(session, Agent, agent_id, "Agent")
        held = session.exec(select(Task).where(Task.agent_id == agent_id)).all()

        for task in assignment.release_agent(agent, held):
            session.add(task)
        prune_session_member(session, agent.project_id, "agents", agent.id)

        session.delete(agent)
        session.commit()
    logger.info("Deleted agent %s", agent_id)
    return SuccessResponse(data=None, message="Agent deleted successfully")
