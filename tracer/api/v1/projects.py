"""Projects API: CRUD plus derived stats, board and activity views.

GET    /api/v1/projects                 list (optional ?status=, paginated)
POST   /api/v1/projects                 create
GET    /api/v1/projects/{id}            project with tasks, agents, sessions and summary
PUT    /api/v1/projects/{id}            update
DELETE /api/v1/projects/{id}            delete, cascading to tasks, agents and sessions
GET    /api/v1/projects/{id}/stats      aggregate statistics
GET    /api/v1/projects/{id}/board      kanban, dependency graph and timeline
GET    /api/v1/projects/{id}/activity   derived activity feed
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session, func, select

from tracer.api.responses import PageParams, SuccessResponse, check_object_id, page_params, paginate
from tracer.api.schemas import (
    AgentResponse,
    PlanningSessionResponse,
    ProjectRef,
    ProjectResponse,
    TaskResponse,
    agent_responses,
    get_or_404,
    planning_session_responses,
    project_ref,
    project_response,
    task_responses,
)
from tracer.db.database import engine as db_engine
from tracer.engines import statistics
from tracer.engines.activity import Activity, ActivityFilter, Timeframe, build_activity_feed, filter_activities
from tracer.engines.board import BoardView, build_board
from tracer.models import Agent, PlanningSession, Project, Task
from tracer.models.project import ProjectStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["projects"])


# === Request / Response Models ===


class CreateProjectRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    status: ProjectStatus = "active"


class UpdateProjectRequest(BaseModel):
    """All fields optional; only the ones sent are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    status: ProjectStatus | None = None


class ProjectDetailResponse(ProjectResponse):
    tasks: list[TaskResponse] = Field(default_factory=list)
    agents: list[AgentResponse] = Field(default_factory=list)
    planning_sessions: list[PlanningSessionResponse] = Field(default_factory=list)
    stats: statistics.ProjectSummary


class ProjectStatsResponse(BaseModel):
    project: ProjectRef
    tasks: statistics.TaskStats
    agents: statistics.AgentStats
    planning: statistics.PlanningStats
    timeline: statistics.ProjectTimeline
    productivity: statistics.ProductivityMetrics


def _project_children(session: Session, project_id: str) -> tuple[list[Task], list[Agent], list[PlanningSession]]:
    tasks = session.exec(
        select(Task).where(Task.project_id == project_id).order_by(Task.created_at.desc())
    ).all()
    agents = session.exec(
        select(Agent).where(Agent.project_id == project_id).order_by(Agent.type, Agent.name)
    ).all()
    plannings = session.exec(
        select(PlanningSession)
        .where(PlanningSession.project_id == project_id)
        .order_by(PlanningSession.created_at.desc())
    ).all()
    return list(tasks), list(agents), list(plannings)


# === Endpoints ===


@router.get("/projects", response_model=SuccessResponse[list[ProjectResponse]])
async def list_projects(
    status: ProjectStatus | None = Query(default=None),
    params: PageParams = Depends(page_params),
) -> SuccessResponse[list[ProjectResponse]]:
    """List projects, newest first."""
    with Session(db_engine) as session:
        conditions = [Project.status == status] if status else []
        total = session.exec(select(func.count()).select_from(Project).where(*conditions)).one()
        rows = session.exec(
            select(Project)
            .where(*conditions)
            .order_by(Project.created_at.desc())
            .offset(params.offset)
            .limit(params.limit)
        ).all()
        data = [project_response(p) for p in rows]
    return SuccessResponse(data=data, pagination=paginate(params, total))


@router.post("/projects", response_model=SuccessResponse[ProjectResponse], status_code=201)
async def create_project(request: CreateProjectRequest) -> SuccessResponse[ProjectResponse]:
    project = Project(name=request.name, description=request.description, status=request.status)
    with Session(db_engine) as session:
        session.add(project)
        session.commit()
        session.refresh(project)
        data = project_response(project)
    logger.info("Created project %s", data.id)
    return SuccessResponse(data=data, message="Project created successfully")


@router.get("/projects/{project_id}", response_model=SuccessResponse[ProjectDetailResponse])
async def get_project(project_id: str) -> SuccessResponse[ProjectDetailResponse]:
    """Single project with its tasks, agents, planning sessions and headline counts."""
    project_id = check_object_id(project_id, "project")
    with Session(db_engine) as session:
        project = get_or_404(session, Project, project_id, "Project")
        tasks, agents, plannings = _project_children(session, project_id)
        data = ProjectDetailResponse(
            **project_response(project).model_dump(),
            tasks=task_responses(session, tasks),
            agents=agent_responses(session, agents),
            planning_sessions=planning_session_responses(session, plannings),
            stats=statistics.summarize_project(tasks, agents, plannings),
        )
    return SuccessResponse(data=data)


@router.put("/projects/{project_id}", response_model=SuccessResponse[ProjectResponse])
async def update_project(project_id: str, request: UpdateProjectRequest) -> SuccessResponse[ProjectResponse]:
    project_id = check_object_id(project_id, "project")
    with Session(db_engine) as session:
        project = get_or_404(session, Project, project_id, "Project")

        update_data = request.model_dump(exclude_unset=True, exclude_none=True)
        for key, value in update_data.items():
            setattr(project, key, value)
        project.updated_at = datetime.now(timezone.utc)

        session.add(project)
        session.commit()
        session.refresh(project)
        data = project_response(project)
    return SuccessResponse(data=data, message="Project updated successfully")


@router.delete("/projects/{project_id}", response_model=SuccessResponse[None])
async def delete_project(project_id: str) -> SuccessResponse[None]:
    """Delete a project together with everything that references it."""
    project_id = check_object_id(project_id, "project")
    with Session(db_engine) as session:
        project = get_or_404(session, Project, project_id, "Project")
        tasks, agents, plannings = _project_children(session, project_id)
        for row in (*tasks, *agents, *plannings):
            session.delete(row)
        session.delete(project)
        session.commit()
    logger.info("Deleted project %s and its tasks, agents and planning sessions", project_id)
    return SuccessResponse(data=None, message="Project deleted successfully")


@router.get("/projects/{project_id}/stats", response_model=SuccessResponse[ProjectStatsResponse])
async def get_project_stats(project_id: str) -> SuccessResponse[ProjectStatsResponse]:
    """Aggregate figures, recomputed from current state on every call."""
    project_id = check_object_id(project_id, "project")
    with Session(db_engine) as session:
        project = get_or_404(session, Project, project_id, "Project")
        tasks, agents, plannings = _project_children(session, project_id)
        task_stats = statistics.compute_task_stats(tasks)
        agent_stats = statistics.compute_agent_stats(agents)
        timeline = statistics.compute_timeline(project)
        data = ProjectStatsResponse(
            project=project_ref(project),
            tasks=task_stats,
            agents=agent_stats,
            planning=statistics.compute_planning_stats(plannings),
            timeline=timeline,
            productivity=statistics.compute_productivity(task_stats, agent_stats, timeline),
        )
    return SuccessResponse(data=data)


@router.get("/projects/{project_id}/board", response_model=SuccessResponse[BoardView])
async def get_project_board(project_id: str) -> SuccessResponse[BoardView]:
    project_id = check_object_id(project_id, "project")
    with Session(db_engine) as session:
        get_or_404(session, Project, project_id, "Project")
        tasks, agents, _ = _project_children(session, project_id)
        data = build_board(tasks, agents)
    return SuccessResponse(data=data)


@router.get("/projects/{project_id}/activity", response_model=SuccessResponse[list[Activity]])
async def get_project_activity(
    project_id: str,
    activity_type: ActivityFilter | None = Query(default=None, alias="type"),
    search: str | None = Query(default=None, max_length=200),
    timeframe: Timeframe = Query(default="all"),
) -> SuccessResponse[list[Activity]]:
    project_id = check_object_id(project_id, "project")
    with Session(db_engine) as session:
        get_or_404(session, Project, project_id, "Project")
        tasks, agents, _ = _project_children(session, project_id)
        feed = build_activity_feed(tasks, agents)
    return SuccessResponse(data=filter_activities(feed, activity_type=activity_type, search=search, timeframe=timeframe))
