"""Async operations that talk to the API and feed results into a Store.

Each operation follows the same sequence: set loading, clear the error, call
the API, dispatch the result (or the error text), clear loading.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from tracer.client.api import ApiClient
from tracer.client.models import AgentRecord, ApiResponse, PlanningSessionRecord, ProjectRecord, TaskRecord
from tracer.state import actions as a
from tracer.state.store import Store

logger = logging.getLogger(__name__)

_projects = TypeAdapter(list[ProjectRecord])
_tasks = TypeAdapter(list[TaskRecord])
_agents = TypeAdapter(list[AgentRecord])
_sessions = TypeAdapter(list[PlanningSessionRecord])


class AppController:
    """Client-mode operations over an ApiClient, mirrored into a Store."""

    def __init__(self, client: ApiClient, store: Store | None = None) -> None:
        self.client = client
        self.store = store or Store()

    @property
    def state(self):
        return self.store.state

    async def _run(
        self,
        call: Callable[[], Awaitable[ApiResponse]],
        failure: str,
        on_success: Callable[[ApiResponse], Any],
    ) -> Any:
        """Run one API call with loading/error bookkeeping.

        Returns whatever ``on_success`` returns, or None on failure.
        """
        self.store.dispatch(a.SetLoading(loading=True))
        self.store.dispatch(a.SetError(error=None))
        try:
            resp = await call()
            if not resp.success:
                self.store.dispatch(a.SetError(error=resp.error or failure))
                return None
            try:
                return on_success(resp)
            except PydanticValidationError as e:
                logger.warning("%s: unexpected response shape: %s", failure, e)
                self.store.dispatch(a.SetError(error=failure))
                return None
        finally:
            self.store.dispatch(a.SetLoading(loading=False))

    # === Projects ===

    async def load_projects(self, **filters: Any) -> None:
        def done(resp: ApiResponse) -> None:
            self.store.dispatch(a.LoadProjects(projects=_projects.validate_python(resp.data or [])))

        await self._run(lambda: self.client.projects.list(**filters), "Failed to load projects", done)

    async def create_project(self, data: dict[str, Any]) -> ProjectRecord | None:
        def done(resp: ApiResponse) -> ProjectRecord:
            project = ProjectRecord.model_validate(resp.data)
            self.store.dispatch(a.CreateProject(project=project))
            return project

        return await self._run(lambda: self.client.projects.create(data), "Failed to create project", done)

    async def update_project(self, project_id: str, data: dict[str, Any]) -> ProjectRecord | None:
        def done(resp: ApiResponse) -> ProjectRecord:
            project = ProjectRecord.model_validate(resp.data)
            self.store.dispatch(a.UpdateProject(project_id=project_id, updates=project.model_dump()))
            return project

        return await self._run(
            lambda: self.client.projects.update(project_id, data), "Failed to update project", done
        )

    async def delete_project(self, project_id: str) -> bool:
        def done(resp: ApiResponse) -> bool:
            self.store.dispatch(a.DeleteProject(project_id=project_id))
            return True

        result = await self._run(lambda: self.client.projects.delete(project_id), "Failed to delete project", done)
        return bool(result)

    def set_current_project(self, project: ProjectRecord | None) -> None:
        self.store.dispatch(a.SetCurrentProject(project=project))

    async def load_project_data(self, project_id: str) -> None:
        """Load a project's tasks and agents (max page size each)."""

        def tasks_done(resp: ApiResponse) -> None:
            self.store.dispatch(a.LoadTasks(tasks=_tasks.validate_python(resp.data or [])))

        def agents_done(resp: ApiResponse) -> None:
            self.store.dispatch(a.LoadAgents(agents=_agents.validate_python(resp.data or [])))

        await self._run(
            lambda: self.client.tasks.list(project_id=project_id, limit=100), "Failed to load tasks", tasks_done
        )
        await self._run(
            lambda: self.client.agents.list(project_id=project_id, limit=100), "Failed to load agents", agents_done
        )

    # === Assignment ===

    def _apply_assignment(self, resp: ApiResponse) -> bool:
        payload = resp.data or {}
        self.store.dispatch(a.UpsertTask(task=TaskRecord.model_validate(payload["task"])))
        self.store.dispatch(a.UpsertAgent(agent=AgentRecord.model_validate(payload["agent"])))
        return True

    async def assign_task(self, task_id: str, agent_id: str) -> bool:
        result = await self._run(
            lambda: self.client.tasks.assign(task_id, agent_id), "Failed to assign task", self._apply_assignment
        )
        return bool(result)

    async def unassign_task(self, task_id: str, agent_id: str) -> bool:
        result = await self._run(
            lambda: self.client.tasks.unassign(task_id, agent_id), "Failed to unassign task", self._apply_assignment
        )
        return bool(result)

    # === Planning sessions ===

    async def load_planning_sessions(self, project_id: str | None = None) -> None:
        def done(resp: ApiResponse) -> None:
            self.store.dispatch(a.LoadPlanningSessions(sessions=_sessions.validate_python(resp.data or [])))

        await self._run(
            lambda: self.client.planning_sessions.list(project_id=project_id),
            "Failed to load planning sessions",
            done,
        )

    async def create_planning_session(self, data: dict[str, Any]) -> PlanningSessionRecord | None:
        def done(resp: ApiResponse) -> PlanningSessionRecord:
            session = PlanningSessionRecord.model_validate(resp.data)
            self.store.dispatch(a.CreatePlanningSession(session=session))
            return session

        return await self._run(
            lambda: self.client.planning_sessions.create(data), "Failed to create planning session", done
        )

    def set_current_session(self, session: PlanningSessionRecord | None) -> None:
        self.store.dispatch(a.SetCurrentSession(session=session))
