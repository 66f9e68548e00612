"""Async HTTP client for the Tracer REST API.

Every call returns an ``ApiResponse``. HTTP error statuses and transport
failures are folded into ``success=False`` with the server's error text, so
callers branch on the envelope instead of catching exceptions.

Usage:
    async with ApiClient() as client:
        resp = await client.projects.list(status="active")
        if resp.success:
            ...
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tracer.client.models import ApiResponse
from tracer.config import settings

logger = logging.getLogger(__name__)


def _clean(params: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


class ApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        key = settings.tracer_api_key if api_key is None else api_key
        if key:
            headers["Authorization"] = f"Bearer {key}"
        self._http = httpx.AsyncClient(
            base_url=(base_url or settings.api_base_url).rstrip("/"),
            headers=headers,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            transport=transport,
        )
        self.projects = _Projects(self)
        self.tasks = _Tasks(self)
        self.agents = _Agents(self)
        self.planning_sessions = _PlanningSessions(self)

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> ApiResponse:
        try:
            resp = await self._http.request(method, path, params=_clean(params or {}), json=json)
        except httpx.HTTPError as e:
            logger.warning("API request %s %s failed: %s", method, path, e)
            return ApiResponse(success=False, error=str(e) or type(e).__name__, code="NETWORK_ERROR")

        try:
            body = resp.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            if resp.is_success:
                return ApiResponse(success=True, data=body, status_code=resp.status_code)
            return ApiResponse(success=False, error=f"HTTP {resp.status_code}", status_code=resp.status_code)

        if resp.is_error:
            logger.debug("API request %s %s returned %d: %s", method, path, resp.status_code, body.get("error"))
            return ApiResponse(
                success=False,
                error=body.get("error") or f"HTTP {resp.status_code}",
                code=body.get("code"),
                status_code=resp.status_code,
            )
        return ApiResponse.model_validate({**body, "success": True, "status_code": resp.status_code})

    async def get(self, path: str, **params: Any) -> ApiResponse:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, data: dict[str, Any] | None = None) -> ApiResponse:
        return await self.request("POST", path, json=data)

    async def put(self, path: str, data: dict[str, Any] | None = None) -> ApiResponse:
        return await self.request("PUT", path, json=data)

    async def delete(self, path: str, **params: Any) -> ApiResponse:
        return await self.request("DELETE", path, params=params)


class _Resource:
    path = ""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list(self, **filters: Any) -> ApiResponse:
        return await self._client.get(self.path, **filters)

    async def get(self, entity_id: str) -> ApiResponse:
        return await self._client.get(f"{self.path}/{entity_id}")

    async def create(self, data: dict[str, Any]) -> ApiResponse:
        return await self._client.post(self.path, data)

    async def update(self, entity_id: str, data: dict[str, Any]) -> ApiResponse:
        return await self._client.put(f"{self.path}/{entity_id}", data)

    async def delete(self, entity_id: str) -> ApiResponse:
        return await self._client.delete(f"{self.path}/{entity_id}")


class _Projects(_Resource):
    path = "/projects"

    async def stats(self, project_id: str) -> ApiResponse:
        return await self._client.get(f"{self.path}/{project_id}/stats")

    async def board(self, project_id: str) -> ApiResponse:
        return await self._client.get(f"{self.path}/{project_id}/board")

    async def activity(
        self,
        project_id: str,
        type: str | None = None,
        search: str | None = None,
        timeframe: str | None = None,
    ) -> ApiResponse:
        return await self._client.get(
            f"{self.path}/{project_id}/activity", type=type, search=search, timeframe=timeframe
        )


class _Tasks(_Resource):
    path = "/tasks"

    async def assign(self, task_id: str, agent_id: str) -> ApiResponse:
        return await self._client.post(f"{self.path}/assign", {"task_id": task_id, "agent_id": agent_id})

    async def unassign(self, task_id: str, agent_id: str) -> ApiResponse:
        return await self._client.delete(f"{self.path}/assign", task_id=task_id, agent_id=agent_id)


class _Agents(_Resource):
    path = "/agents"


class _PlanningSessions(_Resource):
    path = "/planning-sessions"
