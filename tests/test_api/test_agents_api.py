"""Tests for the Agents API."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from tracer.api.handlers import register_exception_handlers
from tracer.api.v1.agents import router as agents_router
from tracer.api.v1.planning_sessions import router as sessions_router
from tracer.api.v1.projects import router as projects_router
from tracer.api.v1.tasks import router as tasks_router
from tracer.db.database import create_db_and_tables
from tracer.models.ids import new_object_id


def _client():
    create_db_and_tables()
    test_app = FastAPI()
    register_exception_handlers(test_app)
    for router in (projects_router, tasks_router, agents_router, sessions_router):
        test_app.include_router(router)
    return TestClient(test_app)


def _project_id(client):
    resp = client.post("/api/v1/projects", json={"name": "Mercury", "description": "First flights"})
    return resp.json()["data"]["id"]


def _create_agent(client, project_id, **overrides):
    payload = {"project_id": project_id, "name": "Linus", "type": "devops", **overrides}
    resp = client.post("/api/v1/agents", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_create_agent_defaults():
    """POST /api/v1/agents starts idle with derived workload fields."""
    client = _client()
    project_id = _project_id(client)
    agent = _create_agent(client, project_id, capabilities=[" docker ", "k8s", "docker"])
    assert agent["status"] == "idle"
    assert agent["efficiency"] == 0.8
    assert agent["workload"] == "low"
    assert agent["is_available"] is True
    assert agent["capabilities"] == ["docker", "k8s"]
    assert agent["project"]["name"] == "Mercury"


def test_create_agent_cannot_start_working():
    client = _client()
    project_id = _project_id(client)
    resp = client.post(
        "/api/v1/agents",
        json={"project_id": project_id, "name": "x", "type": "ai", "status": "working"},
    )
    assert resp.status_code == 400


def test_create_agent_validation():
    client = _client()
    project_id = _project_id(client)
    bad_type = {"project_id": project_id, "name": "x", "type": "designer"}
    assert client.post("/api/v1/agents", json=bad_type).status_code == 400
    bad_eff = {"project_id": project_id, "name": "x", "type": "ai", "efficiency": 1.5}
    assert client.post("/api/v1/agents", json=bad_eff).status_code == 400
    blank_cap = {"project_id": project_id, "name": "x", "type": "ai", "capabilities": ["  "]}
    assert client.post("/api/v1/agents", json=blank_cap).status_code == 400


def test_create_agent_unknown_project_is_404():
    client = _client()
    resp = client.post("/api/v1/agents", json={"project_id": new_object_id(), "name": "x", "type": "ai"})
    assert resp.status_code == 404


def test_get_agent_with_task_history():
    client = _client()
    project_id = _project_id(client)
    agent = _create_agent(client, project_id)
    task = client.post(
        "/api/v1/tasks",
        json={"project_id": project_id, "title": "Patch", "description": "d", "agent_id": agent["id"]},
    ).json()["data"]

    resp = client.get(f"/api/v1/agents/{agent['id']}")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "working"
    assert data["workload"] == "high"
    assert data["current_task"]["id"] == task["id"]
    assert [t["id"] for t in data["task_history"]] == [task["id"]]


def test_status_guard_on_update():
    client = _client()
    project_id = _project_id(client)
    agent = _create_agent(client, project_id)

    assert client.put(f"/api/v1/agents/{agent['id']}", json={"status": "working"}).status_code == 400
    resp = client.put(f"/api/v1/agents/{agent['id']}", json={"status": "suspended"})
    assert resp.status_code == 200
    assert resp.json()["data"]["workload"] == "none"

    client.put(f"/api/v1/agents/{agent['id']}", json={"status": "idle"})
    client.post(
        "/api/v1/tasks",
        json={"project_id": project_id, "title": "t", "description": "d", "agent_id": agent["id"]},
    )
    resp = client.put(f"/api/v1/agents/{agent['id']}", json={"status": "idle"})
    assert resp.status_code == 409


def test_update_agent_fields():
    client = _client()
    project_id = _project_id(client)
    agent = _create_agent(client, project_id)
    resp = client.put(f"/api/v1/agents/{agent['id']}", json={"name": "Torvalds", "efficiency": 0.95})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Torvalds"
    assert data["efficiency"] == 0.95
    assert data["type"] == "devops"


def test_list_agents_by_type_then_name():
    client = _client()
    project_id = _project_id(client)
    _create_agent(client, project_id, name="Zed", type="ai")
    _create_agent(client, project_id, name="Amy", type="frontend")
    _create_agent(client, project_id, name="Bob", type="ai")

    resp = client.get("/api/v1/agents", params={"project_id": project_id})
    names = [a["name"] for a in resp.json()["data"]]
    assert names == ["Bob", "Zed", "Amy"]

    resp = client.get("/api/v1/agents", params={"project_id": project_id, "type": "frontend"})
    assert [a["name"] for a in resp.json()["data"]] == ["Amy"]


def test_delete_agent_releases_task_and_prunes_sessions():
    client = _client()
    project_id = _project_id(client)
    agent = _create_agent(client, project_id)
    task = client.post(
        "/api/v1/tasks",
        json={"project_id": project_id, "title": "t", "description": "d", "agent_id": agent["id"]},
    ).json()["data"]
    planning = client.post(
        "/api/v1/planning-sessions",
        json={"project_id": project_id, "name": "S", "description": "D", "agents": [agent["id"]]},
    ).json()["data"]

    resp = client.delete(f"/api/v1/agents/{agent['id']}")
    assert resp.status_code == 200

    assert client.get(f"/api/v1/agents/{agent['id']}").status_code == 404
    released = client.get(f"/api/v1/tasks/{task['id']}").json()["data"]
    assert released["agent_id"] is None
    assert released["status"] == "pending"
    refreshed = client.get(f"/api/v1/planning-sessions/{planning['id']}").json()["data"]
    assert refreshed["agents"] == []


def test_delete_missing_agent_is_404():
    client = _client()
    assert client.delete(f"/api/v1/agents/{new_object_id()}").status_code == 404
