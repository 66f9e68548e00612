"""Tests for the Tasks API, including assignment and cleanup on delete."""

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
    resp = client.post("/api/v1/projects", json={"name": "Gemini", "description": "Orbit"})
    return resp.json()["data"]["id"]


def _create_task(client, project_id, **overrides):
    payload = {"project_id": project_id, "title": "Dock", "description": "Rendezvous", **overrides}
    resp = client.post("/api/v1/tasks", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def _create_agent(client, project_id, **overrides):
    payload = {"project_id": project_id, "name": "Grace", "type": "fullstack", **overrides}
    resp = client.post("/api/v1/agents", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def _agent(client, agent_id):
    return client.get(f"/api/v1/agents/{agent_id}").json()["data"]


def _task(client, task_id):
    return client.get(f"/api/v1/tasks/{task_id}").json()["data"]


class TestCreate:
    def test_defaults_and_populated_project(self):
        client = _client()
        project_id = _project_id(client)
        task = _create_task(client, project_id)
        assert task["status"] == "pending"
        assert task["priority"] == "medium"
        assert task["progress_percentage"] == 0
        assert task["project"]["id"] == project_id
        assert task["agent"] is None
        assert task["actual_hours"] == 0

    def test_unknown_project_is_404(self):
        client = _client()
        resp = client.post(
            "/api/v1/tasks",
            json={"project_id": new_object_id(), "title": "t", "description": "d"},
        )
        assert resp.status_code == 404

    def test_malformed_project_id_is_400(self):
        client = _client()
        resp = client.post("/api/v1/tasks", json={"project_id": "xyz", "title": "t", "description": "d"})
        assert resp.status_code == 400
        assert resp.json()["details"][0]["field"] == "project_id"

    def test_negative_hours_rejected(self):
        client = _client()
        project_id = _project_id(client)
        resp = client.post(
            "/api/v1/tasks",
            json={"project_id": project_id, "title": "t", "description": "d", "estimated_hours": -1},
        )
        assert resp.status_code == 400

    def test_create_with_agent_pairs_both_sides(self):
        client = _client()
        project_id = _project_id(client)
        agent = _create_agent(client, project_id)
        task = _create_task(client, project_id, agent_id=agent["id"])
        assert task["status"] == "in-progress"
        assert task["agent"]["id"] == agent["id"]
        refreshed = _agent(client, agent["id"])
        assert refreshed["status"] == "working"
        assert refreshed["current_task_id"] == task["id"]
        assert refreshed["is_available"] is False

    def test_create_with_busy_agent_is_409_and_not_saved(self):
        client = _client()
        project_id = _project_id(client)
        agent = _create_agent(client, project_id, status="busy")
        resp = client.post(
            "/api/v1/tasks",
            json={"project_id": project_id, "title": "t", "description": "d", "agent_id": agent["id"]},
        )
        assert resp.status_code == 409
        listed = client.get("/api/v1/tasks", params={"project_id": project_id}).json()
        assert listed["pagination"]["total"] == 0

    def test_dependencies_are_populated(self):
        client = _client()
        project_id = _project_id(client)
        base = _create_task(client, project_id, title="Base")
        top = _create_task(client, project_id, dependencies=[base["id"], base["id"]])
        assert top["dependencies"] == [base["id"]]
        assert top["dependency_details"][0]["title"] == "Base"

    def test_unknown_dependency_rejected(self):
        client = _client()
        project_id = _project_id(client)
        resp = client.post(
            "/api/v1/tasks",
            json={
                "project_id": project_id,
                "title": "t",
                "description": "d",
                "dependencies": [new_object_id()],
            },
        )
        assert resp.status_code == 400


class TestAssignment:
    def test_assign_then_conflict_then_unassign(self):
        client = _client()
        project_id = _project_id(client)
        t1 = _create_task(client, project_id, title="T1")
        t2 = _create_task(client, project_id, title="T2")
        a1 = _create_agent(client, project_id)

        resp = client.post("/api/v1/tasks/assign", json={"task_id": t1["id"], "agent_id": a1["id"]})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["task"]["status"] == "in-progress"
        assert data["agent"]["status"] == "working"
        assert data["agent"]["current_task"]["id"] == t1["id"]

        resp = client.post("/api/v1/tasks/assign", json={"task_id": t2["id"], "agent_id": a1["id"]})
        assert resp.status_code == 409
        assert resp.json()["code"] == "CONFLICT"
        assert _task(client, t2["id"])["agent_id"] is None

        resp = client.delete("/api/v1/tasks/assign", params={"task_id": t1["id"], "agent_id": a1["id"]})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["task"]["status"] == "pending"
        assert data["task"]["agent_id"] is None
        assert data["agent"]["status"] == "idle"
        assert data["agent"]["current_task_id"] is None

    def test_unassign_wrong_agent_is_400(self):
        client = _client()
        project_id = _project_id(client)
        holder = _create_agent(client, project_id, name="Holder")
        other = _create_agent(client, project_id, name="Other")
        task = _create_task(client, project_id, agent_id=holder["id"])
        resp = client.delete("/api/v1/tasks/assign", params={"task_id": task["id"], "agent_id": other["id"]})
        assert resp.status_code == 400
        assert _task(client, task["id"])["agent_id"] == holder["id"]

    def test_assign_unknown_agent_is_404(self):
        client = _client()
        project_id = _project_id(client)
        task = _create_task(client, project_id)
        resp = client.post("/api/v1/tasks/assign", json={"task_id": task["id"], "agent_id": new_object_id()})
        assert resp.status_code == 404

    def test_assign_requires_both_ids(self):
        client = _client()
        resp = client.post("/api/v1/tasks/assign", json={"task_id": new_object_id()})
        assert resp.status_code == 400


class TestUpdate:
    def test_plain_field_update(self):
        client = _client()
        project_id = _project_id(client)
        task = _create_task(client, project_id, estimated_hours=5)
        resp = client.put(f"/api/v1/tasks/{task['id']}", json={"priority": "urgent", "estimated_hours": None})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["priority"] == "urgent"
        assert data["estimated_hours"] is None
        assert data["title"] == "Dock"

    def test_reassign_moves_the_pairing(self):
        client = _client()
        project_id = _project_id(client)
        first = _create_agent(client, project_id, name="First")
        second = _create_agent(client, project_id, name="Second")
        task = _create_task(client, project_id, agent_id=first["id"])

        resp = client.put(f"/api/v1/tasks/{task['id']}", json={"agent_id": second["id"]})
        assert resp.status_code == 200
        assert resp.json()["data"]["agent_id"] == second["id"]
        assert _agent(client, first["id"])["status"] == "idle"
        assert _agent(client, second["id"])["current_task_id"] == task["id"]

    def test_null_agent_unassigns(self):
        client = _client()
        project_id = _project_id(client)
        agent = _create_agent(client, project_id)
        task = _create_task(client, project_id, agent_id=agent["id"])
        resp = client.put(f"/api/v1/tasks/{task['id']}", json={"agent_id": None})
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "pending"
        assert _agent(client, agent["id"])["status"] == "idle"

    def test_reassign_to_busy_agent_leaves_everything_unchanged(self):
        client = _client()
        project_id = _project_id(client)
        holder = _create_agent(client, project_id, name="Holder")
        busy = _create_agent(client, project_id, name="Busy", status="busy")
        task = _create_task(client, project_id, agent_id=holder["id"])
        resp = client.put(f"/api/v1/tasks/{task['id']}", json={"agent_id": busy["id"], "title": "Renamed"})
        assert resp.status_code == 409
        current = _task(client, task["id"])
        assert current["agent_id"] == holder["id"]
        assert current["title"] == "Dock"
        assert _agent(client, holder["id"])["status"] == "working"

    def test_self_dependency_rejected(self):
        client = _client()
        project_id = _project_id(client)
        task = _create_task(client, project_id)
        resp = client.put(f"/api/v1/tasks/{task['id']}", json={"dependencies": [task["id"]]})
        assert resp.status_code == 400


def test_list_tasks_orders_by_priority_then_newest():
    client = _client()
    project_id = _project_id(client)
    low = _create_task(client, project_id, priority="low")
    urgent = _create_task(client, project_id, priority="urgent")
    medium_old = _create_task(client, project_id)
    medium_new = _create_task(client, project_id)
    resp = client.get("/api/v1/tasks", params={"project_id": project_id})
    ids = [t["id"] for t in resp.json()["data"]]
    assert ids == [urgent["id"], medium_new["id"], medium_old["id"], low["id"]]


def test_list_tasks_filters():
    client = _client()
    project_id = _project_id(client)
    agent = _create_agent(client, project_id)
    held = _create_task(client, project_id, agent_id=agent["id"])
    _create_task(client, project_id, status="blocked")
    by_agent = client.get("/api/v1/tasks", params={"agent_id": agent["id"]}).json()["data"]
    assert [t["id"] for t in by_agent] == [held["id"]]
    blocked = client.get("/api/v1/tasks", params={"project_id": project_id, "status": "blocked"}).json()
    assert blocked["pagination"]["total"] == 1
    assert client.get("/api/v1/tasks", params={"agent_id": "nope"}).status_code == 400


def test_delete_task_releases_agent_and_prunes_references():
    client = _client()
    project_id = _project_id(client)
    agent = _create_agent(client, project_id)
    doomed = _create_task(client, project_id, agent_id=agent["id"])
    dependent = _create_task(client, project_id, dependencies=[doomed["id"]])
    planning = client.post(
        "/api/v1/planning-sessions",
        json={"project_id": project_id, "name": "S", "description": "D", "tasks": [doomed["id"], dependent["id"]]},
    ).json()["data"]

    resp = client.delete(f"/api/v1/tasks/{doomed['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"] is None

    assert client.get(f"/api/v1/tasks/{doomed['id']}").status_code == 404
    freed = _agent(client, agent["id"])
    assert freed["status"] == "idle"
    assert freed["current_task_id"] is None
    assert _task(client, dependent["id"])["dependencies"] == []
    refreshed = client.get(f"/api/v1/planning-sessions/{planning['id']}").json()["data"]
    assert refreshed["tasks"] == [dependent["id"]]
