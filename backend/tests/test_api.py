# backend/tests/test_api.py

import logging
from datetime import timedelta

import httpx
import pytest
import pytest_asyncio

from taskdesk.core.auth import issue_session_token
from taskdesk.core.database import get_db
from taskdesk.core.utils import utcnow
from taskdesk.main import app
from taskdesk.services import task_service


@pytest_asyncio.fixture()
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def tokens(db, people) -> dict:
    return {
        name: {"Authorization": f"Bearer {await issue_session_token(db, getattr(people, name).id)}"}
        for name in ("admin", "manager", "alice", "carol")
    }


@pytest.mark.asyncio
async def test_health(client) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["x-request-id"]


@pytest.mark.asyncio
async def test_missing_session_is_401_envelope(client, people) -> None:
    response = await client.post("/tasks", json={"title": "x", "list_id": "y"})

    assert response.status_code == 401
    assert response.json() == {"error": {"message": "Unauthorized", "details": None}}


@pytest.mark.asyncio
async def test_body_validation_is_400(client, tokens) -> None:
    response = await client.post("/tasks", json={"title": ""}, headers=tokens["alice"])

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid request body"


@pytest.mark.asyncio
async def test_delegated_task_flow(client, people, tokens) -> None:
    created = await client.post(
        f"/tasks/team/{people.alice.id}",
        json={"title": "Ship release notes", "list_id": people.lists[people.alice.id]},
        headers=tokens["manager"],
    )
    assert created.status_code == 201
    task = created.json()
    assert task["user_id"] == people.alice.id
    assert task["created_by_user_id"] == people.manager.id

    rename = await client.patch(f"/tasks/{task['id']}", json={"title": "Mine"}, headers=tokens["alice"])
    finish = await client.patch(f"/tasks/{task['id']}", json={"status": "done"}, headers=tokens["alice"])
    discard = await client.delete(f"/tasks/{task['id']}", headers=tokens["alice"])

    assert rename.status_code == 403
    assert rename.json()["error"]["details"] == {"blockedFields": ["title"]}
    assert finish.status_code == 200
    assert finish.json()["status"] == "done"
    assert finish.json()["completed_at"] is not None
    assert discard.status_code == 403

    own = await client.post(
        "/tasks", json={"title": "Own", "list_id": people.lists[people.alice.id]}, headers=tokens["alice"]
    )
    removed = await client.delete(f"/tasks/{own.json()['id']}", headers=tokens["alice"])
    assert removed.status_code == 200
    assert removed.json() == {"ok": True, "deleted": own.json()["id"]}


@pytest.mark.asyncio
async def test_admin_routes(client, people, tokens) -> None:
    forbidden = await client.post(
        f"/admin/users/{people.manager.id}/remove-manager-role", json={}, headers=tokens["manager"]
    )
    assert forbidden.status_code == 403

    demoted = await client.post(
        f"/admin/users/{people.manager.id}/remove-manager-role", json={"next_role": "user"}, headers=tokens["admin"]
    )
    assert demoted.status_code == 200
    body = demoted.json()
    assert body["user"]["role"] == "user"
    assert body["unassigned_users_count"] == 2

    # sessions of the demoted manager were revoked
    stale = await client.get("/admin/audit-logs", headers=tokens["manager"])
    assert stale.status_code == 401

    logs = await client.get("/admin/audit-logs", params={"target_user_id": people.manager.id}, headers=tokens["admin"])
    assert logs.status_code == 200
    assert [entry["action"] for entry in logs.json()] == ["remove_manager_role"]


@pytest.mark.asyncio
async def test_admin_assign_and_patch(client, people, tokens) -> None:
    assigned = await client.put(
        f"/admin/users/{people.carol.id}/manager", json={"manager_id": people.manager.id}, headers=tokens["admin"]
    )
    assert assigned.status_code == 200
    assert assigned.json()["manager_id"] == people.manager.id

    deactivated = await client.patch(
        f"/admin/users/{people.carol.id}", json={"is_active": False}, headers=tokens["admin"]
    )
    assert deactivated.status_code == 200
    assert deactivated.json()["is_active"] is False


@pytest.mark.asyncio
async def test_reminder_dispatch_route(client, people, tokens) -> None:
    task = await client.post(
        "/tasks", json={"title": "Call", "list_id": people.lists[people.carol.id]}, headers=tokens["carol"]
    )
    await client.post(
        "/reminders",
        json={
            "message": "Call now",
            "remind_at": (utcnow() - timedelta(minutes=1)).isoformat(),
            "task_id": task.json()["id"],
        },
        headers=tokens["carol"],
    )

    first = await client.post("/reminders/dispatch", headers=tokens["carol"])
    second = await client.post("/reminders/dispatch", headers=tokens["carol"])

    assert first.status_code == 200
    assert len(first.json()) == 1
    assert first.json()[0]["is_sent"] is True
    assert second.json() == []


@pytest.mark.asyncio
async def test_unhandled_error_returns_internal_envelope(client, people, tokens, monkeypatch) -> None:
    async def boom(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(task_service, "create_task", boom)

    response = await client.post(
        "/tasks", json={"title": "x", "list_id": people.lists[people.alice.id]}, headers=tokens["alice"]
    )

    assert response.status_code == 500
    assert response.json() == {"error": {"message": "Internal server error", "details": None}}


@pytest.mark.asyncio
async def test_list_then_task_over_http(client, people, tokens) -> None:
    created = await client.post("/lists", json={"title": "Sprint", "description": None}, headers=tokens["alice"])
    assert created.status_code == 201
    list_id = created.json()["id"]
    assert created.json()["user_id"] == people.alice.id

    task = await client.post("/tasks", json={"title": "Write tests", "list_id": list_id}, headers=tokens["alice"])
    assert task.status_code == 201
    assert task.json()["list_id"] == list_id

    nulled = await client.patch(f"/tasks/{task.json()['id']}", json={"priority": None}, headers=tokens["alice"])
    assert nulled.status_code == 400
    assert nulled.json()["error"]["details"] == {"fields": ["priority"]}

    renamed = await client.patch(f"/lists/{list_id}", json={"title": "Sprint 2"}, headers=tokens["alice"])
    listed = await client.get("/lists", params={"q": "sprint"}, headers=tokens["alice"])
    missing = await client.patch("/lists/no-such-list", json={"title": "x"}, headers=tokens["alice"])
    removed = await client.delete(f"/lists/{list_id}", headers=tokens["alice"])

    assert renamed.json()["title"] == "Sprint 2"
    assert [row["id"] for row in listed.json()] == [list_id]
    assert missing.status_code == 404
    assert missing.json()["error"]["message"] == "List not found"
    assert removed.json() == {"ok": True, "deleted": list_id}


@pytest.mark.asyncio
async def test_completion_log_names_the_actor(client, people, tokens, caplog) -> None:
    caplog.set_level(logging.INFO, logger="taskdesk")

    ok = await client.post("/lists", json={"title": "Logged"}, headers=tokens["alice"])
    denied = await client.post(
        "/lists", json={"title": "Not yours", "user_id": people.bob.id}, headers=tokens["alice"]
    )

    completed = [record for record in caplog.records if record.getMessage() == "Request completed"]
    by_request = {record.request_id: record for record in completed}
    ok_record = by_request[ok.headers["x-request-id"]]
    denied_record = by_request[denied.headers["x-request-id"]]

    assert ok_record.user_id == people.alice.id
    assert ok_record.status_code == 201
    assert ok_record.levelno == logging.INFO
    assert denied_record.user_id == people.alice.id
    assert denied_record.status_code == 403
    assert denied_record.levelno == logging.WARNING
