"""Task API tests: project-scoped and single-task routes.

Learn: These tests verify that tasks follow the same owner-or-admin rule
as their parent project, at both granularities:
1. Task CRUD through /projects/{id}/tasks and /tasks/{id}
2. Filters and the priority-then-newest ordering
3. Assignee validation (nothing persisted for an unknown assignee)
4. 403 for outsiders, success for admins
"""

import asyncio

import pytest
from sqlalchemy import func, select

from projectdesk.db.models import Task


async def _task(client, headers, project_id, **fields):
    r = await client.post(
        f"/api/projects/{project_id}/tasks",
        json={"title": "Task", **fields},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]


# ═══════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_task(client, owner, project):
    user, headers = owner
    r = await client.post(
        f"/api/projects/{project['id']}/tasks",
        json={
            "title": "Design heat shield",
            "priority": "high",
            "due_date": "2026-12-31T12:00:00Z",
            "assigned_to": user["id"],
        },
        headers=headers,
    )
    assert r.status_code == 201
    task = r.json()["data"]
    assert task["title"] == "Design heat shield"
    assert task["status"] == "pending"
    assert task["priority"] == "high"
    assert task["project_id"] == project["id"]
    assert task["assigned_to"] == user["id"]
    assert task["assignee"]["email"] == user["email"]


@pytest.mark.asyncio
async def test_create_task_defaults(client, owner, project):
    _, headers = owner
    task = await _task(client, headers, project["id"], title="Defaults")
    assert task["status"] == "pending"
    assert task["priority"] == "medium"
    assert task["assigned_to"] is None
    assert task["assignee"] is None


@pytest.mark.asyncio
async def test_create_task_requires_title(client, owner, project):
    _, headers = owner
    r = await client.post(f"/api/projects/{project['id']}/tasks", json={}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "task title is required"


@pytest.mark.asyncio
async def test_create_task_invalid_priority(client, owner, project):
    _, headers = owner
    r = await client.post(
        f"/api/projects/{project['id']}/tasks",
        json={"title": "Bad", "priority": "urgent"},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json()["message"].startswith("priority:")


@pytest.mark.asyncio
async def test_create_task_unknown_assignee(client, owner, project, db_session):
    """Unknown assignee → 404 and no task row written."""
    _, headers = owner
    r = await client.post(
        f"/api/projects/{project['id']}/tasks",
        json={"title": "Orphan", "assigned_to": 9999},
        headers=headers,
    )
    assert r.status_code == 404
    assert r.json()["message"] == "assigned user not found"

    count = await db_session.scalar(select(func.count()).select_from(Task))
    assert count == 0


@pytest.mark.asyncio
async def test_create_task_in_missing_project(client, owner):
    _, headers = owner
    r = await client.post("/api/projects/9999/tasks", json={"title": "Lost"}, headers=headers)
    assert r.status_code == 404
    assert r.json()["message"] == "project not found"


@pytest.mark.asyncio
async def test_outsider_cannot_create_or_list_tasks(client, other, project):
    _, headers = other
    r = await client.post(
        f"/api/projects/{project['id']}/tasks",
        json={"title": "Sneaky"},
        headers=headers,
    )
    assert r.status_code == 403

    r = await client.get(f"/api/projects/{project['id']}/tasks", headers=headers)
    assert r.status_code == 403


# ═══════════════════════════════════════════════════════════
# List
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_sorted_by_priority_then_newest(client, owner, project):
    _, headers = owner
    pid = project["id"]
    for title, priority in [
        ("low-old", "low"),
        ("high-old", "high"),
        ("medium", "medium"),
        ("high-new", "high"),
        ("low-new", "low"),
    ]:
        await _task(client, headers, pid, title=title, priority=priority)
        await asyncio.sleep(0.01)

    r = await client.get(f"/api/projects/{pid}/tasks", headers=headers)
    assert r.status_code == 200
    assert [t["title"] for t in r.json()["data"]] == [
        "high-new",
        "high-old",
        "medium",
        "low-new",
        "low-old",
    ]


@pytest.mark.asyncio
async def test_list_filters(client, owner, project):
    user, headers = owner
    pid = project["id"]
    await _task(client, headers, pid, title="Mine", assigned_to=user["id"], status="in_progress")
    await _task(client, headers, pid, title="Unassigned", priority="high")

    r = await client.get(f"/api/projects/{pid}/tasks?status=in_progress", headers=headers)
    assert [t["title"] for t in r.json()["data"]] == ["Mine"]

    r = await client.get(f"/api/projects/{pid}/tasks?priority=high", headers=headers)
    assert [t["title"] for t in r.json()["data"]] == ["Unassigned"]

    r = await client.get(f"/api/projects/{pid}/tasks?assigned_to={user['id']}", headers=headers)
    assert [t["title"] for t in r.json()["data"]] == ["Mine"]

    r = await client.get(f"/api/projects/{pid}/tasks?priority=urgent", headers=headers)
    assert len(r.json()["data"]) == 2


# ═══════════════════════════════════════════════════════════
# Single task
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_get_task(client, owner, project):
    _, headers = owner
    task = await _task(client, headers, project["id"], title="Lookup")

    r = await client.get(f"/api/tasks/{task['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["title"] == "Lookup"


@pytest.mark.asyncio
async def test_get_task_not_found(client, owner):
    _, headers = owner
    r = await client.get("/api/tasks/9999", headers=headers)
    assert r.status_code == 404
    assert r.json()["message"] == "task not found"


@pytest.mark.asyncio
async def test_task_routes_apply_project_rule(client, owner, other, admin, project):
    """Outsiders get 403 on every single-task route; admins pass."""
    _, owner_headers = owner
    task = await _task(client, owner_headers, project["id"], title="Guarded")
    tid = task["id"]

    _, headers = other
    assert (await client.get(f"/api/tasks/{tid}", headers=headers)).status_code == 403
    r = await client.put(f"/api/tasks/{tid}", json={"title": "Mine now"}, headers=headers)
    assert r.status_code == 403
    assert r.json()["message"] == "not authorized to access this task"
    assert (await client.delete(f"/api/tasks/{tid}", headers=headers)).status_code == 403

    _, headers = admin
    assert (await client.get(f"/api/tasks/{tid}", headers=headers)).status_code == 200
    r = await client.put(f"/api/tasks/{tid}", json={"status": "completed"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "completed"
    assert (await client.delete(f"/api/tasks/{tid}", headers=headers)).status_code == 200


@pytest.mark.asyncio
async def test_update_task(client, owner, other, project):
    user, headers = owner
    outsider, _ = other
    task = await _task(client, headers, project["id"], title="Original", description="old")

    r = await client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "Renamed", "priority": "low", "assigned_to": outsider["id"]},
        headers=headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["title"] == "Renamed"
    assert data["priority"] == "low"
    assert data["description"] == "old"
    assert data["assignee"]["id"] == outsider["id"]

    # null unassigns
    r = await client.put(f"/api/tasks/{task['id']}", json={"assigned_to": None}, headers=headers)
    assert r.json()["data"]["assigned_to"] is None
    assert r.json()["data"]["assignee"] is None


@pytest.mark.asyncio
async def test_update_task_unknown_assignee(client, owner, project):
    _, headers = owner
    task = await _task(client, headers, project["id"], title="Keep me")

    r = await client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "Changed", "assigned_to": 9999},
        headers=headers,
    )
    assert r.status_code == 404
    assert r.json()["message"] == "assigned user not found"

    r = await client.get(f"/api/tasks/{task['id']}", headers=headers)
    assert r.json()["data"]["title"] == "Keep me"


@pytest.mark.asyncio
async def test_delete_task(client, owner, project):
    _, headers = owner
    task = await _task(client, headers, project["id"], title="Doomed")

    r = await client.delete(f"/api/tasks/{task['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"] == {"id": task["id"]}

    r = await client.get(f"/api/tasks/{task['id']}", headers=headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_storage_failure_in_task_gate(client, owner, project, monkeypatch):
    from sqlalchemy.ext.asyncio import AsyncSession

    from projectdesk.db.models import Project

    _, headers = owner
    task = await _task(client, headers, project["id"], title="Fragile")

    original_get = AsyncSession.get

    async def broken_get(self, entity, *args, **kwargs):
        if entity is Project:
            raise RuntimeError("disk I/O error")
        return await original_get(self, entity, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, "get", broken_get)

    r = await client.get(f"/api/tasks/{task['id']}", headers=headers)
    assert r.status_code == 500
    assert r.json()["message"] == "error verifying permissions"
    assert "disk I/O" not in r.text
