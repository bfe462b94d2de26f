from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import auth_headers, create_task
from taskmanager.models import Task, User


@pytest.mark.anyio
async def test_task_routes_require_bearer_token(client: AsyncClient) -> None:
  res = await client.post("/api/tasks", json={"title": "No auth"})
  assert res.status_code == 401, res.text
  assert res.headers.get("www-authenticate") == "Bearer"

  res = await client.get("/api/tasks", headers={"Authorization": "Bearer not-a-token"})
  assert res.status_code == 401, res.text

  res = await client.get("/api/tasks", headers={"Authorization": f"Token {auth_headers('U1')['Authorization'][7:]}"})
  assert res.status_code == 401, res.text


@pytest.mark.anyio
async def test_create_defaults_to_self_assignment(client: AsyncClient) -> None:
  t = await create_task(client, "U1", title="Write report")
  assert t["title"] == "Write report"
  assert t["status"] == "todo"
  assert t["priority"] == "medium"
  assert t["assignedTo"] == ["U1"]
  assert t["clerkUserId"] == "U1"
  assert t["ownerType"] == "external"
  assert t["userId"] is None
  assert t["_id"] == str(t["id"])
  assert t["dueDate"] is None
  assert t["tags"] == []
  assert t["isSharedWithMe"] is False


@pytest.mark.anyio
async def test_create_parses_enums_dates_and_lists(client: AsyncClient) -> None:
  t = await create_task(
    client,
    "U1",
    title="Plan release",
    description="Cut the branch",
    status="IN_PROGRESS",
    priority="High",
    dueDate="2025-01-01",
    tags=["release", "q1"],
    images=["/api/files/images/a.png"],
    assignedTo="bob",
  )
  assert t["status"] == "in-progress"
  assert t["priority"] == "high"
  assert t["dueDate"].startswith("2025-01-01T00:00:00")
  assert t["tags"] == ["release", "q1"]
  assert t["images"] == ["/api/files/images/a.png"]
  assert t["assignedTo"] == ["bob"]

  fallback = await create_task(client, "U1", status="someday", priority="whenever", dueDate="next week")
  assert fallback["status"] == "todo"
  assert fallback["priority"] == "medium"
  assert fallback["dueDate"] is None

  multi = await create_task(client, "U1", assignedTo=["bob", "carol"])
  assert multi["assignedTo"] == ["bob", "carol"]


@pytest.mark.anyio
async def test_create_validates_title_and_sizes(client: AsyncClient) -> None:
  headers = auth_headers("U1")
  res = await client.post("/api/tasks", json={"title": "   "}, headers=headers)
  assert res.status_code == 422, res.text
  res = await client.post("/api/tasks", json={"description": "missing title"}, headers=headers)
  assert res.status_code == 422, res.text
  res = await client.post("/api/tasks", json={"title": "x" * 501}, headers=headers)
  assert res.status_code == 422, res.text
  res = await client.post("/api/tasks", json={"title": "ok", "description": "d" * 3001}, headers=headers)
  assert res.status_code == 422, res.text
  res = await client.post("/api/tasks", content=b"{not json", headers={**headers, "Content-Type": "application/json"})
  assert res.status_code == 422, res.text


@pytest.mark.anyio
async def test_tasks_for_caller_concatenates_sources_in_order(client: AsyncClient) -> None:
  a = await create_task(client, "U1", title="A")
  b = await create_task(client, "U2", title="B", assignedTo="U1")
  c = await create_task(client, "U2", title="C")
  d = await create_task(client, "U2", title="D")
  share = await client.post(f"/api/tasks/{c['id']}/share", json={"userIds": ["U1"]}, headers=auth_headers("U2"))
  assert share.status_code == 200, share.text

  res = await client.get("/api/tasks", headers=auth_headers("U1"))
  assert res.status_code == 200, res.text
  ids = [t["id"] for t in res.json()]
  assert ids == [a["id"], b["id"], c["id"]]
  assert d["id"] not in ids


@pytest.mark.anyio
async def test_tasks_for_caller_keeps_duplicates_across_sources(client: AsyncClient) -> None:
  t = await create_task(client, "U2", title="Assigned and shared", assignedTo="U1")
  share = await client.post(f"/api/tasks/{t['id']}/share", json={"userIds": ["U1"]}, headers=auth_headers("U2"))
  assert share.status_code == 200, share.text

  res = await client.get("/api/tasks", headers=auth_headers("U1"))
  assert res.status_code == 200, res.text
  assert [x["id"] for x in res.json()] == [t["id"], t["id"]]


@pytest.mark.anyio
async def test_tasks_for_caller_matches_exact_email_assignee(client: AsyncClient) -> None:
  exact = await create_task(client, "U2", title="Mail me", assignedTo="alice@example.com")
  await create_task(client, "U2", title="Shared inbox", assignedTo=["alice@example.com", "bob@example.com"])

  res = await client.get("/api/tasks", params={"userEmail": "alice@example.com"}, headers=auth_headers("U3"))
  assert res.status_code == 200, res.text
  assert [t["id"] for t in res.json()] == [exact["id"]]

  # Without the query parameter the email claim of the token is used.
  res = await client.get("/api/tasks", headers=auth_headers("U3", email="alice@example.com"))
  assert [t["id"] for t in res.json()] == [exact["id"]]

  res = await client.get("/api/tasks", headers=auth_headers("U3"))
  assert res.json() == []


@pytest.mark.anyio
async def test_tasks_for_caller_matches_legacy_scalar_email(client: AsyncClient, db) -> None:
  db.add(Task(title="Legacy", creator_id="U2", assigned_to="alice@example.com"))
  await db.commit()

  res = await client.get("/api/tasks", params={"userEmail": "alice@example.com"}, headers=auth_headers("U3"))
  assert res.status_code == 200, res.text
  body = res.json()
  assert [t["title"] for t in body] == ["Legacy"]
  assert body[0]["assignedTo"] == ["alice@example.com"]


@pytest.mark.anyio
async def test_get_missing_task_is_404(client: AsyncClient) -> None:
  res = await client.get("/api/tasks/9999", headers=auth_headers("U1"))
  assert res.status_code == 404, res.text
  assert res.json() == {"success": False, "message": "Task not found with id: 9999"}


@pytest.mark.anyio
async def test_update_due_date_semantics(client: AsyncClient) -> None:
  headers = auth_headers("U1")
  t = await create_task(client, "U1", dueDate="2024-06-01")
  url = f"/api/tasks/{t['id']}"

  res = await client.put(url, json={"title": "Renamed"}, headers=headers)
  assert res.status_code == 200, res.text
  assert res.json()["title"] == "Renamed"
  assert res.json()["dueDate"].startswith("2024-06-01")

  res = await client.put(url, json={"dueDate": "2025-01-01"}, headers=headers)
  assert res.json()["dueDate"].startswith("2025-01-01")

  res = await client.put(url, json={"dueDate": "not a date"}, headers=headers)
  assert res.json()["dueDate"].startswith("2025-01-01")

  res = await client.put(url, json={"dueDate": ""}, headers=headers)
  assert res.status_code == 200, res.text
  assert res.json()["dueDate"] is None


@pytest.mark.anyio
async def test_update_overwrites_present_fields_only(client: AsyncClient) -> None:
  headers = auth_headers("U1")
  t = await create_task(client, "U1", description="keep me", tags=["a"], priority="low")

  res = await client.put(
    f"/api/tasks/{t['id']}",
    json={"status": "done", "tags": ["b", "c"], "assignedUserNote": "on it", "assignedUserNoteAuthor": "U5", "priority": "nonsense"},
    headers=headers,
  )
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["status"] == "done"
  assert body["completedAt"] is not None
  assert body["tags"] == ["b", "c"]
  assert body["description"] == "keep me"
  assert body["priority"] == "low"
  assert body["assignedUserNote"] == "on it"
  assert body["assignedUserNoteAuthor"] == "U5"

  res = await client.put(f"/api/tasks/{t['id']}", json={"assignedUserNote": "n" * 1001}, headers=headers)
  assert res.status_code == 422, res.text


@pytest.mark.anyio
async def test_update_assignees(client: AsyncClient) -> None:
  headers = auth_headers("U1")
  t = await create_task(client, "U1")
  url = f"/api/tasks/{t['id']}"

  res = await client.put(url, json={"assignedTo": ["U2", "U3"]}, headers=headers)
  assert res.json()["assignedTo"] == ["U2", "U3"]

  res = await client.put(url, json={"assignedTo": []}, headers=headers)
  assert res.json()["assignedTo"] == ["U1"]

  res = await client.put(url, json={"assignedTo": "U4"}, headers=headers)
  assert res.json()["assignedTo"] == ["U4"]


@pytest.mark.anyio
async def test_update_missing_task_is_404(client: AsyncClient) -> None:
  res = await client.put("/api/tasks/424242", json={"title": "x"}, headers=auth_headers("U1"))
  assert res.status_code == 404, res.text
  assert res.json()["success"] is False


@pytest.mark.anyio
async def test_delete_task(client: AsyncClient) -> None:
  headers = auth_headers("U1")
  t = await create_task(client, "U1")

  res = await client.delete(f"/api/tasks/{t['id']}", headers=headers)
  assert res.status_code == 200, res.text
  res = await client.get(f"/api/tasks/{t['id']}", headers=headers)
  assert res.status_code == 404, res.text
  res = await client.delete(f"/api/tasks/{t['id']}", headers=headers)
  assert res.status_code == 404, res.text


@pytest.mark.anyio
async def test_list_by_status(client: AsyncClient) -> None:
  headers = auth_headers("U1")
  await create_task(client, "U1", title="one", status="todo")
  doing = await create_task(client, "U2", title="two", status="in-progress")

  res = await client.get("/api/tasks/status/IN_PROGRESS", headers=headers)
  assert res.status_code == 200, res.text
  assert [t["id"] for t in res.json()] == [doing["id"]]

  res = await client.get("/api/tasks/status/cancelled", headers=headers)
  assert res.json() == []

  res = await client.get("/api/tasks/status/someday", headers=headers)
  assert res.status_code == 400, res.text
  assert res.json()["success"] is False


@pytest.mark.anyio
async def test_stats_summary(client: AsyncClient) -> None:
  await create_task(client, "U1", status="todo", dueDate="2000-01-01")
  await create_task(client, "U1", status="todo")
  await create_task(client, "U1", status="done", dueDate="2000-01-01")
  await create_task(client, "U2", status="in-progress", dueDate="2999-01-01")

  res = await client.get("/api/tasks/stats/summary", headers=auth_headers("U1"))
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["total"] == 4
  assert body["completed"] == 1
  assert body["overdue"] == 1
  assert body["byStatus"] == [
    {"_id": "to do", "count": 2},
    {"_id": "in progress", "count": 1},
    {"_id": "done", "count": 1},
    {"_id": "cancelled", "count": 0},
  ]


@pytest.mark.anyio
async def test_share_merges_grantees_without_duplicates(client: AsyncClient) -> None:
  headers = auth_headers("U1")
  t = await create_task(client, "U1")
  url = f"/api/tasks/{t['id']}/share"

  res = await client.post(url, json={"userIds": ["U2", "U3"], "message": "have a look"}, headers=headers)
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["success"] is True
  assert body["message"] == "Task shared"
  assert body["task"]["sharedWith"] == ["U2", "U3"]

  res = await client.post(url, json={"userIds": ["U3", "U4", "U2"]}, headers=headers)
  assert res.json()["task"]["sharedWith"] == ["U2", "U3", "U4"]


@pytest.mark.anyio
async def test_share_by_non_creator_is_rejected(client: AsyncClient) -> None:
  t = await create_task(client, "U1")
  await client.post(f"/api/tasks/{t['id']}/share", json={"userIds": ["U2"]}, headers=auth_headers("U1"))

  res = await client.post(f"/api/tasks/{t['id']}/share", json={"userIds": ["U9"]}, headers=auth_headers("U2"))
  assert res.status_code == 400, res.text
  body = res.json()
  assert body["success"] is False
  assert body["message"].startswith("Error while sharing task:")

  res = await client.get(f"/api/tasks/{t['id']}", headers=auth_headers("U1"))
  assert res.json()["sharedWith"] == ["U2"]


@pytest.mark.anyio
async def test_share_ownerless_or_missing_task_fails(client: AsyncClient, db) -> None:
  u = User(username="legacy", email="legacy@example.com", password_hash="x")
  db.add(u)
  await db.flush()
  legacy = Task(title="Legacy owned", user_id=u.id)
  db.add(legacy)
  await db.commit()

  res = await client.post(f"/api/tasks/{legacy.id}/share", json={"userIds": ["U2"]}, headers=auth_headers("U1"))
  assert res.status_code == 400, res.text
  assert res.json()["success"] is False

  res = await client.get(f"/api/tasks/{legacy.id}", headers=auth_headers("U1"))
  assert res.json()["ownerType"] == "local"
  assert res.json()["userId"] == str(u.id)
  assert res.json()["sharedWith"] == []

  res = await client.post("/api/tasks/31337/share", json={"userIds": ["U2"]}, headers=auth_headers("U1"))
  assert res.status_code == 400, res.text
  assert "Task not found" in res.json()["message"]
