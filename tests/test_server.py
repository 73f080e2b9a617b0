"""HTTP-level tests for the FastAPI app: status codes and the error body."""

import httpx
import pytest

from backend import storage
from backend.app import create_app
from backend.storage.core import read_table


@pytest.fixture
async def client():
    app = create_app(storage.data_dir())
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as c:
        yield c


async def _project(client) -> dict:
    resp = await client.post("/api/db/projects", json={"name": "Acme"})
    assert resp.status_code == 201
    return resp.json()


async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_unknown_route_uses_error_shape(client):
    resp = await client.get("/api/db/nothing")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found", "details": None}


async def test_invalid_body_is_400(client):
    resp = await client.post("/api/db/projects", json={})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid request"
    assert "name" in body["details"]


async def test_storage_errors_map_to_status(client):
    resp = await client.delete("/api/db/projects", params={"id": "missing"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"

    resp = await client.post("/api/db/projects", json={"name": "   "})
    assert resp.status_code == 400
    assert resp.json() == {"error": "ValidationFailure", "details": "Project name cannot be empty."}


async def test_missing_document(client):
    resp = await client.get("/api/db/documents", params={"id": "missing"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "Document not found"

    resp = await client.get("/api/db/documents")
    assert resp.status_code == 400


async def test_non_empty_folder_delete(client):
    project = await _project(client)
    parent = (await client.post("/api/db/folders", json={"project_id": project["id"], "name": "A"})).json()
    await client.post(
        "/api/db/folders",
        json={"project_id": project["id"], "name": "B", "parent_folder_id": parent["id"]},
    )

    resp = await client.delete("/api/db/folders", params={"id": parent["id"]})
    assert resp.status_code == 409
    assert resp.json()["error"] == "FolderNotEmptyError"

    resp = await client.delete("/api/db/folders", params={"id": parent["id"], "force": "true"})
    assert resp.status_code == 200
    assert (await client.get("/api/db/folders", params={"project_id": project["id"]})).json() == []


async def test_delete_project_cascades(client):
    project = await _project(client)
    await client.post("/api/db/documents", json={"project_id": project["id"], "base_title": "Brief"})
    await client.post("/api/db/snippets", json={"project_id": project["id"], "name": "S", "content": "c"})
    await client.post("/api/db/user-settings", json={"active_project_id": project["id"]})

    resp = await client.delete("/api/db/projects", params={"id": project["id"]})
    assert resp.json() == {"success": True}
    assert read_table("documents") == []
    assert read_table("snippets") == []
    assert (await client.get("/api/db/user-settings")).json()["active_project_id"] is None


async def test_migrate_reports_invalid_projects(client):
    resp = await client.post("/api/db/migrate", json={"projects": [{"name": "No id"}], "activeProjectId": None})
    assert resp.status_code == 200
    report = resp.json()
    assert report["success"] is False
    assert report["migrated"]["projects"] == 0
    assert "No id" in report["errors"][0]


async def test_active_project_must_exist(client):
    resp = await client.post("/api/db/user-settings", json={"active_project_id": "missing"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"
    assert (await client.get("/api/db/user-settings")).json()["active_project_id"] is None
