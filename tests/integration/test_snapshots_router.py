"""Integration tests for direct upload capture."""


async def _project(client, headers) -> str:
    resp = await client.post("/api/projects", json={"name": "Portal"}, headers=headers)
    return resp.json()["project"]["id"]


class TestUploadRouter:
    async def test_upload(self, client, owner_headers):
        project_id = await _project(client, owner_headers)
        resp = await client.post(
            "/api/snapshots/upload",
            json={"project_id": project_id, "files": [
                {"path": "app.py", "content": "x = 1"},
                {"path": "db.py", "content": "y = 2"},
            ]},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["file_count"] == 2
        assert data["project_id"] == project_id

        listing = await client.get("/api/projects", headers=owner_headers)
        project = listing.json()["projects"][0]
        assert project["codebase_snapshot_id"] == data["snapshot_id"]
        assert project["status"] == "audit"

    async def test_upload_caps_files(self, client, owner_headers):
        project_id = await _project(client, owner_headers)
        files = [{"path": f"f{i}.py", "content": "x"} for i in range(150)]
        resp = await client.post(
            "/api/snapshots/upload",
            json={"project_id": project_id, "files": files},
            headers=owner_headers,
        )
        assert resp.json()["file_count"] == 100

    async def test_null_content_rejected(self, client, owner_headers):
        project_id = await _project(client, owner_headers)
        resp = await client.post(
            "/api/snapshots/upload",
            json={"project_id": project_id, "files": [
                {"path": "a.py", "content": "x"}, {"path": "b.py", "content": None},
            ]},
            headers=owner_headers,
        )
        assert resp.status_code == 400
        listing = await client.get("/api/projects", headers=owner_headers)
        assert listing.json()["projects"][0]["codebase_snapshot_id"] is None

    async def test_missing_project_id(self, client, owner_headers):
        resp = await client.post(
            "/api/snapshots/upload",
            json={"files": [{"path": "a.py", "content": "x"}]},
            headers=owner_headers,
        )
        assert resp.status_code == 400

    async def test_foreign_project(self, client, owner_headers, other_owner_headers):
        project_id = await _project(client, owner_headers)
        resp = await client.post(
            "/api/snapshots/upload",
            json={"project_id": project_id, "files": [{"path": "a.py", "content": "x"}]},
            headers=other_owner_headers,
        )
        assert resp.status_code == 403
