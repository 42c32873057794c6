"""Integration tests for project router: bearer identity required."""

import pytest


class TestProjectRouter:
    async def test_requires_auth(self, client):
        resp = await client.post("/api/projects", json={"name": "Portal"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHENTICATED"

    async def test_bad_token(self, client):
        resp = await client.get("/api/projects", headers={"Authorization": "Bearer forged"})
        assert resp.status_code == 401

    async def test_create_project(self, client, owner_headers):
        resp = await client.post(
            "/api/projects", json={"name": "Clinic Portal"}, headers=owner_headers
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["success"] is True
        assert data["project"]["name"] == "Clinic Portal"
        assert data["project"]["api_key"].startswith("sk_")

    @pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": "x" * 101}])
    async def test_invalid_name(self, client, owner_headers, body):
        resp = await client.post("/api/projects", json=body, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"

    async def test_malformed_body_is_400(self, client, owner_headers):
        resp = await client.post(
            "/api/projects", content="not json",
            headers={**owner_headers, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400

    async def test_list_scoped_to_owner(self, client, owner_headers, other_owner_headers):
        await client.post("/api/projects", json={"name": "Mine"}, headers=owner_headers)
        await client.post("/api/projects", json={"name": "Theirs"}, headers=other_owner_headers)
        resp = await client.get("/api/projects", headers=owner_headers)
        assert resp.status_code == 200
        projects = resp.json()["projects"]
        assert [p["name"] for p in projects] == ["Mine"]
        assert "api_key" not in projects[0]
        assert projects[0]["status"] == "setup"

    async def test_rotate_key(self, client, owner_headers):
        created = await client.post("/api/projects", json={"name": "P"}, headers=owner_headers)
        project = created.json()["project"]
        resp = await client.post(f"/api/projects/{project['id']}/keys", headers=owner_headers)
        assert resp.status_code == 201
        new_key = resp.json()["api_key"]

        old = await client.post("/api/cli/verify", json={"api_key": project["api_key"]})
        assert old.status_code == 401
        new = await client.post("/api/cli/verify", json={"api_key": new_key})
        assert new.status_code == 200

    async def test_rotate_foreign_project(self, client, owner_headers, other_owner_headers):
        created = await client.post("/api/projects", json={"name": "P"}, headers=owner_headers)
        project_id = created.json()["project"]["id"]
        resp = await client.post(f"/api/projects/{project_id}/keys", headers=other_owner_headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"

    async def test_rotate_unknown_project(self, client, owner_headers):
        resp = await client.post("/api/projects/missing/keys", headers=owner_headers)
        assert resp.status_code == 404


class TestHealth:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["service"] == "scanara-engine"


class StaticVerifier:
    """External identity provider double: one known token."""

    async def verify(self, token: str) -> str:
        if token != "provider-token":
            raise PermissionError("unknown token")
        return "provider-user"


class TestPluggableIdentityProvider:
    async def test_custom_verifier(self, client):
        from scanara_engine.deps import set_identity_verifier
        set_identity_verifier(StaticVerifier())

        resp = await client.post(
            "/api/projects", json={"name": "P"},
            headers={"Authorization": "Bearer provider-token"},
        )
        assert resp.status_code == 201
        rejected = await client.get(
            "/api/projects", headers={"Authorization": "Bearer other"}
        )
        assert rejected.status_code == 401
