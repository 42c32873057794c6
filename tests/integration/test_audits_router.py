"""Integration tests for audit runs and history."""

from scanara_engine.common.exceptions import UpstreamEngineError
from tests.conftest import engine_answer


async def _captured_project(client, headers) -> str:
    resp = await client.post("/api/projects", json={"name": "Portal"}, headers=headers)
    project_id = resp.json()["project"]["id"]
    await client.post(
        "/api/snapshots/upload",
        json={"project_id": project_id, "files": [{"path": "app.py", "content": "x = 1"}]},
        headers=headers,
    )
    return project_id


class TestRunAuditRouter:
    async def test_run_audit(self, client, owner_headers, fake_engine):
        project_id = await _captured_project(client, owner_headers)
        resp = await client.post(
            "/api/audits/run", json={"project_id": project_id}, headers=owner_headers
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["status"] == "completed"
        assert data["compliance_score"] == 85.0
        assert data["compliance_tier"] == "Compliant"
        assert data["remediation_plan"][0]["id"] == "R-0001"
        assert len(fake_engine.calls) == 1

        listing = await client.get("/api/projects", headers=owner_headers)
        project = listing.json()["projects"][0]
        assert project["latest_audit_id"] == data["audit_id"]
        assert project["latest_audit_score"] == 85.0

    async def test_needs_attention_tier(self, client, owner_headers, fake_engine):
        fake_engine.answer = engine_answer(overall=79.9)
        project_id = await _captured_project(client, owner_headers)
        resp = await client.post(
            "/api/audits/run", json={"project_id": project_id}, headers=owner_headers
        )
        assert resp.json()["compliance_tier"] == "NeedsAttention"

    async def test_engine_failure_envelope(self, client, owner_headers, fake_engine):
        fake_engine.error = UpstreamEngineError("Analysis engine returned HTTP 503")
        project_id = await _captured_project(client, owner_headers)
        resp = await client.post(
            "/api/audits/run", json={"project_id": project_id}, headers=owner_headers
        )
        assert resp.status_code == 500
        assert resp.json() == {
            "error": "UPSTREAM_ENGINE_ERROR",
            "message": "Analysis engine returned HTTP 503",
        }

        history = await client.get(f"/api/audits/history/{project_id}", headers=owner_headers)
        audits = history.json()["audits"]
        assert audits[0]["status"] == "failed"
        assert audits[0]["error"] == "Analysis engine returned HTTP 503"

    async def test_no_snapshot(self, client, owner_headers, fake_engine):
        resp = await client.post("/api/projects", json={"name": "Empty"}, headers=owner_headers)
        project_id = resp.json()["project"]["id"]
        resp = await client.post(
            "/api/audits/run", json={"project_id": project_id}, headers=owner_headers
        )
        assert resp.status_code == 400
        assert fake_engine.calls == []

    async def test_foreign_project(self, client, owner_headers, other_owner_headers, fake_engine):
        project_id = await _captured_project(client, owner_headers)
        resp = await client.post(
            "/api/audits/run", json={"project_id": project_id}, headers=other_owner_headers
        )
        assert resp.status_code == 403
        history = await client.get(f"/api/audits/history/{project_id}", headers=owner_headers)
        assert history.json()["audits"] == []

    async def test_missing_project_id(self, client, owner_headers):
        resp = await client.post("/api/audits/run", json={}, headers=owner_headers)
        assert resp.status_code == 400


class TestAuditHistoryRouter:
    async def test_history_newest_first(self, client, owner_headers, fake_engine):
        project_id = await _captured_project(client, owner_headers)
        first = await client.post(
            "/api/audits/run", json={"project_id": project_id}, headers=owner_headers
        )
        fake_engine.answer = engine_answer(overall=55.0)
        second = await client.post(
            "/api/audits/run", json={"project_id": project_id}, headers=owner_headers
        )

        resp = await client.get(f"/api/audits/history/{project_id}", headers=owner_headers)
        assert resp.status_code == 200
        audits = resp.json()["audits"]
        assert [a["id"] for a in audits] == [second.json()["audit_id"], first.json()["audit_id"]]
        assert audits[0]["compliance_tier"] == "NonCompliant"

        latest = audits[0]
        assert latest["scores"]["overall_score"] == 55.0
        assert latest["detailed_findings"] == [{"id": "F-0001", "severity": "high"}]
        assert latest["remediation_plan"] == [{"id": "R-0001", "title": "Encrypt backups"}]
        assert latest["metrics"] == {"tls_enforced": True}
        assert latest["actions_required"] == {"manual_verification": []}
        assert latest["component_analysis"] == {}
        assert latest["metadata"]["scanned_by"] == "scanara-ai-v1"
        assert latest["snapshot_id"] == second.json()["snapshot_id"]

    async def test_history_failed_audit_has_empty_sections(self, client, owner_headers, fake_engine):
        project_id = await _captured_project(client, owner_headers)
        fake_engine.answer = "no report today"
        resp = await client.post(
            "/api/audits/run", json={"project_id": project_id}, headers=owner_headers
        )
        assert resp.status_code == 500

        resp = await client.get(f"/api/audits/history/{project_id}", headers=owner_headers)
        item = resp.json()["audits"][0]
        assert item["status"] == "failed"
        assert item["error"]
        assert item["scores"] == {}
        assert item["detailed_findings"] == []
        assert item["metadata"] == {}

    async def test_history_requires_ownership(self, client, owner_headers, other_owner_headers):
        project_id = await _captured_project(client, owner_headers)
        resp = await client.get(
            f"/api/audits/history/{project_id}", headers=other_owner_headers
        )
        assert resp.status_code == 403

    async def test_history_unknown_project(self, client, owner_headers):
        resp = await client.get("/api/audits/history/missing", headers=owner_headers)
        assert resp.status_code == 404
