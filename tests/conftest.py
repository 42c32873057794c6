"""Shared test fixtures for Scanara-Engine."""

import json
import os

import pytest
from httpx import ASGITransport, AsyncClient

SECRET_KEY = "test-secret-key-for-unit-tests"
OWNER_ID = "owner-alice"
OTHER_OWNER_ID = "owner-bob"


def engine_answer(overall: float | None = 85.0, **sections) -> str:
    """A well-formed engine reply wrapped in chatter."""
    scores = {
        "technical_safeguards_score": 90.0,
        "administrative_safeguards_score": 80.0,
        "physical_safeguards_score": 70.0,
        "audit_coverage_score": 60.0,
        "devops_hygiene_score": 50.0,
    }
    if overall is not None:
        scores["overall_score"] = overall
    body = {
        "metadata": {"repo": "demo", "scanned_by": "scanara-ai-v1"},
        "scores": scores,
        "summary": {"top_issues_count": 1, "critical": 0, "high": 1, "medium": 0, "low": 0},
        "detailed_findings": [{"id": "F-0001", "severity": "high"}],
        "metrics": {"tls_enforced": True},
        "remediation_plan": [{"id": "R-0001", "title": "Encrypt backups"}],
        "component_analysis": {},
        "actions_required": {"manual_verification": []},
    }
    body.update(sections)
    return f"Here is the report:\n{json.dumps(body)}\nLet me know if you need more."


class FakeEngine:
    """Analysis engine double that records calls and replays canned answers."""

    def __init__(self, answer: str | None = None, error: Exception | None = None):
        self.answer = answer if answer is not None else engine_answer()
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def analyze(self, instruction: str, document: str) -> str:
        self.calls.append((instruction, document))
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def app(fake_engine):
    """Create a test app with in-memory DB and a fake analysis engine."""
    os.environ["SCANARA_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["SCANARA_SECRET_KEY"] = SECRET_KEY
    os.environ["SCANARA_FRONTEND_URL"] = "http://frontend.test"

    # Clear caches and singletons so new env vars take effect
    from scanara_engine.common.config import get_settings
    get_settings.cache_clear()

    from scanara_engine.deps import reset_singletons, set_analysis_engine
    reset_singletons()
    set_analysis_engine(fake_engine)

    from scanara_engine.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from scanara_engine.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


def _bearer(owner_id: str) -> dict[str, str]:
    from scanara_engine.common.identity import SignedTokenVerifier
    token = SignedTokenVerifier(SECRET_KEY).issue(owner_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers():
    return _bearer(OWNER_ID)


@pytest.fixture
def other_owner_headers():
    return _bearer(OTHER_OWNER_ID)
