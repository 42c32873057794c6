"""Tests for project service: registry and credential lifecycle."""

import asyncio

import pytest
from sqlalchemy import func, select

from scanara_engine.common.config import ScanaraSettings
from scanara_engine.common.database import DatabaseManager
from scanara_engine.common.exceptions import (
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from scanara_engine.common.security import Principal, authenticate_api_key
from scanara_engine.projects.models import ApiCredentialModel
from scanara_engine.projects.service import (
    ProjectService,
    ProjectWriteLocks,
    _hash_api_key,
    validate_project_name,
)

SECRET_KEY = "test-secret-key-for-unit-tests"
ALICE = Principal(owner_id="alice")
BOB = Principal(owner_id="bob")


def make_settings(**overrides) -> ScanaraSettings:
    defaults = {"secret_key": SECRET_KEY, "db_url": "sqlite+aiosqlite://"}
    defaults.update(overrides)
    return ScanaraSettings(**defaults)


@pytest.fixture
async def db():
    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def svc():
    return ProjectService(make_settings())


class TestProjectCreate:
    async def test_create_project(self, db, svc):
        async with db.get_session() as session:
            project, raw_key = await svc.create_project(session, "alice", "  Clinic Portal ")
            assert project.name == "Clinic Portal"
            assert project.status == "setup"
            assert project.codebase_snapshot_id is None
            assert project.latest_audit_id is None
            assert raw_key.startswith("sk_")

    async def test_key_stored_hashed(self, db, svc):
        async with db.get_session() as session:
            project, raw_key = await svc.create_project(session, "alice", "P")
            creds = await svc.list_credentials(session, project.id)
            assert len(creds) == 1
            assert creds[0].key_hash == _hash_api_key(raw_key)
            assert creds[0].key_hash != raw_key
            assert creds[0].active is True

    @pytest.mark.parametrize("name", [None, "", "   ", "x" * 101])
    def test_invalid_names(self, name):
        with pytest.raises(ValidationError):
            validate_project_name(name)

    def test_max_length_name(self):
        assert validate_project_name("x" * 100) == "x" * 100


class TestProjectLookup:
    async def test_list_newest_first_and_scoped(self, db, svc):
        async with db.get_session() as session:
            await svc.create_project(session, "alice", "first")
        async with db.get_session() as session:
            await svc.create_project(session, "alice", "second")
            await svc.create_project(session, "bob", "other")
        async with db.get_session() as session:
            projects = await svc.list_projects(session, "alice")
            assert [p.name for p in projects] == ["second", "first"]

    async def test_owned_project(self, db, svc):
        async with db.get_session() as session:
            project, _ = await svc.create_project(session, "alice", "P")
            found = await svc.get_owned_project(session, ALICE, project.id)
            assert found.id == project.id

    async def test_foreign_project_forbidden(self, db, svc):
        async with db.get_session() as session:
            project, _ = await svc.create_project(session, "alice", "P")
            with pytest.raises(ForbiddenError):
                await svc.get_owned_project(session, BOB, project.id)

    async def test_unknown_project(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(NotFoundError):
                await svc.get_owned_project(session, ALICE, "nope")

    async def test_missing_project_id(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(ValidationError):
                await svc.get_owned_project(session, ALICE, None)


class TestLifecycle:
    async def test_mark_configured_only_from_setup(self, db, svc):
        async with db.get_session() as session:
            project, _ = await svc.create_project(session, "alice", "P")
            await svc.mark_configured(session, project.id)
            assert project.status == "configured"
            project.status = "audit"
            await svc.mark_configured(session, project.id)
            assert project.status == "audit"

    async def test_record_audit_outcome(self, db, svc):
        async with db.get_session() as session:
            project, _ = await svc.create_project(session, "alice", "P")
            await svc.record_audit_outcome(session, project.id, "audit-1", 77.5)
            assert project.latest_audit_id == "audit-1"
            assert project.latest_audit_score == 77.5


class TestCredentials:
    async def test_active_key_authenticates_with_project(self, db, svc):
        async with db.get_session() as session:
            project, raw_key = await svc.create_project(session, "alice", "P")
        async with db.get_session() as session:
            principal = await authenticate_api_key(svc, session, raw_key)
            assert principal.owner_id == "alice"
            assert principal.app_id == project.id

    async def test_unknown_key_rejected(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(UnauthenticatedError):
                await authenticate_api_key(svc, session, "sk_unknown")

    async def test_inactive_key_never_authenticates(self, db, svc):
        async with db.get_session() as session:
            project, raw_key = await svc.create_project(session, "alice", "P")
            creds = await svc.list_credentials(session, project.id)
            creds[0].active = False
        async with db.get_session() as session:
            with pytest.raises(UnauthenticatedError):
                await authenticate_api_key(svc, session, raw_key)

    async def test_rotation_deactivates_prior_keys(self, db, svc):
        async with db.get_session() as session:
            project, old_key = await svc.create_project(session, "alice", "P")
        async with db.get_session() as session:
            new_key = await svc.issue_project_key(session, ALICE, project.id)
        assert new_key != old_key
        async with db.get_session() as session:
            with pytest.raises(UnauthenticatedError):
                await authenticate_api_key(svc, session, old_key)
            principal = await authenticate_api_key(svc, session, new_key)
            assert principal.app_id == project.id
            creds = await svc.list_credentials(session, project.id)
            assert [c.active for c in creds] == [False, True]

    async def test_rotation_requires_ownership(self, db, svc):
        async with db.get_session() as session:
            project, _ = await svc.create_project(session, "alice", "P")
            with pytest.raises(ForbiddenError):
                await svc.issue_project_key(session, BOB, project.id)

    async def test_account_key_is_unbound(self, db, svc):
        async with db.get_session() as session:
            raw_key = await svc.issue_account_key(session, "alice")
        async with db.get_session() as session:
            principal = await authenticate_api_key(svc, session, raw_key)
            assert principal.app_id is None

    async def test_verify_credential(self, db, svc):
        async with db.get_session() as session:
            project, raw_key = await svc.create_project(session, "alice", "P")
        async with db.get_session() as session:
            cred, found = await svc.verify_credential(session, raw_key)
            assert cred.app_id == project.id
            assert found.id == project.id

    async def test_verify_credential_rejects(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(ValidationError):
                await svc.verify_credential(session, "")
            with pytest.raises(UnauthenticatedError):
                await svc.verify_credential(session, "sk_nope")


class TestSelfRegister:
    async def test_binds_same_key_to_new_project(self, db, svc):
        async with db.get_session() as session:
            raw_key = await svc.issue_account_key(session, "alice")
        async with db.get_session() as session:
            principal = await authenticate_api_key(svc, session, raw_key)
            project, bound = await svc.self_register(session, principal, "CLI App")
            assert project.owner_id == "alice"
            assert bound.app_id == project.id
        async with db.get_session() as session:
            again = await authenticate_api_key(svc, session, raw_key)
            assert again.app_id == project.id

    async def test_requires_name(self, db, svc):
        async with db.get_session() as session:
            raw_key = await svc.issue_account_key(session, "alice")
            principal = await authenticate_api_key(svc, session, raw_key)
            with pytest.raises(ValidationError):
                await svc.self_register(session, principal, None)

    async def test_requires_credential(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(UnauthenticatedError):
                await svc.self_register(session, ALICE, "P")

    async def test_rebinding_twice_reuses_first_project(self, db, svc):
        async with db.get_session() as session:
            raw_key = await svc.issue_account_key(session, "alice")
        async with db.get_session() as session:
            principal = await authenticate_api_key(svc, session, raw_key)
        async with db.get_session() as session:
            first, _ = await svc.self_register(session, principal, "One")
        # Same stale principal, as a request that authenticated before the rebind
        async with db.get_session() as session:
            second, bound = await svc.self_register(session, principal, "Two")
            assert second.id == first.id
            assert bound.app_id == first.id
        async with db.get_session() as session:
            projects = await svc.list_projects(session, "alice")
            assert [p.name for p in projects] == ["One"]
            active = await session.execute(
                select(func.count(ApiCredentialModel.id)).where(
                    ApiCredentialModel.key_hash == _hash_api_key(raw_key),
                    ApiCredentialModel.active.is_(True),
                )
            )
            assert active.scalar_one() == 1
            again = await authenticate_api_key(svc, session, raw_key)
            assert again.app_id == first.id

    async def test_retired_key_without_successor(self, db, svc):
        async with db.get_session() as session:
            raw_key = await svc.issue_account_key(session, "alice")
            principal = await authenticate_api_key(svc, session, raw_key)
            credential = await session.get(ApiCredentialModel, principal.credential_id)
            credential.active = False
        async with db.get_session() as session:
            with pytest.raises(UnauthenticatedError):
                await svc.self_register(session, principal, "P")


class TestProjectWriteLocks:
    def test_same_project_same_lock(self):
        locks = ProjectWriteLocks()
        first = locks.hold("p1")
        assert locks.hold("p1") is first
        assert locks.hold("p2") is not first

    async def test_serializes_writers(self):
        locks = ProjectWriteLocks()
        order = []

        async def writer(name: str, delay: float):
            async with locks.hold("p1"):
                order.append(f"{name}-start")
                await asyncio.sleep(delay)
                order.append(f"{name}-end")

        await asyncio.gather(writer("a", 0.02), writer("b", 0))
        assert order == ["a-start", "a-end", "b-start", "b-end"]
