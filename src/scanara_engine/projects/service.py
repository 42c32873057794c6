"""Project registry and API credential service."""

import asyncio
import hashlib
import secrets
import weakref

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from scanara_engine.common.config import ScanaraSettings
from scanara_engine.common.exceptions import (
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from scanara_engine.common.security import Principal
from scanara_engine.projects.models import ApiCredentialModel, ProjectModel

MAX_NAME_LENGTH = 100


def _hash_api_key(raw_key: str) -> str:
    """SHA-256 hash of a raw API key for storage."""
    return hashlib.sha256(raw_key.encode()).hexdigest()


def generate_api_key() -> str:
    return f"sk_{secrets.token_urlsafe(32)}"


def validate_project_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise ValidationError("Project name is required")
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"Project name must be at most {MAX_NAME_LENGTH} characters"
        )
    return name


class ProjectWriteLocks:
    """One asyncio lock per key, serializing pointer writes and key rebinding."""

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def hold(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


class ProjectService:
    """Project CRUD, lifecycle pointers and credential management."""

    def __init__(self, settings: ScanaraSettings):
        self.settings = settings
        self.locks = ProjectWriteLocks()

    # ── Projects ──

    async def create_project(
        self,
        session: AsyncSession,
        owner_id: str,
        name: str | None,
    ) -> tuple[ProjectModel, str]:
        """Create a project and issue its first API key. Returns (model, raw_api_key)."""
        project = ProjectModel(
            name=validate_project_name(name),
            owner_id=owner_id,
            status="setup",
        )
        session.add(project)
        await session.flush()
        raw_key = generate_api_key()
        await self._add_credential(session, owner_id, raw_key, app_id=project.id)
        return project, raw_key

    async def get_by_id(
        self, session: AsyncSession, project_id: str
    ) -> ProjectModel | None:
        return await session.get(ProjectModel, project_id)

    async def get_owned_project(
        self, session: AsyncSession, principal: Principal, project_id: str | None
    ) -> ProjectModel:
        """Resolve a project and check that the principal owns it."""
        if not project_id:
            raise ValidationError("project_id is required")
        project = await self.get_by_id(session, project_id)
        if project is None:
            raise NotFoundError("Project not found")
        if project.owner_id != principal.owner_id:
            raise ForbiddenError()
        return project

    async def list_projects(
        self, session: AsyncSession, owner_id: str
    ) -> list[ProjectModel]:
        result = await session.execute(
            select(ProjectModel)
            .where(ProjectModel.owner_id == owner_id)
            .order_by(ProjectModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def mark_configured(
        self, session: AsyncSession, project_id: str
    ) -> ProjectModel | None:
        """Advance setup → configured once a remote account is connected."""
        project = await self.get_by_id(session, project_id)
        if project is not None and project.status == "setup":
            project.status = "configured"
            await session.flush()
        return project

    async def attach_snapshot(
        self, session: AsyncSession, project: ProjectModel, snapshot_id: str
    ) -> None:
        project.codebase_snapshot_id = snapshot_id
        project.status = "audit"
        await session.flush()

    async def record_audit_outcome(
        self,
        session: AsyncSession,
        project_id: str,
        audit_id: str,
        score: float,
    ) -> None:
        project = await self.get_by_id(session, project_id)
        if project is None:
            raise NotFoundError("Project not found")
        project.latest_audit_id = audit_id
        project.latest_audit_score = score
        await session.flush()

    # ── Credentials ──

    async def _add_credential(
        self,
        session: AsyncSession,
        owner_id: str,
        raw_key: str,
        app_id: str | None = None,
    ) -> ApiCredentialModel:
        credential = ApiCredentialModel(
            app_id=app_id,
            owner_id=owner_id,
            key_hash=_hash_api_key(raw_key),
            key_prefix=raw_key[:8],
            active=True,
        )
        session.add(credential)
        await session.flush()
        return credential

    async def _deactivate_project_keys(
        self, session: AsyncSession, project_id: str
    ) -> None:
        await session.execute(
            update(ApiCredentialModel)
            .where(
                ApiCredentialModel.app_id == project_id,
                ApiCredentialModel.active.is_(True),
            )
            .values(active=False)
        )

    async def issue_project_key(
        self, session: AsyncSession, principal: Principal, project_id: str
    ) -> str:
        """Issue a new key for a project; every prior key of that project is deactivated."""
        project = await self.get_owned_project(session, principal, project_id)
        await self._deactivate_project_keys(session, project.id)
        raw_key = generate_api_key()
        await self._add_credential(session, principal.owner_id, raw_key, app_id=project.id)
        return raw_key

    async def issue_account_key(self, session: AsyncSession, owner_id: str) -> str:
        """Issue a key not yet bound to any project (inline self-registration)."""
        raw_key = generate_api_key()
        await self._add_credential(session, owner_id, raw_key)
        return raw_key

    async def list_credentials(
        self, session: AsyncSession, project_id: str
    ) -> list[ApiCredentialModel]:
        result = await session.execute(
            select(ApiCredentialModel)
            .where(ApiCredentialModel.app_id == project_id)
            .order_by(ApiCredentialModel.created_at.asc())
        )
        return list(result.scalars().all())

    async def resolve_credential(
        self, session: AsyncSession, raw_key: str
    ) -> ApiCredentialModel | None:
        """Exactly one active credential matching the key, or None."""
        result = await session.execute(
            select(ApiCredentialModel).where(
                ApiCredentialModel.key_hash == _hash_api_key(raw_key),
                ApiCredentialModel.active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def verify_credential(
        self, session: AsyncSession, raw_key: str | None
    ) -> tuple[ApiCredentialModel, ProjectModel | None]:
        """Existence check for a key; never runs anything."""
        if not raw_key:
            raise ValidationError("API key is required")
        try:
            credential = await self.resolve_credential(session, raw_key)
        except Exception:
            raise UnauthenticatedError() from None
        if credential is None:
            raise UnauthenticatedError()
        project = None
        if credential.app_id:
            project = await self.get_by_id(session, credential.app_id)
        return credential, project

    async def self_register(
        self,
        session: AsyncSession,
        principal: Principal,
        name: str | None,
    ) -> tuple[ProjectModel, Principal]:
        """Create a project for an unbound key and rebind the key to it.

        The unbound credential is retired and a fresh credential carrying the
        same key is bound to the new project, so the caller keeps using the
        key it already has. Retiring is a conditional update: when another
        request has already rebound the key, the project it registered is
        returned instead of creating a second one.
        """
        project_name = validate_project_name(name)
        credential = None
        if principal.credential_id:
            credential = await session.get(ApiCredentialModel, principal.credential_id)
        if credential is None:
            raise UnauthenticatedError()

        claimed = await session.execute(
            update(ApiCredentialModel)
            .where(
                ApiCredentialModel.id == credential.id,
                ApiCredentialModel.active.is_(True),
            )
            .values(active=False)
        )
        if claimed.rowcount != 1:
            return await self._bound_successor(session, principal, credential.key_hash)

        project = ProjectModel(name=project_name, owner_id=principal.owner_id, status="setup")
        session.add(project)
        await session.flush()

        bound = ApiCredentialModel(
            app_id=project.id,
            owner_id=principal.owner_id,
            key_hash=credential.key_hash,
            key_prefix=credential.key_prefix,
            active=True,
        )
        session.add(bound)
        await session.flush()
        return project, Principal(
            owner_id=principal.owner_id,
            app_id=project.id,
            credential_id=bound.id,
        )

    async def register_inline(
        self, db, principal: Principal, name: str | None
    ) -> tuple[ProjectModel, Principal]:
        """Run :meth:`self_register` in its own committed session.

        Requests sharing one key are serialized, so the second of two racing
        requests sees the key already bound.
        """
        async with self.locks.hold(f"credential:{principal.credential_id}"):
            async with db.get_session() as session:
                return await self.self_register(session, principal, name)

    async def _bound_successor(
        self, session: AsyncSession, principal: Principal, key_hash: str
    ) -> tuple[ProjectModel, Principal]:
        result = await session.execute(
            select(ApiCredentialModel).where(
                ApiCredentialModel.key_hash == key_hash,
                ApiCredentialModel.owner_id == principal.owner_id,
                ApiCredentialModel.active.is_(True),
                ApiCredentialModel.app_id.is_not(None),
            )
        )
        successor = result.scalar_one_or_none()
        if successor is None:
            raise UnauthenticatedError()
        project = await self.get_by_id(session, successor.app_id)
        if project is None:
            raise UnauthenticatedError()
        return project, Principal(
            owner_id=principal.owner_id,
            app_id=project.id,
            credential_id=successor.id,
        )
