"""Snapshot capture service: the shared stage under every channel."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from scanara_engine.common.config import ScanaraSettings
from scanara_engine.common.exceptions import ValidationError
from scanara_engine.common.security import Principal
from scanara_engine.projects.models import ProjectModel
from scanara_engine.snapshots.models import SnapshotModel
from scanara_engine.snapshots.normalize import inline_files, normalize_files

logger = logging.getLogger(__name__)


@dataclass
class CaptureResult:
    snapshot_id: str
    file_count: int
    project_id: str
    # The principal after any inline self-registration
    principal: Principal


class SnapshotService:
    """Normalizes channel input and persists it as the project's current snapshot."""

    def __init__(self, settings: ScanaraSettings, project_service):
        self.settings = settings
        self.projects = project_service

    async def persist(
        self,
        db,
        principal: Principal,
        project_id: str | None,
        source: str,
        files: list[dict[str, Any]],
        origin_name: str = "",
        repo_url: str | None = None,
    ) -> CaptureResult:
        """Store already-normalized files and repoint the project at them."""
        async with self.projects.locks.hold(project_id or ""):
            async with db.get_session() as session:
                project = await self.projects.get_owned_project(
                    session, principal, project_id
                )
                snapshot = await self._create(
                    session, project, source, files, origin_name, repo_url
                )
                await self.projects.attach_snapshot(session, project, snapshot.id)
                result = CaptureResult(
                    snapshot_id=snapshot.id,
                    file_count=snapshot.file_count,
                    project_id=project.id,
                    principal=principal,
                )
        logger.info(
            "Captured %s snapshot %s for project %s (%d files)",
            source, result.snapshot_id, result.project_id, result.file_count,
            extra={"project_id": result.project_id, "snapshot_id": result.snapshot_id},
        )
        return result

    async def _create(
        self,
        session: AsyncSession,
        project: ProjectModel,
        source: str,
        files: list[dict[str, Any]],
        origin_name: str,
        repo_url: str | None,
    ) -> SnapshotModel:
        snapshot = SnapshotModel(
            project_id=project.id,
            owner_id=project.owner_id,
            source=source,
            origin_name=origin_name,
            repo_url=repo_url,
            files=files,
            file_count=len(files),
        )
        session.add(snapshot)
        await session.flush()
        return snapshot

    async def capture_upload(
        self,
        db,
        principal: Principal,
        project_id: str | None,
        files: Sequence[Mapping[str, Any]] | None,
        project_name: str | None = None,
    ) -> CaptureResult:
        """Direct-upload channel: files arrive already materialized."""
        normalized = normalize_files(files, self.settings.max_snapshot_files)
        return await self.persist(
            db, principal, project_id, "direct-upload", normalized,
            origin_name=project_name or "Direct Upload",
        )

    async def capture_inline(
        self,
        db,
        principal: Principal,
        codebase: Sequence[Mapping[str, Any]] | str | None,
        project_name: str | None = None,
    ) -> CaptureResult:
        """Inline channel: file list or text blob, bound to the caller's key.

        A key not yet bound to a project registers a new project first.
        """
        files = inline_files(
            codebase,
            max_files=self.settings.max_snapshot_files,
            max_chars=self.settings.inline_max_chars,
        )
        if principal.app_id is None:
            project, principal = await self.projects.register_inline(
                db, principal, project_name
            )
            logger.info(
                "Bound inline key to project %s for owner %s",
                project.id, principal.owner_id,
            )
        return await self.persist(
            db, principal, principal.app_id, "inline", files,
            origin_name=project_name or "",
        )

    async def get_current(
        self, session: AsyncSession, project: ProjectModel
    ) -> SnapshotModel:
        """The snapshot the project currently points at, which must be non-empty."""
        if not project.codebase_snapshot_id:
            raise ValidationError(
                "No codebase found for this project. Capture a snapshot first."
            )
        snapshot = await session.get(SnapshotModel, project.codebase_snapshot_id)
        if snapshot is None or not snapshot.files:
            raise ValidationError("Codebase is empty")
        return snapshot
