"""Audit orchestrator: run an analysis against a project's current snapshot.

A run moves through ``running`` to exactly one of ``completed`` or
``failed``. Ownership and snapshot checks happen before the record exists;
once it exists, every exit path leaves it terminal (short of a process
crash mid-call, which leaves it ``running``).
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scanara_engine.audits.models import AuditModel
from scanara_engine.audits.parsing import AnalysisResult, parse_engine_response
from scanara_engine.audits.prompt import build_analysis_prompt, build_user_message
from scanara_engine.common.config import ScanaraSettings
from scanara_engine.common.exceptions import InternalError, ScanaraError
from scanara_engine.common.security import Principal
from scanara_engine.snapshots.normalize import serialize_snapshot

logger = logging.getLogger(__name__)


class AuditService:
    """Drives audit runs and serves audit history."""

    def __init__(
        self,
        settings: ScanaraSettings,
        project_service,
        snapshot_service,
        engine,
    ):
        self.settings = settings
        self.projects = project_service
        self.snapshots = snapshot_service
        self.engine = engine

    # ── Run ──

    async def run_audit(
        self, db, principal: Principal, project_id: str | None
    ) -> AuditModel:
        async with db.get_session() as session:
            project = await self.projects.get_owned_project(session, principal, project_id)
            snapshot = await self.snapshots.get_current(session, project)
            files = snapshot.files[: self.settings.max_snapshot_files]
            document = build_user_message(serialize_snapshot(files))
            instruction = build_analysis_prompt(project.name or "unknown")

            # Committed before the engine call so an in-flight run is visible
            audit = AuditModel(
                project_id=project.id,
                owner_id=principal.owner_id,
                snapshot_id=snapshot.id,
                status="running",
            )
            session.add(audit)
            await session.flush()
            audit_id = audit.id
            project_id = project.id
        context = {"audit_id": audit_id, "project_id": project_id, "owner_id": principal.owner_id}

        try:
            raw = await self.engine.analyze(instruction, document)
            result = parse_engine_response(raw)
        except ScanaraError as exc:
            logger.warning("Audit %s failed: %s", audit_id, exc.message, extra=context)
            await self._fail(db, audit_id, exc.message)
            raise
        except Exception as exc:
            logger.exception("Audit %s failed unexpectedly", audit_id, extra=context)
            await self._fail(db, audit_id, str(exc) or exc.__class__.__name__)
            raise InternalError("Failed to analyze codebase") from exc

        try:
            async with self.projects.locks.hold(project_id):
                async with db.get_session() as session:
                    audit = await self._complete(session, audit_id, result)
                    await self.projects.record_audit_outcome(
                        session, project_id, audit_id, result.score
                    )
        except Exception as exc:
            logger.exception("Failed to store result of audit %s", audit_id, extra=context)
            await self._fail(db, audit_id, f"Failed to store audit result: {exc}")
            raise InternalError("Failed to store audit result") from exc

        logger.info(
            "Audit %s completed for project %s: %.1f (%s)",
            audit_id, project_id, result.score, result.tier.value,
            extra=context,
        )
        return audit

    async def run_inline_audit(
        self,
        db,
        principal: Principal,
        codebase: Sequence[Mapping[str, Any]] | str | None,
        project_name: str | None = None,
    ) -> AuditModel:
        """Inline channel: capture the payload (registering a project if needed), then run."""
        capture = await self.snapshots.capture_inline(
            db, principal, codebase, project_name=project_name
        )
        return await self.run_audit(db, capture.principal, capture.project_id)

    async def _complete(
        self, session: AsyncSession, audit_id: str, result: AnalysisResult
    ) -> AuditModel:
        audit = await session.get(AuditModel, audit_id)
        if audit is None:
            raise InternalError(f"Audit {audit_id} disappeared")
        audit.status = "completed"
        audit.compliance_score = result.score
        audit.compliance_tier = result.tier.value
        audit.scores = result.scores
        audit.summary = result.summary
        audit.detailed_findings = result.detailed_findings
        audit.metrics = result.metrics
        audit.remediation_plan = result.remediation_plan
        audit.component_analysis = result.component_analysis
        audit.actions_required = result.actions_required
        audit.metadata_ = result.metadata
        await session.flush()
        return audit

    async def _fail(self, db, audit_id: str, message: str) -> None:
        try:
            async with db.get_session() as session:
                audit = await session.get(AuditModel, audit_id)
                if audit is not None and audit.status == "running":
                    audit.status = "failed"
                    audit.error = message or "Failed to analyze codebase"
        except Exception:
            logger.exception("Could not mark audit %s as failed", audit_id)

    # ── History ──

    async def list_audits(
        self, session: AsyncSession, principal: Principal, project_id: str
    ) -> list[AuditModel]:
        """Every audit of an owned project, newest first."""
        project = await self.projects.get_owned_project(session, principal, project_id)
        result = await session.execute(
            select(AuditModel)
            .where(AuditModel.project_id == project.id)
            .order_by(AuditModel.created_at.desc())
        )
        return list(result.scalars().all())
