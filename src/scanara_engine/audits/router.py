"""Audit API router: bearer identity authentication."""

from fastapi import APIRouter, Depends

from scanara_engine.audits.schemas import (
    AuditHistoryItem,
    AuditHistoryResponse,
    AuditResult,
    RunAuditRequest,
)
from scanara_engine.common.security import Principal, require_identity

router = APIRouter()


def _get_service():
    from scanara_engine.deps import get_audit_service
    return get_audit_service()


def _get_db():
    from scanara_engine.deps import get_db
    return get_db()


@router.post("/audits/run", response_model=AuditResult)
async def run_audit(
    body: RunAuditRequest, principal: Principal = Depends(require_identity)
):
    audit = await _get_service().run_audit(_get_db(), principal, body.project_id)
    return AuditResult.from_model(audit)


@router.get("/audits/history/{project_id}", response_model=AuditHistoryResponse)
async def audit_history(
    project_id: str, principal: Principal = Depends(require_identity)
):
    db = _get_db()
    async with db.get_session() as session:
        audits = await _get_service().list_audits(session, principal, project_id)
        return AuditHistoryResponse(
            project_id=project_id,
            audits=[AuditHistoryItem.from_model(a) for a in audits],
        )
