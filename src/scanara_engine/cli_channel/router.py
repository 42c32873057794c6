"""Inline channel router: project API key authentication."""

from fastapi import APIRouter, Depends

from scanara_engine.audits.schemas import AuditResult
from scanara_engine.cli_channel.schemas import InlineCodebaseRequest, InlineProjectRequest
from scanara_engine.common.security import Principal, require_api_key
from scanara_engine.projects.schemas import (
    ConnectedProject,
    CredentialVerifyRequest,
    CredentialVerifyResponse,
)
from scanara_engine.snapshots.schemas import CaptureResponse

router = APIRouter(prefix="/cli")


def _get_db():
    from scanara_engine.deps import get_db
    return get_db()


def _connected(project) -> ConnectedProject:
    return ConnectedProject(id=project.id, name=project.name, status=project.status)


@router.post("/verify", response_model=CredentialVerifyResponse)
async def verify_key(body: CredentialVerifyRequest):
    from scanara_engine.deps import get_project_service

    db = _get_db()
    async with db.get_session() as session:
        _, project = await get_project_service().verify_credential(session, body.api_key)
        return CredentialVerifyResponse(
            connected=True,
            project=_connected(project) if project is not None else None,
        )


@router.post("/projects", response_model=CredentialVerifyResponse)
async def register_project(
    body: InlineProjectRequest, principal: Principal = Depends(require_api_key)
):
    """Bind an unbound key to a new project; a bound key reports its project."""
    from scanara_engine.deps import get_project_service

    svc = get_project_service()
    db = _get_db()
    if principal.app_id is None:
        project, _ = await svc.register_inline(db, principal, body.name)
    else:
        async with db.get_session() as session:
            project = await svc.get_owned_project(session, principal, principal.app_id)
    return CredentialVerifyResponse(connected=True, project=_connected(project))


@router.post("/snapshots", response_model=CaptureResponse)
async def capture_inline(
    body: InlineCodebaseRequest, principal: Principal = Depends(require_api_key)
):
    from scanara_engine.deps import get_snapshot_service

    result = await get_snapshot_service().capture_inline(
        _get_db(), principal, body.codebase_payload(), project_name=body.project_name
    )
    return CaptureResponse(
        snapshot_id=result.snapshot_id,
        file_count=result.file_count,
        project_id=result.project_id,
    )


@router.post("/audit", response_model=AuditResult)
async def run_inline_audit(
    body: InlineCodebaseRequest, principal: Principal = Depends(require_api_key)
):
    """Audit the codebase in the body, or the key's current snapshot when none is sent."""
    from scanara_engine.deps import get_audit_service

    svc = get_audit_service()
    if body.codebase is None and principal.app_id is not None:
        audit = await svc.run_audit(_get_db(), principal, principal.app_id)
    else:
        audit = await svc.run_inline_audit(
            _get_db(), principal, body.codebase_payload(),
            project_name=body.project_name,
        )
    return AuditResult.from_model(audit)
