"""GitHub channel API router."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from scanara_engine.common.security import Principal, require_identity
from scanara_engine.github.schemas import (
    AuthUrlResponse,
    CloneRequest,
    RepoListResponse,
    RepoSummary,
)
from scanara_engine.snapshots.schemas import CaptureResponse

router = APIRouter(prefix="/github")


def _get_service():
    from scanara_engine.deps import get_github_service
    return get_github_service()


def _get_db():
    from scanara_engine.deps import get_db
    return get_db()


@router.get("/auth", response_model=AuthUrlResponse)
async def initiate_oauth(
    project_id: str | None = Query(None),
    principal: Principal = Depends(require_identity),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        auth_url = await svc.initiate(session, principal, project_id)
        return AuthUrlResponse(auth_url=auth_url)


@router.get("/callback")
async def oauth_callback(
    code: str | None = Query(None),
    state: str | None = Query(None),
):
    url = await _get_service().handle_callback(_get_db(), code, state)
    return RedirectResponse(url, status_code=302)


@router.get("/repos", response_model=RepoListResponse)
async def list_repos(principal: Principal = Depends(require_identity)):
    repos = await _get_service().list_repos(_get_db(), principal)
    return RepoListResponse(repos=[RepoSummary(**r) for r in repos])


@router.post("/clone", response_model=CaptureResponse)
async def clone_repository(
    body: CloneRequest, principal: Principal = Depends(require_identity)
):
    result = await _get_service().clone_repository(
        _get_db(), principal, body.project_id, body.repo_url,
        repo_name=body.repo_name,
    )
    return CaptureResponse(
        snapshot_id=result.snapshot_id,
        file_count=result.file_count,
        project_id=result.project_id,
    )
