"""Project registry API router: bearer identity authentication."""

from fastapi import APIRouter, Depends

from scanara_engine.common.security import Principal, require_identity
from scanara_engine.projects.schemas import (
    KeyIssuedResponse,
    ProjectCreate,
    ProjectCreated,
    ProjectCreateResponse,
    ProjectListResponse,
    ProjectResponse,
)

router = APIRouter()


def _get_service():
    from scanara_engine.deps import get_project_service
    return get_project_service()


def _get_db():
    from scanara_engine.deps import get_db
    return get_db()


@router.post("/projects", response_model=ProjectCreateResponse, status_code=201)
async def create_project(
    body: ProjectCreate, principal: Principal = Depends(require_identity)
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        project, raw_key = await svc.create_project(
            session, principal.owner_id, body.name
        )
        return ProjectCreateResponse(
            project=ProjectCreated(
                id=project.id,
                name=project.name,
                api_key=raw_key,
                created_at=project.created_at,
            )
        )


@router.get("/projects", response_model=ProjectListResponse)
async def list_projects(principal: Principal = Depends(require_identity)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        projects = await svc.list_projects(session, principal.owner_id)
        return ProjectListResponse(
            projects=[ProjectResponse.model_validate(p) for p in projects]
        )


@router.post("/projects/{project_id}/keys", response_model=KeyIssuedResponse, status_code=201)
async def rotate_project_key(
    project_id: str, principal: Principal = Depends(require_identity)
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        raw_key = await svc.issue_project_key(session, principal, project_id)
        return KeyIssuedResponse(api_key=raw_key, project_id=project_id)


@router.post("/credentials", response_model=KeyIssuedResponse, status_code=201)
async def issue_account_key(principal: Principal = Depends(require_identity)):
    """Issue a key not bound to a project; the inline channel registers one on first use."""
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        raw_key = await svc.issue_account_key(session, principal.owner_id)
        return KeyIssuedResponse(api_key=raw_key)
