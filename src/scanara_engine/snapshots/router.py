"""Direct-upload capture API router."""

from fastapi import APIRouter, Depends

from scanara_engine.common.security import Principal, require_identity
from scanara_engine.snapshots.schemas import CaptureResponse, UploadRequest

router = APIRouter()


def _get_service():
    from scanara_engine.deps import get_snapshot_service
    return get_snapshot_service()


def _get_db():
    from scanara_engine.deps import get_db
    return get_db()


@router.post("/snapshots/upload", response_model=CaptureResponse)
async def upload_snapshot(
    body: UploadRequest, principal: Principal = Depends(require_identity)
):
    files = None
    if body.files is not None:
        files = [f.model_dump() for f in body.files]
    result = await _get_service().capture_upload(
        _get_db(), principal, body.project_id, files,
        project_name=body.project_name,
    )
    return CaptureResponse(
        snapshot_id=result.snapshot_id,
        file_count=result.file_count,
        project_id=result.project_id,
    )
