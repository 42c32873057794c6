"""Pydantic schemas for snapshot capture endpoints."""

from typing import Optional

from pydantic import BaseModel


class FileEntry(BaseModel):
    # Optional so that missing values reach the capture validation
    path: Optional[str] = None
    content: Optional[str] = None


class UploadRequest(BaseModel):
    project_id: Optional[str] = None
    files: Optional[list[FileEntry]] = None
    project_name: Optional[str] = None


class CaptureResponse(BaseModel):
    success: bool = True
    snapshot_id: str
    file_count: int
    project_id: str
