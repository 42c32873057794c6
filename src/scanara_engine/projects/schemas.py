"""Pydantic schemas for project and credential endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ProjectCreate(BaseModel):
    # Length is checked by the service so failures use the error envelope
    name: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    name: str
    status: str
    codebase_snapshot_id: Optional[str] = None
    latest_audit_id: Optional[str] = None
    latest_audit_score: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectCreated(BaseModel):
    """Includes the raw API key, only returned once at creation time."""
    id: str
    name: str
    api_key: str
    created_at: datetime


class ProjectCreateResponse(BaseModel):
    success: bool = True
    project: ProjectCreated


class ProjectListResponse(BaseModel):
    success: bool = True
    projects: list[ProjectResponse]


class KeyIssuedResponse(BaseModel):
    success: bool = True
    api_key: str
    project_id: Optional[str] = None


class CredentialVerifyRequest(BaseModel):
    api_key: Optional[str] = None


class ConnectedProject(BaseModel):
    id: str
    name: str
    status: str


class CredentialVerifyResponse(BaseModel):
    success: bool = True
    connected: bool
    project: Optional[ConnectedProject] = None
