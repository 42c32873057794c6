"""Pydantic schemas for the GitHub channel."""

from typing import Optional

from pydantic import BaseModel


class AuthUrlResponse(BaseModel):
    success: bool = True
    auth_url: str


class RepoSummary(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    full_name: Optional[str] = None
    description: Optional[str] = None
    private: bool = False
    url: Optional[str] = None
    clone_url: Optional[str] = None
    default_branch: Optional[str] = None
    updated_at: Optional[str] = None


class RepoListResponse(BaseModel):
    success: bool = True
    repos: list[RepoSummary]


class CloneRequest(BaseModel):
    project_id: Optional[str] = None
    repo_url: Optional[str] = None
    repo_name: Optional[str] = None
