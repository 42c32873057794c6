"""Repo-clone channel: OAuth connection, repository listing and clone capture."""

import asyncio
import logging
from typing import Any
from urllib.parse import urlencode

from itsdangerous import BadSignature, URLSafeTimedSerializer
from sqlalchemy.ext.asyncio import AsyncSession

from scanara_engine.common.config import ScanaraSettings
from scanara_engine.common.exceptions import (
    RemoteRepositoryError,
    UnauthenticatedError,
    ValidationError,
)
from scanara_engine.common.security import Principal
from scanara_engine.github.client import GitCloner, GitHubClient
from scanara_engine.github.models import RemoteTokenModel
from scanara_engine.snapshots.normalize import normalize_files
from scanara_engine.snapshots.service import CaptureResult
from scanara_engine.snapshots.workspace import (
    RetryPolicy,
    clone_workspace,
    collect_workspace_files,
)

logger = logging.getLogger(__name__)


def _repo_summary(repo: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": repo.get("id"),
        "name": repo.get("name"),
        "full_name": repo.get("full_name"),
        "description": repo.get("description"),
        "private": bool(repo.get("private")),
        "url": repo.get("html_url"),
        "clone_url": repo.get("clone_url"),
        "default_branch": repo.get("default_branch"),
        "updated_at": repo.get("updated_at"),
    }


class GitHubService:
    """Connects an owner's GitHub account and captures snapshots from clones."""

    def __init__(
        self,
        settings: ScanaraSettings,
        project_service,
        snapshot_service,
        client: GitHubClient | None = None,
        cloner: GitCloner | None = None,
    ):
        self.settings = settings
        self.projects = project_service
        self.snapshots = snapshot_service
        self.client = client or GitHubClient(settings)
        self.cloner = cloner or GitCloner(timeout=settings.clone_timeout)
        self._state = URLSafeTimedSerializer(settings.secret_key, salt="github-oauth-state")

    # ── OAuth ──

    async def initiate(
        self, session: AsyncSession, principal: Principal, project_id: str | None
    ) -> str:
        """Return the authorize URL for connecting GitHub to a project."""
        project = await self.projects.get_owned_project(session, principal, project_id)
        if not self.settings.github_client_id or not self.settings.github_redirect_uri:
            raise RemoteRepositoryError("GitHub OAuth is not configured")
        state = self._state.dumps({"owner_id": principal.owner_id, "project_id": project.id})
        query = urlencode({
            "client_id": self.settings.github_client_id,
            "redirect_uri": self.settings.github_redirect_uri,
            "scope": "repo",
            "state": state,
        })
        return f"{self.settings.github_authorize_url}?{query}"

    def _load_state(self, state: str | None) -> dict[str, str] | None:
        if not state:
            return None
        try:
            payload = self._state.loads(state, max_age=self.settings.oauth_state_max_age)
        except BadSignature:
            return None
        if not isinstance(payload, dict) or not payload.get("owner_id"):
            return None
        return payload

    async def handle_callback(self, db, code: str | None, state: str | None) -> str:
        """Finish the OAuth dance and return the frontend URL to redirect to."""
        frontend = self.settings.frontend_url.rstrip("/")
        payload = self._load_state(state)
        if payload is None:
            return f"{frontend}/setup?error=invalid_state"

        owner_id = payload["owner_id"]
        project_id = payload.get("project_id") or ""
        target = f"{frontend}/setup/{project_id}/github"
        if not code:
            return f"{target}?error=oauth_failed"

        try:
            access_token = await self.client.exchange_code(code)
            if not access_token:
                return f"{target}?error=token_failed"
            user = await self.client.get_user(access_token)
        except RemoteRepositoryError:
            logger.exception("GitHub OAuth callback failed for owner %s", owner_id)
            return f"{target}?error=oauth_error"

        async with db.get_session() as session:
            await self.store_token(
                session, owner_id, access_token,
                project_id=project_id or None,
                username=str(user.get("login", "")),
                user_id=str(user.get("id", "")),
            )
            if project_id:
                await self.projects.mark_configured(session, project_id)
        return f"{target}?success=true"

    async def store_token(
        self,
        session: AsyncSession,
        owner_id: str,
        access_token: str,
        project_id: str | None = None,
        username: str = "",
        user_id: str = "",
    ) -> RemoteTokenModel:
        token = await session.get(RemoteTokenModel, owner_id)
        if token is None:
            token = RemoteTokenModel(owner_id=owner_id, access_token=access_token)
            session.add(token)
        token.access_token = access_token
        token.project_id = project_id
        token.remote_username = username
        token.remote_user_id = user_id
        await session.flush()
        return token

    async def get_token(self, session: AsyncSession, owner_id: str) -> RemoteTokenModel:
        token = await session.get(RemoteTokenModel, owner_id)
        if token is None:
            raise UnauthenticatedError("GitHub not connected. Please authorize first.")
        return token

    # ── Repositories ──

    async def list_repos(self, db, principal: Principal) -> list[dict[str, Any]]:
        async with db.get_session() as session:
            token = await self.get_token(session, principal.owner_id)
            access_token = token.access_token
        repos = await self.client.list_repos(access_token)
        return [_repo_summary(r) for r in repos]

    async def clone_repository(
        self,
        db,
        principal: Principal,
        project_id: str | None,
        repo_url: str | None,
        repo_name: str | None = None,
    ) -> CaptureResult:
        """Clone into a transient workspace, walk it and capture a snapshot."""
        if not project_id or not repo_url:
            raise ValidationError("project_id and repo_url are required")
        if not repo_url.startswith("https://"):
            raise ValidationError("repo_url must be an https URL")

        async with db.get_session() as session:
            await self.projects.get_owned_project(session, principal, project_id)
            access_token = (await self.get_token(session, principal.owner_id)).access_token

        policy = RetryPolicy(
            attempts=self.settings.cleanup_retries,
            delay=self.settings.cleanup_backoff,
        )
        async with clone_workspace(self.settings.workspace_root, policy) as workspace:
            await self.cloner.clone(repo_url, access_token, workspace)
            raw_files = await asyncio.to_thread(collect_workspace_files, workspace)

        if not raw_files:
            raise ValidationError("Repository contains no code files")
        files = normalize_files(raw_files, self.settings.max_snapshot_files)
        origin = repo_name or repo_url.rstrip("/").rsplit("/", 1)[-1].removesuffix(".git")
        return await self.snapshots.persist(
            db, principal, project_id, "repo-clone", files,
            origin_name=origin, repo_url=repo_url,
        )
