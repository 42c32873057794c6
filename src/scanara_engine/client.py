"""
ScanaraClient SDK: sync client for the Scanara-Engine inline channel.

Used by the ``scanara`` CLI and by build tooling to send a local codebase,
authenticated with a project API key, and read back the audit result.
"""

import json
import os
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from scanara_engine.common.config import ClientSettings
from scanara_engine.snapshots.workspace import collect_workspace_files


@dataclass
class ClientProject:
    """Project bound to the client's API key."""

    id: str
    name: str
    status: str = ""


@dataclass
class ClientVerifyResult:
    """Result of verify() call."""

    connected: bool
    code: str = ""
    message: str = ""
    project: Optional[ClientProject] = None


@dataclass
class ClientCaptureResult:
    """Result of upload_snapshot() call."""

    success: bool
    snapshot_id: Optional[str] = None
    file_count: int = 0
    project_id: Optional[str] = None
    code: str = ""
    message: str = ""


@dataclass
class ClientAuditResult:
    """Result of run_audit() call."""

    success: bool
    audit_id: Optional[str] = None
    project_id: Optional[str] = None
    compliance_score: Optional[float] = None
    compliance_tier: Optional[str] = None
    scores: dict[str, Any] = field(default_factory=dict)
    summary: dict[str, Any] = field(default_factory=dict)
    detailed_findings: list[Any] = field(default_factory=list)
    remediation_plan: list[Any] = field(default_factory=list)
    code: str = ""
    message: str = ""


class ScanaraClient:
    """
    Synchronous HTTP client for the inline (API-key) channel.

    Audits can run for minutes, so the default timeout is generous.
    """

    def __init__(
        self,
        server_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff_base: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        settings = ClientSettings()
        self.server_url = (server_url or settings.server_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.api_key
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.retry_backoff_base = retry_backoff_base
        self._http = httpx.Client(
            base_url=self.server_url,
            timeout=timeout if timeout is not None else settings.timeout,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        retry_on_5xx: bool = True,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Central HTTP method with retry and structured error handling.

        Retries on timeouts, transport errors and 429 with exponential
        backoff, and on 5xx unless ``retry_on_5xx`` is False. Other 4xx
        responses return at once with the server's error code. Never raises
        for HTTP failures.
        """
        last_error = None
        for attempt in range(self.max_retries):
            try:
                resp = getattr(self._http, method)(path, headers=self._headers(), **kwargs)
                if resp.status_code >= 500 and not retry_on_5xx:
                    return self._error_body(resp, "SERVER_ERROR")
                if resp.status_code >= 500 or resp.status_code == 429:
                    last_error = f"HTTP {resp.status_code}"
                    if attempt < self.max_retries - 1:
                        time.sleep(self.retry_backoff_base * (2 ** attempt))
                        continue
                    return self._error_body(resp, "SERVER_ERROR")
                if resp.status_code >= 400:
                    return self._error_body(resp, "CLIENT_ERROR")
                return resp.json()
            except httpx.TimeoutException:
                last_error = "timeout"
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_backoff_base * (2 ** attempt))
                    continue
            except httpx.HTTPError as e:
                last_error = str(e)
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_backoff_base * (2 ** attempt))
                    continue
            except json.JSONDecodeError:
                return {"error": "JSON_ERROR", "message": "Invalid JSON response"}

        return {
            "error": "CONNECTION_ERROR",
            "message": f"All {self.max_retries} retries exhausted: {last_error}",
        }

    @staticmethod
    def _error_body(resp: httpx.Response, fallback: str) -> dict[str, Any]:
        try:
            data = resp.json()
        except json.JSONDecodeError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        return {
            "error": data.get("error") or fallback,
            "message": data.get("message") or f"HTTP {resp.status_code}",
        }

    @staticmethod
    def _parse_project(data: Optional[dict]) -> Optional[ClientProject]:
        if not data:
            return None
        return ClientProject(
            id=data.get("id", ""),
            name=data.get("name", ""),
            status=data.get("status", ""),
        )

    # ── Inline channel ──

    def verify(self) -> ClientVerifyResult:
        """Check that the configured key is active, without running anything."""
        data = self._request("post", "/cli/verify", json={"api_key": self.api_key})
        if "error" in data:
            return ClientVerifyResult(
                connected=False, code=data["error"], message=data.get("message", "")
            )
        return ClientVerifyResult(
            connected=bool(data.get("connected")),
            project=self._parse_project(data.get("project")),
        )

    def create_project(self, name: str) -> ClientVerifyResult:
        """Bind an unbound key to a new project named ``name``."""
        data = self._request("post", "/cli/projects", json={"name": name})
        if "error" in data:
            return ClientVerifyResult(
                connected=False, code=data["error"], message=data.get("message", "")
            )
        return ClientVerifyResult(
            connected=True, project=self._parse_project(data.get("project"))
        )

    def upload_snapshot(
        self,
        files: list[dict[str, str]] | str,
        project_name: Optional[str] = None,
    ) -> ClientCaptureResult:
        data = self._request(
            "post", "/cli/snapshots",
            retry_on_5xx=False,
            json={"codebase": files, "project_name": project_name},
        )
        if "error" in data:
            return ClientCaptureResult(
                success=False, code=data["error"], message=data.get("message", "")
            )
        return ClientCaptureResult(
            success=True,
            snapshot_id=data.get("snapshot_id"),
            file_count=data.get("file_count", 0),
            project_id=data.get("project_id"),
        )

    def run_audit(
        self,
        files: list[dict[str, str]] | str | None = None,
        project_name: Optional[str] = None,
    ) -> ClientAuditResult:
        """Audit ``files``, or the key's current snapshot when ``files`` is None."""
        body: dict[str, Any] = {"project_name": project_name}
        if files is not None:
            body["codebase"] = files
        # A 5xx here is a failed run already recorded in history
        data = self._request("post", "/cli/audit", retry_on_5xx=False, json=body)
        if "error" in data:
            return ClientAuditResult(
                success=False, code=data["error"], message=data.get("message", "")
            )
        return ClientAuditResult(
            success=True,
            audit_id=data.get("audit_id"),
            project_id=data.get("project_id"),
            compliance_score=data.get("compliance_score"),
            compliance_tier=data.get("compliance_tier"),
            scores=data.get("scores", {}),
            summary=data.get("summary", {}),
            detailed_findings=data.get("detailed_findings", []),
            remediation_plan=data.get("remediation_plan", []),
        )

    @staticmethod
    def collect_files(root: str | os.PathLike) -> list[dict[str, str]]:
        """Read a local project the same way a cloned repository is read."""
        return collect_workspace_files(root)

    def close(self) -> None:
        """Close the HTTP client."""
        self._http.close()

    def __enter__(self) -> "ScanaraClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
