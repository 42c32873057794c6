"""Dependency injection singletons for Scanara-Engine."""

from scanara_engine.audits.engine import AnalysisEngine, ChatCompletionsEngine
from scanara_engine.audits.service import AuditService
from scanara_engine.common.config import get_settings
from scanara_engine.common.database import DatabaseManager
from scanara_engine.common.identity import IdentityVerifier, SignedTokenVerifier
from scanara_engine.github.service import GitHubService
from scanara_engine.projects.service import ProjectService
from scanara_engine.snapshots.service import SnapshotService

_db: DatabaseManager | None = None
_projects: ProjectService | None = None
_snapshots: SnapshotService | None = None
_github: GitHubService | None = None
_audits: AuditService | None = None
_engine: AnalysisEngine | None = None
_verifier: IdentityVerifier | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_identity_verifier() -> IdentityVerifier:
    global _verifier
    if _verifier is None:
        settings = get_settings()
        _verifier = SignedTokenVerifier(
            settings.secret_key, max_age=settings.identity_token_max_age
        )
    return _verifier


def set_identity_verifier(verifier: IdentityVerifier | None) -> None:
    """Swap the identity provider (external provider or test fake)."""
    global _verifier
    _verifier = verifier


def get_analysis_engine() -> AnalysisEngine:
    global _engine
    if _engine is None:
        _engine = ChatCompletionsEngine(get_settings())
    return _engine


def set_analysis_engine(engine: AnalysisEngine | None) -> None:
    global _engine, _audits
    _engine = engine
    _audits = None


def get_project_service() -> ProjectService:
    global _projects
    if _projects is None:
        _projects = ProjectService(get_settings())
    return _projects


def get_snapshot_service() -> SnapshotService:
    global _snapshots
    if _snapshots is None:
        _snapshots = SnapshotService(get_settings(), get_project_service())
    return _snapshots


def get_github_service() -> GitHubService:
    global _github
    if _github is None:
        _github = GitHubService(
            get_settings(), get_project_service(), get_snapshot_service()
        )
    return _github


def get_audit_service() -> AuditService:
    global _audits
    if _audits is None:
        _audits = AuditService(
            get_settings(),
            get_project_service(),
            get_snapshot_service(),
            get_analysis_engine(),
        )
    return _audits


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _projects, _snapshots, _github, _audits, _engine, _verifier
    _db = None
    _projects = None
    _snapshots = None
    _github = None
    _audits = None
    _engine = None
    _verifier = None
