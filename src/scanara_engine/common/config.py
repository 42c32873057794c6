"""Scanara-Engine configuration via pydantic-settings."""

import tempfile
import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
}


class ScanaraSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SCANARA_")

    environment: str = "development"
    secret_key: str = "insecure-dev-key-change-me"
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/scanara.db"
    db_busy_timeout: float = 30.0  # seconds a writer waits for the SQLite lock

    # API
    api_title: str = "Scanara-Engine"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = "/api"
    cors_origins: list[str] = ["http://localhost:5173"]
    frontend_url: str = "http://localhost:5173"

    # Analysis engine (OpenAI-compatible chat completions)
    engine_url: str = "https://api.openai.com/v1/chat/completions"
    engine_api_key: str = ""
    engine_model: str = "gpt-4o-mini"
    engine_max_tokens: int = 8000
    engine_temperature: float = 0.2
    engine_timeout: float = 300.0
    engine_json_mode: bool = True

    # Snapshot capture
    max_snapshot_files: int = 100
    inline_max_chars: int = 500_000
    workspace_root: str = tempfile.gettempdir()
    cleanup_retries: int = 3
    cleanup_backoff: float = 0.5  # seconds
    clone_timeout: float = 300.0

    # Remote repository host (GitHub OAuth app)
    github_client_id: str = ""
    github_client_secret: str = ""
    github_redirect_uri: str = ""
    github_authorize_url: str = "https://github.com/login/oauth/authorize"
    github_token_url: str = "https://github.com/login/oauth/access_token"
    github_api_url: str = "https://api.github.com"
    oauth_state_max_age: int = 600  # seconds

    # Identity tokens
    identity_token_max_age: int = 3600  # seconds

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"SCANARA_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default secret key, set SCANARA_SECRET_KEY for production",
                UserWarning,
                stacklevel=2,
            )


class ClientSettings(BaseSettings):
    """Settings for the SDK/CLI side, injected from the environment."""

    model_config = SettingsConfigDict(env_prefix="SCANARA_CLIENT_")

    server_url: str = "http://localhost:8080/api"
    api_key: str = ""
    timeout: float = 600.0
    max_retries: int = 3


@lru_cache
def get_settings() -> ScanaraSettings:
    settings = ScanaraSettings()
    settings.validate_for_production()
    return settings
