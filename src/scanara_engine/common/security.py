"""Access gate: bearer identity tokens and project API keys."""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from scanara_engine.common.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated identity attached to a request."""
    owner_id: str
    app_id: Optional[str] = None
    # Set only for the API-key scheme
    credential_id: Optional[str] = None


def extract_bearer_token(authorization: str | None) -> str:
    """Return the credential from ``Authorization: Bearer <value>``."""
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthenticatedError()
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise UnauthenticatedError()
    return token


async def authenticate_identity_token(verifier, token: str) -> Principal:
    """Delegate to the identity verifier; any failure is a generic 401."""
    try:
        subject = await verifier.verify(token)
    except Exception:
        logger.info("Identity token rejected")
        raise UnauthenticatedError() from None
    return Principal(owner_id=subject)


async def authenticate_api_key(project_service, session, raw_key: str) -> Principal:
    """Resolve exactly one active credential; any failure is a generic 401."""
    try:
        credential = await project_service.resolve_credential(session, raw_key)
    except Exception:
        logger.exception("API key lookup failed")
        raise UnauthenticatedError() from None
    if credential is None:
        logger.info("API key rejected")
        raise UnauthenticatedError()
    return Principal(
        owner_id=credential.owner_id,
        app_id=credential.app_id,
        credential_id=credential.id,
    )


async def require_identity(
    authorization: str | None = Header(None),
) -> Principal:
    """FastAPI dependency for the bearer identity-token scheme."""
    from scanara_engine.deps import get_identity_verifier

    token = extract_bearer_token(authorization)
    return await authenticate_identity_token(get_identity_verifier(), token)


async def require_api_key(
    authorization: str | None = Header(None),
) -> Principal:
    """FastAPI dependency for the project API-key scheme."""
    from scanara_engine.deps import get_db, get_project_service

    raw_key = extract_bearer_token(authorization)
    async with get_db().get_session() as session:
        return await authenticate_api_key(get_project_service(), session, raw_key)
