"""Identity token verification.

The identity provider is an opaque collaborator: anything with an async
``verify(token) -> subject`` method will do. ``SignedTokenVerifier`` is the
built-in provider, backed by itsdangerous timed signatures.
"""

from typing import Protocol

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer


class InvalidIdentityToken(Exception):
    """The verifier rejected the token (expired, bad signature, unknown subject)."""


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> str:
        """Return the verified subject (owner id) or raise InvalidIdentityToken."""
        ...


class SignedTokenVerifier:
    """Verifies tokens minted by :meth:`issue` with the service secret."""

    def __init__(self, secret_key: str, max_age: int = 3600):
        self._serializer = URLSafeTimedSerializer(secret_key, salt="identity-token")
        self.max_age = max_age

    def issue(self, owner_id: str) -> str:
        return self._serializer.dumps({"sub": owner_id})

    async def verify(self, token: str) -> str:
        try:
            payload = self._serializer.loads(token, max_age=self.max_age)
        except (BadSignature, SignatureExpired) as exc:
            raise InvalidIdentityToken(str(exc)) from exc
        subject = payload.get("sub") if isinstance(payload, dict) else None
        if not subject:
            raise InvalidIdentityToken("Token has no subject")
        return subject
