"""Scanara-Engine exception hierarchy."""


class ScanaraError(Exception):
    """Base exception for all Scanara errors."""

    status_code = 500

    def __init__(self, message: str = "", code: str = "SCANARA_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(ScanaraError):
    """Raised when required input is missing or malformed."""

    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, code="VALIDATION_ERROR")


class UnauthenticatedError(ScanaraError):
    """Raised when no credential scheme produced a principal."""

    status_code = 401

    def __init__(self, message: str = "Invalid or missing credentials"):
        super().__init__(message, code="UNAUTHENTICATED")


class ForbiddenError(ScanaraError):
    """Raised when the principal does not own the requested entity."""

    status_code = 403

    def __init__(self, message: str = "You do not have access to this project"):
        super().__init__(message, code="FORBIDDEN")


class NotFoundError(ScanaraError):
    """Raised when an entity id does not resolve."""

    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND")


class UpstreamEngineError(ScanaraError):
    """Raised when the analysis engine call or its response parsing fails."""

    status_code = 500

    def __init__(self, message: str = "Analysis engine failed"):
        super().__init__(message, code="UPSTREAM_ENGINE_ERROR")


class RemoteRepositoryError(ScanaraError):
    """Raised when the remote repository host (OAuth, listing, clone) fails."""

    status_code = 500

    def __init__(self, message: str = "Remote repository host failed"):
        super().__init__(message, code="REMOTE_REPOSITORY_ERROR")


class InternalError(ScanaraError):
    """Raised for storage failures and anything else unexpected."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, code="INTERNAL_ERROR")
