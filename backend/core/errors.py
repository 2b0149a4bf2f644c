"""
Domain error taxonomy.

Every error carries the HTTP status it maps to; ``main.py`` registers a
handler that renders them as ``{"detail": message}``.
"""


class AccessError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailedError(AccessError):
    status_code = 400
    default_message = "Invalid request"


class UnauthenticatedError(AccessError):
    status_code = 401
    default_message = "Not authenticated"


class ForbiddenError(AccessError):
    status_code = 403
    default_message = "Forbidden"


class SelfDemotionError(ForbiddenError):
    """An admin attempted to remove their own admin capability."""

    default_message = "You cannot remove your own admin access"


class NotFoundError(AccessError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AccessError):
    status_code = 409
    default_message = "Resource already exists"


class UpstreamError(AccessError):
    """A collaborator (identity provider, storage) failed or rejected a call."""

    status_code = 502
    default_message = "Upstream service error"
