"""Error kinds raised by the service layer.

Every error carries the HTTP status the API boundary answers with, so route
handlers never translate errors by inspecting messages.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(DomainError):
    status_code = 401
    default_message = "Authentication required"


class Unauthorized(DomainError):
    status_code = 403
    default_message = "Not permitted for this resource"


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found"


class ProfileNotFound(NotFound):
    default_message = "MUA profile not found"


class ValidationError(DomainError):
    status_code = 400
    default_message = "Invalid input"


class Conflict(DomainError):
    status_code = 409
    default_message = "Conflict"


class InvalidTransition(DomainError):
    status_code = 409
    default_message = "Invalid status transition"


class StorageError(DomainError):
    status_code = 500
    default_message = "Storage failure"


__all__ = [
    "Conflict",
    "DomainError",
    "InvalidTransition",
    "NotFound",
    "ProfileNotFound",
    "StorageError",
    "Unauthenticated",
    "Unauthorized",
    "ValidationError",
]
