"""Service-layer error taxonomy.

Every error carries a human-readable ``message``; the API layer maps each
class to an HTTP status in ``mmhealth.main``.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors raised by entity services and hooks."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticatedError(ServiceError):
    """No subject id available for an authenticated call."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class RemoteRejectedError(ServiceError):
    """The backend returned an error (constraint violation, permission, connectivity).

    ``transient`` is set for connection-level failures that may succeed on retry.
    """

    def __init__(self, message: str, *, transient: bool = False):
        super().__init__(message)
        self.transient = transient


class NotFoundError(ServiceError):
    """An expected row was absent."""


class InvalidImportError(ServiceError):
    """An import document is not a version 2 export or holds malformed values."""
