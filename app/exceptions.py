"""
Engine Error Taxonomy

Errors raised by the discovery services. Each error carries the HTTP status
the API layer answers with, so routers never need to translate them by hand:
a single exception handler registered in create_app() does it.

- ValidationError: malformed pagination, range or rating input
- NotFoundError: referenced book, review or user does not exist
- ConflictError: self-follow attempts
- AuthorizationError: acting on something the caller doesn't own
- TransientStorageError: a correctness-critical write failed in storage

Read paths (feeds, trending, categories) and best-effort activity recording
don't raise TransientStorageError; they log and degrade to empty results.
"""

from fastapi import status


class DiscoveryError(Exception):
    """Base class for errors raised by the discovery engine."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DiscoveryError):
    """Raised when input validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(DiscoveryError):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DiscoveryError):
    """Raised when an operation conflicts with a graph invariant."""

    status_code = status.HTTP_409_CONFLICT


class AuthorizationError(DiscoveryError):
    """Raised when user lacks permission for an operation."""

    status_code = status.HTTP_403_FORBIDDEN


class TransientStorageError(DiscoveryError):
    """Raised when a write against the store fails."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
