"""Error taxonomy shared by the service layer and the HTTP boundary.

Every rejected operation raises one of these exceptions. Each carries a
stable ``kind`` that callers can switch on and a human-readable reason.
"""

from __future__ import annotations

from fastapi import status


class BoardError(RuntimeError):
    """Base exception for all confession board failures."""

    kind: str = "internal_failure"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(BoardError):
    """Raised for malformed input such as length or enum violations."""

    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(BoardError):
    """Raised when a referenced entity does not exist."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(BoardError):
    """Raised when the entity's state or the caller's role disallows the action."""

    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class Gone(BoardError):
    """Raised when acting on an expired confession."""

    kind = "gone"
    status_code = status.HTTP_410_GONE


class Conflict(BoardError):
    """Raised when a uniqueness race cannot be recovered locally."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class RateLimited(BoardError):
    """Raised when the quota collaborator denies an action."""

    kind = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class InternalFailure(BoardError):
    """Raised for storage failures surfaced to the caller."""


__all__ = [
    "BoardError",
    "Conflict",
    "Forbidden",
    "Gone",
    "InternalFailure",
    "NotFound",
    "RateLimited",
    "ValidationError",
]
