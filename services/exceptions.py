"""Application error taxonomy.

Every ``AppError`` carries a user-facing ``message`` and the HTTP status it is
rendered with. Storage errors are kept separate so the follow service can tell
a failed counter write apart from a rejected request.
"""

from __future__ import annotations

from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnauthenticatedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class InvalidOperationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    # Reported as 400 to match the existing client contract.
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class UnexpectedError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PersistenceError(Exception):
    """A storage operation failed."""


class DuplicateRelationshipError(PersistenceError):
    """The (follower, following) pair already exists in storage."""


__all__ = [
    "AppError",
    "UnauthenticatedError",
    "InvalidOperationError",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "UnexpectedError",
    "PersistenceError",
    "DuplicateRelationshipError",
]
