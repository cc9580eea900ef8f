"""Business logic services."""

from .exceptions import (
    AppError,
    ConflictError,
    DuplicateRelationshipError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    PersistenceError,
    UnauthenticatedError,
    UnexpectedError,
)

__all__ = [
    "AppError",
    "ConflictError",
    "DuplicateRelationshipError",
    "ForbiddenError",
    "InvalidOperationError",
    "NotFoundError",
    "PersistenceError",
    "UnauthenticatedError",
    "UnexpectedError",
]
