"""Database error helpers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

# PostgreSQL unique_violation, raised by asyncpg for unique and primary-key clashes.
UNIQUE_VIOLATION_SQLSTATE = "23505"

# sqlite3 extended result names for the same conflicts.
SQLITE_UNIQUE_ERRORNAMES = frozenset(
    {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
)


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when an insert collided with an existing unique or primary key."""
    original = getattr(error, "orig", None)
    if original is None:
        return False

    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE

    errorname = getattr(original, "sqlite_errorname", None)
    if errorname is not None:
        return errorname in SQLITE_UNIQUE_ERRORNAMES

    message = str(original).lower()
    return "unique constraint failed" in message or "duplicate key" in message


__all__ = ["UNIQUE_VIOLATION_SQLSTATE", "is_unique_violation"]
