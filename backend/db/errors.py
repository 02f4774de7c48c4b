"""Database error helpers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


def _sqlstate(error: IntegrityError) -> str | None:
    original = getattr(error, "orig", None)
    return getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError indicates a unique-constraint conflict."""
    if _sqlstate(error) == "23505":
        return True
    message = str(getattr(error, "orig", None) or error).lower()
    return "duplicate key" in message or "unique constraint" in message


def is_foreign_key_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError indicates a dangling foreign key."""
    if _sqlstate(error) == "23503":
        return True
    message = str(getattr(error, "orig", None) or error).lower()
    return "foreign key" in message


__all__ = ["is_foreign_key_violation", "is_unique_violation"]
