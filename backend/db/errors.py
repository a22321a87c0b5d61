"""Database error helpers."""

from __future__ import annotations

import re

from sqlalchemy.exc import IntegrityError

_SQLITE_UNIQUE_COLUMN = re.compile(r"unique constraint failed: [\w]+\.(\w+)")
_POSTGRES_UNIQUE_KEY = re.compile(r"key \((\w+)\)=")


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError indicates a unique-constraint conflict."""
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == "23505":
        return True
    message = str(original or error).lower()
    return "duplicate key" in message or "unique constraint" in message


def unique_violation_column(error: IntegrityError) -> str | None:
    """Return the column named by a unique-constraint error, when the driver reports it."""
    message = str(getattr(error, "orig", None) or error).lower()
    for pattern in (_SQLITE_UNIQUE_COLUMN, _POSTGRES_UNIQUE_KEY):
        match = pattern.search(message)
        if match:
            return match.group(1)
    return None


__all__ = ["is_unique_violation", "unique_violation_column"]
