"""Database helpers."""

from .errors import is_unique_violation, unique_violation_column
from .session import AsyncSessionMaker, async_engine, get_session, init_models

__all__ = [
    "AsyncSessionMaker",
    "async_engine",
    "get_session",
    "init_models",
    "is_unique_violation",
    "unique_violation_column",
]
