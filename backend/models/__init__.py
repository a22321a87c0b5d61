"""SQLModel models package."""

from .user import User, utcnow

__all__ = ["User", "utcnow"]
