"""Persistence adapters."""

from .users import SQLUserRepository, UserRepository

__all__ = ["SQLUserRepository", "UserRepository"]
