"""Identity normalization and login-user resolution helpers."""

from __future__ import annotations

import asyncio

from core import verify_password
from models import User
from repositories import UserRepository


def normalize_identifier(value: str) -> str:
    return value.strip().lower()


async def resolve_login_user(
    repository: UserRepository,
    *,
    identifier: str,
    password: str,
) -> User | None:
    """Return the user matching ``identifier`` and ``password``, if any.

    ``identifier`` may be either the username or the email address; both are
    stored normalized so a single lookup covers them.
    """
    normalized = normalize_identifier(identifier)
    if not normalized or not password:
        return None

    user = await repository.find_by_username_or_email(normalized, normalized)
    if user is None:
        return None
    if not await asyncio.to_thread(verify_password, password, user.password_hash):
        return None
    return user
