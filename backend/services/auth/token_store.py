"""Refresh-token persistence and rotation helpers.

Only a SHA-256 digest of the latest refresh token is kept on the user record,
so a leaked database row cannot be replayed as a session.
"""

from __future__ import annotations

import hashlib
import hmac

from models import User


def hash_refresh_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def store_refresh_token(user: User, token: str) -> None:
    user.refresh_token = hash_refresh_token(token)


def refresh_token_matches(user: User, token: str) -> bool:
    if user.refresh_token is None:
        return False
    return hmac.compare_digest(user.refresh_token, hash_refresh_token(token))


def revoke_refresh_token(user: User) -> None:
    user.refresh_token = None
