"""Authentication domain services."""

from .identity_resolution import (
    normalize_identifier,
    resolve_login_user,
)
from .token_store import (
    hash_refresh_token,
    refresh_token_matches,
    revoke_refresh_token,
    store_refresh_token,
)

__all__ = [
    "normalize_identifier",
    "resolve_login_user",
    "hash_refresh_token",
    "refresh_token_matches",
    "revoke_refresh_token",
    "store_refresh_token",
]
