"""Password hashing with bcrypt."""

from __future__ import annotations

import re

import bcrypt

from .errors import HashingError

BCRYPT_MAX_PASSWORD_BYTES = 72
DEFAULT_ROUNDS = 12

_BCRYPT_HASH_PATTERN = re.compile(r"^\$2[abxy]?\$(\d{2})\$[./A-Za-z0-9]{53}$")


def _encode_password(plaintext: str) -> bytes:
    if not plaintext:
        raise HashingError("Password must not be empty")
    encoded = plaintext.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise HashingError(
            f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes"
        )
    return encoded


def is_password_hash(value: str) -> bool:
    """Return True when ``value`` is shaped like a bcrypt hash."""
    return _BCRYPT_HASH_PATTERN.match(value) is not None


def hash_rounds(password_hash: str) -> int:
    """Return the work factor embedded in a stored bcrypt hash."""
    match = _BCRYPT_HASH_PATTERN.match(password_hash)
    if match is None:
        raise HashingError("Malformed password hash")
    return int(match.group(1))


def hash_password(plaintext: str, *, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a plaintext password with a fresh salt and the given work factor."""
    encoded = _encode_password(plaintext)
    try:
        hashed = bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds))
    except ValueError as exc:
        raise HashingError(f"Password hashing failed: {exc}") from exc
    return hashed.decode("utf-8")


def verify_password(plaintext: str, password_hash: str) -> bool:
    """Check ``plaintext`` against ``password_hash`` in constant time.

    A mismatch returns False. Only a malformed ``password_hash`` raises.
    """
    if not is_password_hash(password_hash):
        raise HashingError("Malformed password hash")
    if not plaintext:
        return False
    encoded = plaintext.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError as exc:
        raise HashingError("Malformed password hash") from exc


__all__ = [
    "BCRYPT_MAX_PASSWORD_BYTES",
    "DEFAULT_ROUNDS",
    "hash_password",
    "hash_rounds",
    "is_password_hash",
    "verify_password",
]
