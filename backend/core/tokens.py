"""Signed bearer tokens for user sessions.

Access tokens carry the user's identity and profile claims and authorize
resource access. Refresh tokens carry only the identity and are used to mint
new access tokens. Each kind is signed with its own secret and lifetime.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from jose import ExpiredSignatureError, JWTError, jwt

from .errors import TokenExpired, TokenInvalid

ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

TokenType = Literal["access", "refresh"]


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    username: str
    fullname: str

    @classmethod
    def from_user(cls, user: Any) -> "TokenClaims":
        if not user.id:
            raise TokenInvalid("User record is missing an identifier")
        return cls(
            user_id=str(user.id),
            email=user.email,
            username=user.username,
            fullname=user.fullname,
        )


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _sign(payload: dict[str, Any], secret: str, ttl: timedelta, now: datetime | None) -> str:
    if not secret:
        raise TokenInvalid("Token secret is not configured")
    issued_at = _now(now)
    payload = {
        **payload,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + ttl).timestamp()),
    }
    try:
        return jwt.encode(payload, secret, algorithm=ALGORITHM)
    except JWTError as exc:
        raise TokenInvalid(f"Token signing failed: {exc}") from exc


def issue_access_token(
    claims: TokenClaims,
    secret: str,
    ttl: timedelta,
    *,
    now: datetime | None = None,
) -> str:
    """Return a signed access token encoding identity and profile claims."""
    return _sign(
        {
            "sub": claims.user_id,
            "email": claims.email,
            "username": claims.username,
            "fullname": claims.fullname,
            "type": ACCESS_TOKEN_TYPE,
        },
        secret,
        ttl,
        now,
    )


def issue_refresh_token(
    claims: TokenClaims,
    secret: str,
    ttl: timedelta,
    *,
    now: datetime | None = None,
) -> str:
    """Return a signed refresh token encoding only the user identity."""
    return _sign(
        {
            "sub": claims.user_id,
            "type": REFRESH_TOKEN_TYPE,
            "jti": secrets.token_hex(16),
        },
        secret,
        ttl,
        now,
    )


def verify_token(
    token: str,
    secret: str,
    *,
    token_type: TokenType | None = None,
) -> dict[str, Any]:
    """Decode ``token`` and return its claims.

    Raises ``TokenExpired`` for an elapsed token and ``TokenInvalid`` for a
    bad signature, a malformed token or an unexpected token type.
    """
    if not token:
        raise TokenInvalid("Missing token")
    try:
        payload: dict[str, Any] = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except JWTError as exc:
        raise TokenInvalid() from exc

    expires_at = payload.get("exp")
    if not isinstance(expires_at, int):
        raise TokenInvalid("Token has no expiry")
    if expires_at <= int(datetime.now(timezone.utc).timestamp()):
        raise TokenExpired()

    if not isinstance(payload.get("sub"), str):
        raise TokenInvalid("Token has no subject")
    if token_type is not None and payload.get("type") != token_type:
        raise TokenInvalid(f"Expected a {token_type} token")
    return payload


__all__ = [
    "ACCESS_TOKEN_TYPE",
    "ALGORITHM",
    "REFRESH_TOKEN_TYPE",
    "TokenClaims",
    "issue_access_token",
    "issue_refresh_token",
    "verify_token",
]
