"""Core configuration, security and error primitives."""

from .config import Settings, settings
from .errors import (
    ApiError,
    ErrorDetail,
    ErrorResponse,
    HashingError,
    TokenExpired,
    TokenInvalid,
    UniquenessError,
    UploadError,
    ValidationError,
)
from .logging_config import configure_logging
from .security import hash_password, hash_rounds, is_password_hash, verify_password
from .tokens import (
    TokenClaims,
    issue_access_token,
    issue_refresh_token,
    verify_token,
)

__all__ = [
    "Settings",
    "settings",
    "configure_logging",
    "ApiError",
    "ErrorDetail",
    "ErrorResponse",
    "HashingError",
    "TokenExpired",
    "TokenInvalid",
    "UniquenessError",
    "UploadError",
    "ValidationError",
    "hash_password",
    "hash_rounds",
    "is_password_hash",
    "verify_password",
    "TokenClaims",
    "issue_access_token",
    "issue_refresh_token",
    "verify_token",
]
