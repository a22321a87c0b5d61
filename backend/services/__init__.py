"""Business logic services."""

from .accounts import (
    SessionTokens,
    UserCreate,
    UserProfileUpdate,
    append_watch_history,
    change_avatar,
    check_password,
    create_user,
    issue_session_tokens,
    login,
    logout,
    refresh_session,
    register_user,
    update_password,
    update_profile,
)
from .storage import (
    BlobStorage,
    MinioBlobStorage,
    UploadedBlob,
    build_object_url,
    delete_object,
    ensure_bucket,
    get_minio_client,
    upload_file,
)

__all__ = [
    "SessionTokens",
    "UserCreate",
    "UserProfileUpdate",
    "append_watch_history",
    "change_avatar",
    "check_password",
    "create_user",
    "issue_session_tokens",
    "login",
    "logout",
    "refresh_session",
    "register_user",
    "update_password",
    "update_profile",
    "BlobStorage",
    "MinioBlobStorage",
    "UploadedBlob",
    "build_object_url",
    "delete_object",
    "ensure_bucket",
    "get_minio_client",
    "upload_file",
]
