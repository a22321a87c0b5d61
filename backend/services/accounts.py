"""Account lifecycle: registration, credentials and session tokens.

Password hashing happens explicitly inside ``create_user`` and
``update_password``; nothing else writes ``User.password_hash``. Hashing is
CPU-bound and runs in a worker thread so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
)
from pydantic import ValidationError as PydanticValidationError

from core import (
    ErrorDetail,
    HashingError,
    Settings,
    TokenClaims,
    TokenInvalid,
    UniquenessError,
    ValidationError,
    hash_password,
    hash_rounds,
    issue_access_token,
    issue_refresh_token,
    verify_password,
    verify_token,
)
from core.security import BCRYPT_MAX_PASSWORD_BYTES
from core.tokens import REFRESH_TOKEN_TYPE
from models import User
from repositories import UserRepository

from .auth import (
    refresh_token_matches,
    resolve_login_user,
    revoke_refresh_token,
    store_refresh_token,
)
from .storage import BlobStorage, UploadedBlob

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _normalize(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _strip(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def _reject_email_like_username(value: str) -> str:
    # Login accepts a username or an email in one field.
    if "@" in value:
        raise ValueError("Username cannot contain '@'")
    return value


def _check_password_length(value: str) -> str:
    if len(value.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return value


Username = Annotated[
    str,
    BeforeValidator(_normalize),
    Field(min_length=1, max_length=30),
    AfterValidator(_reject_email_like_username),
]
Email = Annotated[EmailStr, BeforeValidator(_normalize)]
Fullname = Annotated[str, BeforeValidator(_normalize), Field(min_length=1, max_length=120)]
MediaUrl = Annotated[str, BeforeValidator(_strip), Field(min_length=1, max_length=1024)]
Password = Annotated[str, Field(min_length=1), AfterValidator(_check_password_length)]


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: Username
    email: Email
    fullname: Fullname
    password: Password
    avatar_url: MediaUrl
    cover_image_url: MediaUrl | None = None


class PasswordChange(BaseModel):
    password: Password


class UserProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: Username | None = None
    email: Email | None = None
    fullname: Fullname | None = None
    avatar_url: MediaUrl | None = None
    cover_image_url: MediaUrl | None = None


REQUIRED_PROFILE_FIELDS = ("username", "email", "fullname", "avatar_url")
PASSWORD_FIELDS = frozenset({"password", "password_hash"})


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


def _parse(model: type[ModelT], fields: Mapping[str, Any] | ModelT) -> ModelT:
    if isinstance(fields, model):
        return fields
    try:
        return model.model_validate(dict(fields))
    except PydanticValidationError as exc:
        raise ValidationError(
            errors=[
                ErrorDetail(
                    field=".".join(str(part) for part in error["loc"]) or None,
                    message=error["msg"],
                )
                for error in exc.errors()
            ]
        ) from exc


async def _hash(plaintext: str, settings: Settings) -> str:
    try:
        return await asyncio.to_thread(
            hash_password,
            plaintext,
            rounds=settings.password_hash_rounds,
        )
    except HashingError:
        logger.exception("Password hashing failed")
        raise


async def create_user(
    fields: Mapping[str, Any] | UserCreate,
    *,
    repository: UserRepository,
    settings: Settings,
) -> User:
    """Validate, normalize and persist a new user with a hashed password."""
    data = _parse(UserCreate, fields)

    existing = await repository.find_by_username_or_email(data.username, data.email)
    if existing is not None:
        field = "username" if existing.username == data.username else "email"
        logger.warning("Registration rejected: %s already in use", field)
        raise ValidationError.duplicate(field)

    user = User(
        username=data.username,
        email=data.email,
        fullname=data.fullname,
        avatar_url=data.avatar_url,
        cover_image_url=data.cover_image_url,
        password_hash=await _hash(data.password, settings),
    )
    try:
        user = await repository.insert(user)
    except UniquenessError as exc:
        logger.warning("Registration rejected by repository: %s already in use", exc.field)
        raise ValidationError.duplicate(exc.field) from exc

    logger.info("Created user %s (bcrypt cost %d)", user.id, hash_rounds(user.password_hash))
    return user


async def update_password(
    user: User,
    new_password: str,
    *,
    repository: UserRepository,
    settings: Settings,
) -> bool:
    """Store a new password hash when the password actually changes.

    Returns False without writing when ``new_password`` is the stored hash
    itself or the plaintext the stored hash already represents.
    """
    if not new_password:
        raise ValidationError(errors=[ErrorDetail(field="password", message="Password is required")])
    if new_password == user.password_hash:
        return False
    _parse(PasswordChange, {"password": new_password})
    if await check_password(user, new_password):
        return False

    user.password_hash = await _hash(new_password, settings)
    await repository.update(user)
    logger.info("Password changed for user %s", user.id)
    return True


async def check_password(user: User, plaintext: str) -> bool:
    return await asyncio.to_thread(verify_password, plaintext, user.password_hash)


def issue_session_tokens(user: User, settings: Settings) -> SessionTokens:
    """Sign an access/refresh token pair from the user's current fields.

    Nothing is persisted; callers decide whether to store the refresh token.
    """
    claims = TokenClaims.from_user(user)
    return SessionTokens(
        access_token=issue_access_token(
            claims,
            settings.access_token_secret,
            settings.access_token_ttl,
        ),
        refresh_token=issue_refresh_token(
            claims,
            settings.refresh_token_secret,
            settings.refresh_token_ttl,
        ),
    )


async def _start_session(user: User, *, repository: UserRepository, settings: Settings) -> SessionTokens:
    tokens = issue_session_tokens(user, settings)
    store_refresh_token(user, tokens.refresh_token)
    await repository.update(user)
    return tokens


async def login(
    identifier: str,
    password: str,
    *,
    repository: UserRepository,
    settings: Settings,
) -> tuple[User, SessionTokens]:
    user = await resolve_login_user(repository, identifier=identifier, password=password)
    if user is None:
        raise TokenInvalid("Invalid credentials")
    tokens = await _start_session(user, repository=repository, settings=settings)
    logger.info("User %s logged in", user.id)
    return user, tokens


async def refresh_session(
    refresh_token: str,
    *,
    repository: UserRepository,
    settings: Settings,
) -> tuple[User, SessionTokens]:
    """Exchange a current refresh token for a new token pair."""
    payload = verify_token(
        refresh_token,
        settings.refresh_token_secret,
        token_type=REFRESH_TOKEN_TYPE,
    )
    user = await repository.find_by_id(payload["sub"])
    if user is None:
        raise TokenInvalid("Invalid refresh token")
    if not refresh_token_matches(user, refresh_token):
        logger.warning("Rejected stale or revoked refresh token for user %s", user.id)
        raise TokenInvalid("Refresh token revoked")
    tokens = await _start_session(user, repository=repository, settings=settings)
    return user, tokens


async def logout(user: User, *, repository: UserRepository) -> User:
    revoke_refresh_token(user)
    return await repository.update(user)


async def update_profile(
    user: User,
    changes: Mapping[str, Any],
    *,
    repository: UserRepository,
) -> User:
    """Apply profile edits; the stored password hash is never touched."""
    password_fields = PASSWORD_FIELDS.intersection(changes)
    if password_fields:
        raise ValidationError(
            errors=[
                ErrorDetail(field=field, message="Use update_password to change the password")
                for field in sorted(password_fields)
            ]
        )

    updates = _parse(UserProfileUpdate, changes).model_dump(exclude_unset=True)
    cleared = [field for field in REQUIRED_PROFILE_FIELDS if field in updates and updates[field] is None]
    if cleared:
        raise ValidationError(
            errors=[ErrorDetail(field=field, message="Field is required") for field in cleared]
        )
    if not updates:
        return user

    previous = {field: getattr(user, field) for field in updates}
    for field, value in updates.items():
        setattr(user, field, value)
    try:
        return await repository.update(user)
    except Exception as exc:
        for field, value in previous.items():
            setattr(user, field, value)
        if isinstance(exc, UniquenessError):
            raise ValidationError.duplicate(exc.field) from exc
        raise


async def append_watch_history(
    user: User,
    video_id: str,
    *,
    repository: UserRepository,
) -> User:
    normalized = video_id.strip() if isinstance(video_id, str) else ""
    if not normalized:
        raise ValidationError(errors=[ErrorDetail(field="video_id", message="Video id is required")])
    previous = user.watch_history
    # Reassign so the JSON column is flagged as modified.
    user.watch_history = [*previous, normalized]
    try:
        return await repository.update(user)
    except Exception:
        user.watch_history = previous
        raise


async def _discard_uploads(storage: BlobStorage, blobs: list[UploadedBlob]) -> None:
    for blob in blobs:
        try:
            await asyncio.to_thread(storage.delete, blob.key)
        except Exception as cleanup_error:
            logger.warning(
                "Failed to cleanup uploaded media after a failed write",
                extra={"object_key": blob.key},
                exc_info=cleanup_error,
            )


async def register_user(
    fields: Mapping[str, Any],
    *,
    avatar_path: str | Path | None,
    cover_image_path: str | Path | None = None,
    repository: UserRepository,
    storage: BlobStorage,
    settings: Settings,
) -> User:
    """Upload the profile images, then create the user referencing them.

    A failed upload aborts before anything is persisted; a failed creation
    deletes whatever was uploaded.
    """
    if not avatar_path:
        raise ValidationError(errors=[ErrorDetail(field="avatar", message="Avatar file is required")])

    uploaded: list[UploadedBlob] = []
    try:
        avatar = await asyncio.to_thread(storage.upload, avatar_path)
        uploaded.append(avatar)
        cover = None
        if cover_image_path:
            cover = await asyncio.to_thread(storage.upload, cover_image_path)
            uploaded.append(cover)

        return await create_user(
            {
                **fields,
                "avatar_url": avatar.url,
                "cover_image_url": cover.url if cover is not None else None,
            },
            repository=repository,
            settings=settings,
        )
    except Exception:
        await _discard_uploads(storage, uploaded)
        raise


async def change_avatar(
    user: User,
    local_path: str | Path,
    *,
    repository: UserRepository,
    storage: BlobStorage,
) -> User:
    """Replace the user's avatar and remove the previous hosted object."""
    previous_url = user.avatar_url
    previous_key = storage.key_for_url(previous_url)
    avatar = await asyncio.to_thread(storage.upload, local_path)

    user.avatar_url = avatar.url
    try:
        user = await repository.update(user)
    except Exception:
        user.avatar_url = previous_url
        await _discard_uploads(storage, [avatar])
        raise

    if previous_key is not None and previous_key != avatar.key:
        try:
            await asyncio.to_thread(storage.delete, previous_key)
        except Exception as cleanup_error:
            logger.warning(
                "Failed to cleanup replaced avatar object",
                extra={"object_key": previous_key},
                exc_info=cleanup_error,
            )
    return user
