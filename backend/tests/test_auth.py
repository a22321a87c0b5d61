"""Unit tests for identity resolution and refresh-token storage helpers."""

import pytest

from core import hash_password
from models import User
from services.auth import (
    hash_refresh_token,
    normalize_identifier,
    refresh_token_matches,
    resolve_login_user,
    revoke_refresh_token,
    store_refresh_token,
)


def make_user() -> User:
    return User(
        username="erin",
        email="erin@example.com",
        fullname="erin demo",
        avatar_url="https://media.test/erin.png",
        password_hash=hash_password("s3cret", rounds=4),
    )


def test_normalizers_trim_and_lowercase() -> None:
    assert normalize_identifier("  Erin ") == "erin"
    assert normalize_identifier(" Mixed.Case+alias@Example.COM ") == "mixed.case+alias@example.com"


def test_hash_refresh_token_is_stable_sha256() -> None:
    digest = hash_refresh_token("token")

    assert digest == hash_refresh_token("token")
    assert len(digest) == 64
    assert digest != "token"


def test_refresh_token_lifecycle() -> None:
    user = make_user()
    assert refresh_token_matches(user, "first") is False

    store_refresh_token(user, "first")
    assert user.refresh_token == hash_refresh_token("first")
    assert refresh_token_matches(user, "first") is True

    store_refresh_token(user, "second")
    assert refresh_token_matches(user, "first") is False
    assert refresh_token_matches(user, "second") is True

    revoke_refresh_token(user)
    assert user.refresh_token is None
    assert refresh_token_matches(user, "second") is False


@pytest.mark.asyncio
async def test_resolve_login_user_checks_password(memory_repository) -> None:
    user = make_user()
    await memory_repository.insert(user)

    assert await resolve_login_user(memory_repository, identifier="ERIN", password="s3cret") is user
    assert (
        await resolve_login_user(
            memory_repository, identifier=" erin@example.com", password="s3cret"
        )
        is user
    )
    assert await resolve_login_user(memory_repository, identifier="erin", password="nope") is None
    assert await resolve_login_user(memory_repository, identifier="", password="s3cret") is None
    assert await resolve_login_user(memory_repository, identifier="erin", password="") is None
