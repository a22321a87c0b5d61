"""FastAPI dependencies wiring the account core into request handlers."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core import Settings, TokenInvalid, settings, verify_token
from core.tokens import ACCESS_TOKEN_TYPE
from db.session import get_session
from models import User
from repositories import SQLUserRepository, UserRepository

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings() -> Settings:
    return settings


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_user_repository(session: AsyncSession = Depends(get_db)) -> UserRepository:
    return SQLUserRepository(session)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    repository: UserRepository = Depends(get_user_repository),
    app_settings: Settings = Depends(get_settings),
) -> User:
    if credentials is None:
        raise TokenInvalid("Missing access token")
    payload = verify_token(
        credentials.credentials,
        app_settings.access_token_secret,
        token_type=ACCESS_TOKEN_TYPE,
    )
    user = await repository.find_by_id(payload["sub"])
    if user is None:
        raise TokenInvalid("Unknown user")
    return user
