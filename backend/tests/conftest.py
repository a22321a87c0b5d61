"""Pytest fixtures for the accounts backend."""

from collections.abc import AsyncIterator
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core import Settings, UniquenessError
from db.session import init_models
from models import User
from repositories import SQLUserRepository


@pytest.fixture()
def test_settings() -> Settings:
    """Settings with distinct test secrets and the cheapest bcrypt work factor."""
    return Settings(
        app_env="test",
        access_token_secret="test-access-secret",
        refresh_token_secret="test-refresh-secret",
        access_token_expire_minutes=5,
        refresh_token_expire_minutes=60,
        password_hash_rounds=4,
        minio_bucket="test-media",
        media_public_base_url="https://media.test",
    )


@pytest_asyncio.fixture()
async def test_engine() -> AsyncIterator:
    """Create an in-memory SQLite engine with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


@pytest.fixture()
def repository(db_session: AsyncSession) -> SQLUserRepository:
    return SQLUserRepository(db_session)


class InMemoryUserRepository:
    """Dict-backed repository recording every call it receives."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.inserted: list[User] = []
        self.updated: list[User] = []
        self.fail_insert_with: Exception | None = None
        self.fail_update_with: Exception | None = None

    async def find_by_username_or_email(self, username: str, email: str) -> User | None:
        for user in self.users.values():
            if user.username == username or user.email == email:
                return user
        return None

    async def find_by_id(self, user_id: str) -> User | None:
        return self.users.get(user_id)

    async def insert(self, user: User) -> User:
        self.inserted.append(user)
        if user.id is None:
            user.id = str(uuid4())
        if self.fail_insert_with is not None:
            raise self.fail_insert_with
        for existing in self.users.values():
            if existing.username == user.username:
                raise UniquenessError("username")
            if existing.email == user.email:
                raise UniquenessError("email")
        self.users[user.id] = user
        return user

    async def update(self, user: User) -> User:
        self.updated.append(user)
        if self.fail_update_with is not None:
            raise self.fail_update_with
        self.users[user.id] = user
        return user


@pytest.fixture()
def memory_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()
