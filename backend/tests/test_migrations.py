"""Alembic migrations produce the schema the repository relies on."""

from collections.abc import AsyncIterator
from pathlib import Path

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core import UniquenessError, hash_password
from core.config import settings
from models import User
from repositories import SQLUserRepository


def _run_alembic_migrations(database_url: str) -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


@pytest.fixture()
def migrated_database_url(tmp_path) -> str:
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'migrated.db'}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest_asyncio.fixture()
async def migrated_session(migrated_database_url: str) -> AsyncIterator[AsyncSession]:
    engine = create_async_engine(migrated_database_url)
    async with async_sessionmaker(engine, expire_on_commit=False)() as session:
        yield session
    await engine.dispose()


def make_user(username: str, email: str) -> User:
    return User(
        username=username,
        email=email,
        fullname=f"{username} demo",
        avatar_url=f"https://media.test/{username}.png",
        password_hash=hash_password("s3cret", rounds=4),
    )


@pytest.mark.asyncio
async def test_migration_creates_users_table(migrated_session: AsyncSession) -> None:
    def _columns(sync_session) -> set[str]:
        return {column["name"] for column in inspect(sync_session.connection()).get_columns("users")}

    columns = await migrated_session.run_sync(_columns)

    assert {
        "id",
        "username",
        "email",
        "fullname",
        "avatar_url",
        "cover_image_url",
        "watch_history",
        "password_hash",
        "refresh_token",
        "created_at",
        "updated_at",
    } <= columns


@pytest.mark.asyncio
async def test_migrated_schema_enforces_unique_email(migrated_session: AsyncSession) -> None:
    repository = SQLUserRepository(migrated_session)
    await repository.insert(make_user("gail", "gail@example.com"))

    with pytest.raises(UniquenessError) as exc_info:
        await repository.insert(make_user("gail2", "gail@example.com"))

    assert exc_info.value.field == "email"
