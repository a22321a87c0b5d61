"""User persistence boundary."""

from __future__ import annotations

from typing import Any, Protocol, cast
from uuid import uuid4

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core.errors import UniquenessError
from db.errors import is_unique_violation, unique_violation_column
from models import User, utcnow


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


class UserRepository(Protocol):
    async def find_by_username_or_email(self, username: str, email: str) -> User | None: ...

    async def find_by_id(self, user_id: str) -> User | None: ...

    async def insert(self, user: User) -> User:
        """Persist a new user and assign its identity. Raises UniquenessError on a duplicate."""
        ...

    async def update(self, user: User) -> User:
        """Persist changes to an existing user. Raises UniquenessError on a duplicate."""
        ...


class SQLUserRepository:
    """UserRepository backed by an async SQLAlchemy session.

    Uniqueness of ``username`` and ``email`` is enforced by the table's unique
    indexes, so concurrent registrations are arbitrated by the database.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_username_or_email(self, username: str, email: str) -> User | None:
        result = await self.session.execute(
            select(User)
            .where(or_(_eq(User.username, username), _eq(User.email, email)))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: str) -> User | None:
        return await self.session.get(User, user_id)

    async def insert(self, user: User) -> User:
        if user.id is None:
            user.id = str(uuid4())
        now = utcnow()
        user.created_at = now
        user.updated_at = now
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            if is_unique_violation(exc):
                raise UniquenessError(unique_violation_column(exc)) from exc
            raise
        except Exception:
            await self.session.rollback()
            raise
        return user

    async def update(self, user: User) -> User:
        user.updated_at = utcnow()
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            # Rollback expires the instance; reload the persisted values.
            await self.session.refresh(user)
            if is_unique_violation(exc):
                raise UniquenessError(unique_violation_column(exc)) from exc
            raise
        except Exception:
            await self.session.rollback()
            raise
        return user

