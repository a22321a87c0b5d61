"""User domain model."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """Registered account with its credentials and session state."""

    __tablename__ = "users"

    # Assigned by the repository on insert.
    id: str | None = Field(default=None, sa_column=Column(String(36), primary_key=True))
    username: str = Field(
        sa_column=Column(String(30), unique=True, nullable=False, index=True)
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False)
    )
    fullname: str = Field(
        sa_column=Column(String(120), nullable=False, index=True)
    )
    avatar_url: str = Field(
        sa_column=Column(String(1024), nullable=False)
    )
    cover_image_url: str | None = Field(
        default=None, sa_column=Column(String(1024), nullable=True)
    )
    # Video ids in viewing order; videos are owned elsewhere.
    watch_history: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False)
    )
    # SHA-256 digest of the most recently issued refresh token.
    refresh_token: str | None = Field(
        default=None, sa_column=Column(String(64), nullable=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
