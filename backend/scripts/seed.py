"""Database seed script for local development.

Usage:
    python scripts/seed.py

Optional overrides:
    SEED_USER_COUNT=4 SEED_PASSWORD=... python scripts/seed.py

Demo accounts point at placeholder avatar URLs so no media host is needed.
"""

from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import Settings, ValidationError, configure_logging, settings  # noqa: E402
from db.session import AsyncSessionMaker, init_models  # noqa: E402
from repositories import SQLUserRepository, UserRepository  # noqa: E402
from services import create_user  # noqa: E402

USER_COUNT_ENV = "SEED_USER_COUNT"
PASSWORD_ENV = "SEED_PASSWORD"
DEFAULT_PASSWORD = "password123"
PLACEHOLDER_AVATAR_URL = "https://placehold.co/256x256/png?text={initial}"


@dataclass(frozen=True)
class SeedUser:
    username: str
    email: str
    fullname: str


BASE_USERS: Sequence[SeedUser] = [
    SeedUser(username="demo_alex", email="alex@example.com", fullname="Alex Demo"),
    SeedUser(username="demo_bella", email="bella@example.com", fullname="Bella Demo"),
    SeedUser(username="demo_cara", email="cara@example.com", fullname="Cara Demo"),
    SeedUser(username="demo_dan", email="dan@example.com", fullname="Dan Demo"),
    SeedUser(username="demo_ella", email="ella@example.com", fullname="Ella Demo"),
    SeedUser(username="demo_felix", email="felix@example.com", fullname="Felix Demo"),
]


def _parse_positive_int(raw_value: str | None, *, default: int, label: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        parsed = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{label} must be an integer") from exc
    if parsed <= 0:
        raise ValueError(f"{label} must be positive")
    return parsed


def build_seed_users(count: int) -> list[SeedUser]:
    if count <= len(BASE_USERS):
        return list(BASE_USERS[:count])
    extra = [
        SeedUser(
            username=f"demo_user{index}",
            email=f"user{index}@example.com",
            fullname=f"Demo User {index}",
        )
        for index in range(len(BASE_USERS) + 1, count + 1)
    ]
    return [*BASE_USERS, *extra]


async def seed_users(
    repository: UserRepository,
    app_settings: Settings,
    users: Sequence[SeedUser],
    *,
    password: str = DEFAULT_PASSWORD,
) -> tuple[list[str], list[str]]:
    """Create each seed user, skipping the ones that already exist."""
    created: list[str] = []
    skipped: list[str] = []
    for payload in users:
        try:
            await create_user(
                {
                    "username": payload.username,
                    "email": payload.email,
                    "fullname": payload.fullname,
                    "password": password,
                    "avatar_url": PLACEHOLDER_AVATAR_URL.format(
                        initial=payload.fullname[:1].upper()
                    ),
                },
                repository=repository,
                settings=app_settings,
            )
        except ValidationError as exc:
            if exc.status_code != 409:
                raise
            skipped.append(payload.username)
            continue
        created.append(payload.username)
    return created, skipped


async def seed() -> None:
    configure_logging(settings)
    count = _parse_positive_int(
        os.getenv(USER_COUNT_ENV),
        default=len(BASE_USERS),
        label=USER_COUNT_ENV,
    )
    password = os.getenv(PASSWORD_ENV) or DEFAULT_PASSWORD

    await init_models()
    async with AsyncSessionMaker() as session:
        created, skipped = await seed_users(
            SQLUserRepository(session),
            settings,
            build_seed_users(count),
            password=password,
        )

    print("✅ Seed data inserted.")
    print("   Created:", ", ".join(created) or "-")
    print("   Already present:", ", ".join(skipped) or "-")
    print("   Password:", password)


if __name__ == "__main__":
    asyncio.run(seed())
