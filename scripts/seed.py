"""Database seed script for local development.

Usage:
    python scripts/seed.py

Creates a handful of demo accounts and a follow graph between them. Follows go
through FollowService so the cached counters match the relationship table.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import configure_logging, hash_password, settings  # noqa: E402
from db.session import async_session_factory  # noqa: E402
from models import User  # noqa: E402
from services.auth import find_user_by_email  # noqa: E402
from services.exceptions import ConflictError  # noqa: E402
from services.follows import FollowService, SqlFollowStore, SqlUserStore  # noqa: E402

logger = logging.getLogger("scripts.seed")


@dataclass(frozen=True)
class SeedUser:
    email: str
    name: str
    bio: str


BASE_USERS: Sequence[SeedUser] = [
    SeedUser(email="alex@example.com", name="Alex Demo", bio="Writing about distributed systems."),
    SeedUser(email="bella@example.com", name="Bella Demo", bio="Coffee, books and city walks."),
    SeedUser(email="cara@example.com", name="Cara Demo", bio="Photography notes."),
    SeedUser(email="dan@example.com", name="Dan Demo", bio="Weekend cyclist, weekday Pythonista."),
    SeedUser(email="ella@example.com", name="Ella Demo", bio="Design and travel."),
]

DEFAULT_PASSWORD = "password123"


def build_seed_follows(emails: Sequence[str]) -> list[tuple[str, str]]:
    """Each user follows the next one, and the one after that when there are enough users."""
    if len(emails) < 2:
        return []

    relationships: set[tuple[str, str]] = set()
    total_users = len(emails)
    for index, follower in enumerate(emails):
        first = emails[(index + 1) % total_users]
        if first != follower:
            relationships.add((follower, first))

        if total_users > 3:
            second = emails[(index + 2) % total_users]
            if second != follower:
                relationships.add((follower, second))

    return sorted(relationships)


async def get_or_create_user(session, payload: SeedUser) -> User:
    user = await find_user_by_email(session, payload.email)
    if user:
        return user

    user = User(
        email=payload.email,
        name=payload.name,
        bio=payload.bio,
        password_hash=hash_password(DEFAULT_PASSWORD),
    )
    session.add(user)
    await session.commit()
    return user


async def ensure_follows(
    service: FollowService,
    users: dict[str, User],
    follows: Sequence[tuple[str, str]],
) -> int:
    created = 0
    for follower_email, following_email in follows:
        try:
            await service.follow(users[follower_email].id, users[following_email].id)
        except ConflictError:
            continue
        created += 1
    return created


async def seed() -> None:
    follows = build_seed_follows([user.email for user in BASE_USERS])

    async with async_session_factory() as session:
        users: dict[str, User] = {}
        for payload in BASE_USERS:
            user = await get_or_create_user(session, payload)
            users[user.email] = user

        service = FollowService(SqlUserStore(session), SqlFollowStore(session))
        created = await ensure_follows(service, users, follows)

    logger.info("Seed data inserted")
    logger.info("Users: %s", ", ".join(user.email for user in BASE_USERS))
    logger.info("Default password: %s", DEFAULT_PASSWORD)
    logger.info("Follows: %s planned, %s created", len(follows), created)


if __name__ == "__main__":
    configure_logging(settings.log_level)
    asyncio.run(seed())
