"""SQLAlchemy-backed implementations of the follow storage interfaces.

Each mutating call commits on its own. Counter adjustments are single
conditional UPDATE statements so concurrent requests cannot push a counter
below zero.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, cast

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from db.errors import is_unique_violation
from models import Follow, User
from services.exceptions import DuplicateRelationshipError, PersistenceError

logger = logging.getLogger(__name__)


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


def floored_increment(column: Any, delta: int) -> Any:
    """SQL expression for ``max(column + delta, 0)`` that works on every backend."""
    shifted = cast(Any, column) + delta
    return case((shifted < 0, 0), else_=shifted)


class SqlUserStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_user_by_id(self, user_id: str) -> User | None:
        result = await self._session.execute(
            select(User)
            .where(_eq(User.id, user_id))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def adjust_follower_count(self, user_id: str, delta: int) -> None:
        await self._adjust_counter("follower_count", user_id, delta)

    async def adjust_following_count(self, user_id: str, delta: int) -> None:
        await self._adjust_counter("following_count", user_id, delta)

    async def get_follower_count(self, user_id: str) -> int | None:
        result = await self._session.execute(
            select(User.follower_count).where(_eq(User.id, user_id))
        )
        return result.scalar_one_or_none()

    async def _adjust_counter(self, counter: str, user_id: str, delta: int) -> None:
        column = getattr(User, counter)
        stmt = (
            update(User)
            .where(_eq(User.id, user_id))
            .values({counter: floored_increment(column, delta)})
            .execution_options(synchronize_session=False)
        )
        try:
            await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise PersistenceError(f"Failed to adjust {counter} for user {user_id}") from exc


class SqlFollowStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_relationship(self, follower_id: str, following_id: str) -> Follow | None:
        result = await self._session.execute(
            select(Follow).where(
                _eq(Follow.follower_id, follower_id),
                _eq(Follow.following_id, following_id),
            )
        )
        return result.scalar_one_or_none()

    async def create_relationship(self, follower_id: str, following_id: str) -> Follow:
        follow = Follow(
            follower_id=follower_id,
            following_id=following_id,
            created_at=datetime.now(timezone.utc),
        )
        self._session.add(follow)
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            if is_unique_violation(exc):
                raise DuplicateRelationshipError(
                    f"{follower_id} already follows {following_id}"
                ) from exc
            raise PersistenceError("Failed to create follow relationship") from exc
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise PersistenceError("Failed to create follow relationship") from exc
        return follow

    async def delete_relationship(self, follower_id: str, following_id: str) -> bool:
        try:
            result = await self._session.execute(
                delete(Follow).where(
                    _eq(Follow.follower_id, follower_id),
                    _eq(Follow.following_id, following_id),
                )
            )
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise PersistenceError("Failed to delete follow relationship") from exc
        deleted = cast(Any, result).rowcount or 0
        if deleted == 0:
            logger.info(
                "Follow relationship already removed",
                extra={"follower_id": follower_id, "following_id": following_id},
            )
        return deleted > 0

    async def list_followers(
        self,
        user_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[User]:
        query = (
            select(User)
            .join(Follow, _eq(Follow.follower_id, User.id))
            .where(_eq(Follow.following_id, user_id))
            .order_by(_desc(Follow.created_at), User.id)
        )
        return await self._fetch_page(query, limit=limit, offset=offset)

    async def list_following(
        self,
        user_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[User]:
        query = (
            select(User)
            .join(Follow, _eq(Follow.following_id, User.id))
            .where(_eq(Follow.follower_id, user_id))
            .order_by(_desc(Follow.created_at), User.id)
        )
        return await self._fetch_page(query, limit=limit, offset=offset)

    async def _fetch_page(self, query: Any, *, limit: int | None, offset: int) -> Sequence[User]:
        if offset > 0:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await self._session.execute(query)
        return result.scalars().all()
