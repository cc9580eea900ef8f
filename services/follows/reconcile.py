"""Repair follow counters that drifted from the relationship table.

Counter writes are not transactional with the relationship write, so a failed
request can leave a cached counter off by one. These helpers recompute both
counters from ``follows`` in batches keyed by user id.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, cast

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Follow, User

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _actual_follower_count() -> Any:
    return (
        select(func.count())
        .select_from(Follow)
        .where(_eq(Follow.following_id, User.id))
        .scalar_subquery()
    )


def _actual_following_count() -> Any:
    return (
        select(func.count())
        .select_from(Follow)
        .where(_eq(Follow.follower_id, User.id))
        .scalar_subquery()
    )


@dataclass(slots=True, frozen=True)
class CounterDrift:
    user_id: str
    follower_count: int
    actual_follower_count: int
    following_count: int
    actual_following_count: int


async def find_counter_drift(
    session: AsyncSession,
    *,
    after_user_id: str | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> tuple[list[CounterDrift], str | None]:
    """Scan one batch of users.

    Returns the drifted rows in the batch and the cursor for the next batch,
    or None once every user has been scanned.
    """
    user_id_column = cast(Any, User.id)
    stmt = (
        select(
            user_id_column,
            User.follower_count,
            _actual_follower_count().label("actual_follower_count"),
            User.following_count,
            _actual_following_count().label("actual_following_count"),
        )
        .order_by(user_id_column)
        .limit(batch_size)
    )
    if after_user_id is not None:
        stmt = stmt.where(cast(ColumnElement[bool], user_id_column > after_user_id))

    result = await session.execute(stmt)
    rows = result.all()
    drifted = [
        CounterDrift(
            user_id=user_id,
            follower_count=int(follower_count),
            actual_follower_count=int(actual_followers),
            following_count=int(following_count),
            actual_following_count=int(actual_following),
        )
        for user_id, follower_count, actual_followers, following_count, actual_following in rows
        if follower_count != actual_followers or following_count != actual_following
    ]
    next_cursor = rows[-1][0] if len(rows) == batch_size else None
    return drifted, next_cursor


async def repair_counter_drift(session: AsyncSession, user_ids: Sequence[str]) -> int:
    """Overwrite both counters of the given users with their recomputed values."""
    if not user_ids:
        return 0
    stmt = (
        update(User)
        .where(cast(Any, User.id).in_(list(user_ids)))
        .values(
            follower_count=_actual_follower_count(),
            following_count=_actual_following_count(),
        )
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    await session.commit()
    repaired = cast(Any, result).rowcount or 0
    logger.info("Repaired follow counters", extra={"repaired": repaired})
    return repaired
