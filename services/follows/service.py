"""Follow/unfollow operations and follower counter maintenance."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from services.exceptions import (
    ConflictError,
    DuplicateRelationshipError,
    InvalidOperationError,
    NotFoundError,
    PersistenceError,
    UnauthenticatedError,
)

from .stores import FollowStore, UserStore

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class FollowResult:
    is_following: bool
    follower_count: int


class FollowService:
    """Mutates the follow graph and keeps both cached counters in step with it.

    The relationship write and the two counter writes are separate units of
    work. Once the relationship has changed, a failing counter write is logged
    and left for reconciliation; the caller still sees the new relationship
    state. Counters are floored at zero by the store itself.
    """

    def __init__(self, users: UserStore, follows: FollowStore) -> None:
        self._users = users
        self._follows = follows

    async def follow(self, actor_id: str | None, target_id: str) -> FollowResult:
        if actor_id is None:
            raise UnauthenticatedError()
        if actor_id == target_id:
            raise InvalidOperationError("Cannot follow yourself")
        if await self._users.find_user_by_id(target_id) is None:
            raise NotFoundError("User not found")
        # A token can outlive its account; the actor must still exist.
        if await self._users.find_user_by_id(actor_id) is None:
            raise UnauthenticatedError()
        if await self._follows.find_relationship(actor_id, target_id) is not None:
            raise ConflictError("Already following this user")

        try:
            await self._follows.create_relationship(actor_id, target_id)
        except DuplicateRelationshipError as exc:
            # Lost the race against a concurrent follow for the same pair.
            raise ConflictError("Already following this user") from exc

        await self._adjust_counter(
            self._users.adjust_follower_count, target_id, 1, counter="follower_count"
        )
        await self._adjust_counter(
            self._users.adjust_following_count, actor_id, 1, counter="following_count"
        )
        logger.info(
            "User followed",
            extra={"follower_id": actor_id, "following_id": target_id},
        )
        return FollowResult(
            is_following=True,
            follower_count=await self._current_follower_count(target_id),
        )

    async def unfollow(self, actor_id: str | None, target_id: str) -> FollowResult:
        if actor_id is None:
            raise UnauthenticatedError()
        if await self._follows.find_relationship(actor_id, target_id) is None:
            raise InvalidOperationError("Not following this user")

        if not await self._follows.delete_relationship(actor_id, target_id):
            # A concurrent unfollow removed the row first.
            raise InvalidOperationError("Not following this user")

        await self._adjust_counter(
            self._users.adjust_follower_count, target_id, -1, counter="follower_count"
        )
        await self._adjust_counter(
            self._users.adjust_following_count, actor_id, -1, counter="following_count"
        )
        logger.info(
            "User unfollowed",
            extra={"follower_id": actor_id, "following_id": target_id},
        )
        return FollowResult(
            is_following=False,
            follower_count=await self._current_follower_count(target_id),
        )

    async def _adjust_counter(
        self,
        adjust: Callable[[str, int], Awaitable[None]],
        user_id: str,
        delta: int,
        *,
        counter: str,
    ) -> None:
        try:
            await adjust(user_id, delta)
        except PersistenceError as exc:
            logger.warning(
                "Counter update failed after follow relationship change",
                extra={"user_id": user_id, "counter": counter, "delta": delta},
                exc_info=exc,
            )

    async def _current_follower_count(self, user_id: str) -> int:
        count = await self._users.get_follower_count(user_id)
        return count if count is not None else 0
