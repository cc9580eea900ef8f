"""Storage interfaces the follow service depends on."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from models import Follow, User


class UserStore(Protocol):
    async def find_user_by_id(self, user_id: str) -> User | None: ...

    async def adjust_follower_count(self, user_id: str, delta: int) -> None:
        """Add ``delta`` to the follower counter, flooring the result at zero."""
        ...

    async def adjust_following_count(self, user_id: str, delta: int) -> None:
        """Add ``delta`` to the following counter, flooring the result at zero."""
        ...

    async def get_follower_count(self, user_id: str) -> int | None: ...


class FollowStore(Protocol):
    async def find_relationship(self, follower_id: str, following_id: str) -> Follow | None: ...

    async def create_relationship(self, follower_id: str, following_id: str) -> Follow:
        """Insert the pair; raises DuplicateRelationshipError if it already exists."""
        ...

    async def delete_relationship(self, follower_id: str, following_id: str) -> bool: ...

    async def list_followers(
        self,
        user_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[User]: ...

    async def list_following(
        self,
        user_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[User]: ...
