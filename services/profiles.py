"""Read-side helpers for user profiles and follow listings."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from models import User
from services.exceptions import NotFoundError
from services.follows.stores import FollowStore, UserStore


@dataclass(slots=True)
class UserProfile:
    user: User
    is_following: bool
    is_own_profile: bool


class UserProfileReader:
    def __init__(self, users: UserStore, follows: FollowStore) -> None:
        self._users = users
        self._follows = follows

    async def is_following(self, viewer_id: str | None, subject_id: str) -> bool:
        if viewer_id is None or viewer_id == subject_id:
            return False
        relationship = await self._follows.find_relationship(viewer_id, subject_id)
        return relationship is not None

    async def get_profile(self, viewer_id: str | None, user_id: str) -> UserProfile:
        user = await self._require_user(user_id)
        return UserProfile(
            user=user,
            is_following=await self.is_following(viewer_id, user_id),
            is_own_profile=viewer_id is not None and viewer_id == user_id,
        )

    async def list_followers(
        self,
        user_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[User]:
        await self._require_user(user_id)
        return await self._follows.list_followers(user_id, limit=limit, offset=offset)

    async def list_following(
        self,
        user_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[User]:
        await self._require_user(user_id)
        return await self._follows.list_following(user_id, limit=limit, offset=offset)

    async def _require_user(self, user_id: str) -> User:
        user = await self._users.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
