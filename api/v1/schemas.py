"""Response and request bodies shared by the v1 routers."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes with camelCase keys, accepts either casing on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserSummary(CamelModel):
    id: str
    name: str | None = None
    image: str | None = None
    bio: str | None = None
    follower_count: int = 0
    following_count: int = 0


class UserProfilePublic(UserSummary):
    email: str
    created_at: datetime


class UserProfileView(UserProfilePublic):
    is_following: bool = False
    is_own_profile: bool = False


class UserProfileEnvelope(CamelModel):
    success: bool = True
    user: UserProfileView


class UserUpdateEnvelope(CamelModel):
    success: bool = True
    user: UserProfilePublic


class UserProfileUpdate(CamelModel):
    name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=500)


class FollowMutationResponse(CamelModel):
    success: bool = True
    is_following: bool
    follower_count: int
