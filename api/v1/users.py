"""User profile and follow endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import (
    RequestContext,
    get_current_user,
    get_db,
    get_follow_service,
    get_profile_reader,
    get_request_context,
)
from models import User
from services.exceptions import (
    AppError,
    ForbiddenError,
    InvalidOperationError,
    UnexpectedError,
)
from services.follows import FollowService
from services.profiles import UserProfileReader

from .pagination import MAX_PAGE_SIZE, trim_page
from .schemas import (
    FollowMutationResponse,
    UserProfileEnvelope,
    UserProfilePublic,
    UserProfileUpdate,
    UserProfileView,
    UserSummary,
    UserUpdateEnvelope,
)

router = APIRouter(tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/users/{user_id}", response_model=UserProfileEnvelope)
async def get_user_profile(
    user_id: str,
    context: RequestContext = Depends(get_request_context),
    reader: UserProfileReader = Depends(get_profile_reader),
) -> UserProfileEnvelope:
    """Fetch a user's profile along with the viewer's follow state."""
    try:
        profile = await reader.get_profile(context.actor_id, user_id)
    except AppError:
        raise
    except Exception as exc:
        logger.exception("Get user profile error", extra={"user_id": user_id})
        raise UnexpectedError("Failed to fetch user profile") from exc
    view = UserProfileView.model_validate(profile.user).model_copy(
        update={
            "is_following": profile.is_following,
            "is_own_profile": profile.is_own_profile,
        }
    )
    return UserProfileEnvelope(user=view)


@router.put("/users/{user_id}", response_model=UserUpdateEnvelope)
async def update_user_profile(
    user_id: str,
    payload: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> UserUpdateEnvelope:
    """Update the authenticated user's own name and bio."""
    if current_user.id != user_id:
        raise ForbiddenError()

    if payload.name is not None:
        normalized_name = payload.name.strip()
        if not normalized_name:
            raise InvalidOperationError("Name must be a non-empty string")
        current_user.name = normalized_name
    if payload.bio is not None:
        current_user.bio = payload.bio.strip()

    session.add(current_user)
    try:
        await session.commit()
    except Exception as exc:
        await session.rollback()
        logger.exception("Update user profile error", extra={"user_id": user_id})
        raise UnexpectedError("Failed to update user profile") from exc
    await session.refresh(current_user)
    return UserUpdateEnvelope(user=UserProfilePublic.model_validate(current_user))


@router.post(
    "/users/{user_id}/follow",
    response_model=FollowMutationResponse,
    status_code=status.HTTP_200_OK,
)
async def follow_user(
    user_id: str,
    context: RequestContext = Depends(get_request_context),
    service: FollowService = Depends(get_follow_service),
) -> FollowMutationResponse:
    try:
        result = await service.follow(context.actor_id, user_id)
    except AppError:
        raise
    except Exception as exc:
        logger.exception(
            "Follow user error",
            extra={"follower_id": context.actor_id, "following_id": user_id},
        )
        raise UnexpectedError("Failed to follow user") from exc
    return FollowMutationResponse(
        is_following=result.is_following,
        follower_count=result.follower_count,
    )


@router.delete(
    "/users/{user_id}/follow",
    response_model=FollowMutationResponse,
    status_code=status.HTTP_200_OK,
)
async def unfollow_user(
    user_id: str,
    context: RequestContext = Depends(get_request_context),
    service: FollowService = Depends(get_follow_service),
) -> FollowMutationResponse:
    try:
        result = await service.unfollow(context.actor_id, user_id)
    except AppError:
        raise
    except Exception as exc:
        logger.exception(
            "Unfollow user error",
            extra={"follower_id": context.actor_id, "following_id": user_id},
        )
        raise UnexpectedError("Failed to unfollow user") from exc
    return FollowMutationResponse(
        is_following=result.is_following,
        follower_count=result.follower_count,
    )


@router.get("/users/{user_id}/followers", response_model=list[UserSummary])
async def list_followers(
    user_id: str,
    response: Response,
    limit: Annotated[int | None, Query(ge=1, le=MAX_PAGE_SIZE)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
    reader: UserProfileReader = Depends(get_profile_reader),
) -> list[UserSummary]:
    try:
        followers = await reader.list_followers(
            user_id,
            limit=None if limit is None else limit + 1,
            offset=offset,
        )
    except AppError:
        raise
    except Exception as exc:
        logger.exception("List followers error", extra={"user_id": user_id})
        raise UnexpectedError("Failed to fetch followers") from exc
    page = trim_page(response, followers, offset=offset, limit=limit)
    return [UserSummary.model_validate(user) for user in page]


@router.get("/users/{user_id}/following", response_model=list[UserSummary])
async def list_following(
    user_id: str,
    response: Response,
    limit: Annotated[int | None, Query(ge=1, le=MAX_PAGE_SIZE)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
    reader: UserProfileReader = Depends(get_profile_reader),
) -> list[UserSummary]:
    try:
        following = await reader.list_following(
            user_id,
            limit=None if limit is None else limit + 1,
            offset=offset,
        )
    except AppError:
        raise
    except Exception as exc:
        logger.exception("List following error", extra={"user_id": user_id})
        raise UnexpectedError("Failed to fetch following") from exc
    page = trim_page(response, following, offset=offset, limit=limit)
    return [UserSummary.model_validate(user) for user in page]
