"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core import resolve_token_subject
from db.session import get_session
from models import User
from services.auth import ACCESS_COOKIE
from services.exceptions import UnauthenticatedError
from services.follows import FollowService, SqlFollowStore, SqlUserStore
from services.profiles import UserProfileReader


@dataclass(slots=True, frozen=True)
class RequestContext:
    """Per-request identity; ``actor_id`` is None for anonymous callers."""

    actor_id: str | None


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def _extract_token(request: Request) -> str | None:
    authorization = request.headers.get("authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return request.cookies.get(ACCESS_COOKIE)


async def get_request_context(request: Request) -> RequestContext:
    token = _extract_token(request)
    if token is None:
        return RequestContext(actor_id=None)
    return RequestContext(actor_id=resolve_token_subject(token))


async def get_current_user(
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_db),
) -> User:
    if context.actor_id is None:
        raise UnauthenticatedError()
    user = await SqlUserStore(session).find_user_by_id(context.actor_id)
    if user is None:
        raise UnauthenticatedError()
    return user


def get_follow_service(session: AsyncSession = Depends(get_db)) -> FollowService:
    return FollowService(SqlUserStore(session), SqlFollowStore(session))


def get_profile_reader(session: AsyncSession = Depends(get_db)) -> UserProfileReader:
    return UserProfileReader(SqlUserStore(session), SqlFollowStore(session))
