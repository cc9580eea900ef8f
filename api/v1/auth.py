"""Credential sign-up and session endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from core import create_access_token, hash_password, needs_rehash
from db.errors import is_unique_violation
from models import User
from services.auth import (
    clear_access_cookie,
    normalize_email,
    registration_conflict_exists,
    resolve_login_user,
    set_access_cookie,
)
from services.exceptions import ConflictError, UnauthenticatedError

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


class SignupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Name cannot be blank")
        return normalized


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    session: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    normalized_email = normalize_email(str(payload.email))
    if await registration_conflict_exists(session, normalized_email=normalized_email):
        raise ConflictError("User already exists")

    user = User(
        name=payload.name,
        email=normalized_email,
        password_hash=hash_password(payload.password),
        provider="credentials",
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise ConflictError("User already exists") from exc
        raise
    logger.info("User signed up", extra={"user_id": user.id})
    return {"success": True, "id": user.id}


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    user = await resolve_login_user(
        session,
        email=str(payload.email),
        password=payload.password,
    )
    if user is None:
        raise UnauthenticatedError("Invalid credentials")

    if user.password_hash is not None and needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
        session.add(user)
        await session.commit()

    access_token = create_access_token(user.id)
    set_access_cookie(response, access_token)
    return TokenResponse(access_token=access_token)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(response: Response) -> dict[str, Any]:
    clear_access_cookie(response)
    return {"detail": "Logged out"}
