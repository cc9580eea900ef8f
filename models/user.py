"""User domain model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text, func, text
from sqlmodel import Field, SQLModel

DEFAULT_BIO = "Hey there! I'm new on BlogHub"
DEFAULT_IMAGE = "/default-profile.jpeg"


class User(SQLModel, table=True):
    """Registered application user with cached follow counters."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("follower_count >= 0", name="ck_users_follower_count_non_negative"),
        CheckConstraint("following_count >= 0", name="ck_users_following_count_non_negative"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    email: str = Field(
        sa_column=Column(String(100), unique=True, nullable=False, index=True)
    )
    name: str | None = Field(
        default=None, sa_column=Column(String(100), nullable=True)
    )
    # Null for accounts created through an external identity provider.
    password_hash: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True)
    )
    image: str | None = Field(
        default=DEFAULT_IMAGE, sa_column=Column(Text, nullable=True)
    )
    provider: str = Field(
        default="credentials",
        sa_column=Column(String(50), nullable=False, server_default="credentials"),
    )
    provider_account_id: str | None = Field(
        default=None, sa_column=Column(String(100), nullable=True)
    )
    role: str = Field(
        default="user",
        sa_column=Column(String(20), nullable=False, server_default="user"),
    )
    bio: str = Field(
        default=DEFAULT_BIO,
        sa_column=Column(Text, nullable=False, server_default=DEFAULT_BIO),
    )
    follower_count: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
    )
    following_count: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
    )
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )
    )
    updated_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )
    )
