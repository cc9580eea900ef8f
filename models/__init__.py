"""SQLModel models package."""

from .follow import Follow
from .user import DEFAULT_BIO, DEFAULT_IMAGE, User

__all__ = [
    "User",
    "Follow",
    "DEFAULT_BIO",
    "DEFAULT_IMAGE",
]
