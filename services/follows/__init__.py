"""Follow graph service and its storage adapters."""

from .service import FollowResult, FollowService
from .sql import SqlFollowStore, SqlUserStore, floored_increment
from .stores import FollowStore, UserStore

__all__ = [
    "FollowResult",
    "FollowService",
    "FollowStore",
    "UserStore",
    "SqlFollowStore",
    "SqlUserStore",
    "floored_increment",
]
