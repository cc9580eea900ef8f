"""Core configuration and security helpers."""

from .config import Settings, get_settings, settings
from .logging import configure_logging
from .security import (
    create_access_token,
    decode_token,
    hash_password,
    needs_rehash,
    resolve_token_subject,
    verify_password,
)

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "configure_logging",
    "create_access_token",
    "decode_token",
    "hash_password",
    "needs_rehash",
    "resolve_token_subject",
    "verify_password",
]
