"""Shared pagination constants and response header helpers."""

from collections.abc import Sequence
from typing import TypeVar

from fastapi import Response

MAX_PAGE_SIZE = 100

T = TypeVar("T")


def set_next_offset_header(
    response: Response,
    *,
    offset: int,
    limit: int,
    has_more: bool,
) -> None:
    if has_more:
        response.headers["X-Next-Offset"] = str(offset + limit)


def trim_page(
    response: Response,
    rows: Sequence[T],
    *,
    offset: int,
    limit: int | None,
) -> Sequence[T]:
    """Drop the look-ahead row fetched with ``limit + 1`` and set the next-offset header."""
    if limit is None:
        return rows
    has_more = len(rows) > limit
    set_next_offset_header(response, offset=offset, limit=limit, has_more=has_more)
    return rows[:limit] if has_more else rows
