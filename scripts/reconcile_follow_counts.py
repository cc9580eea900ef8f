"""Maintenance script to recompute cached follower/following counters.

Usage:
    python scripts/reconcile_follow_counts.py

Environment overrides:
    RECONCILE_BATCH_SIZE=500
    RECONCILE_DRY_RUN=false
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from time import perf_counter

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import configure_logging, settings  # noqa: E402
from db.session import async_session_factory  # noqa: E402
from services.follows.reconcile import (  # noqa: E402
    DEFAULT_BATCH_SIZE,
    find_counter_drift,
    repair_counter_drift,
)

BATCH_SIZE_ENV = "RECONCILE_BATCH_SIZE"
DRY_RUN_ENV = "RECONCILE_DRY_RUN"

logger = logging.getLogger("scripts.reconcile_follow_counts")


def _parse_positive_int(raw_value: str | None, *, default: int, label: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        parsed = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{label} must be an integer") from exc
    if parsed <= 0:
        raise ValueError(f"{label} must be positive")
    return parsed


def _parse_bool(raw_value: str | None, *, default: bool) -> bool:
    if raw_value is None or raw_value.strip() == "":
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


async def run(*, batch_size: int, dry_run: bool) -> tuple[int, int]:
    started_at = perf_counter()
    users_drifted = 0
    users_repaired = 0
    cursor: str | None = None

    while True:
        async with async_session_factory() as session:
            drifted, cursor = await find_counter_drift(
                session,
                after_user_id=cursor,
                batch_size=batch_size,
            )
            for drift in drifted:
                logger.warning(
                    "Counter drift for user %s: followers %s->%s, following %s->%s",
                    drift.user_id,
                    drift.follower_count,
                    drift.actual_follower_count,
                    drift.following_count,
                    drift.actual_following_count,
                )
            users_drifted += len(drifted)
            if drifted and not dry_run:
                users_repaired += await repair_counter_drift(
                    session,
                    [drift.user_id for drift in drifted],
                )
        if cursor is None:
            break

    elapsed_ms = int((perf_counter() - started_at) * 1000)
    logger.info(
        "Follow counter reconcile complete: users_drifted=%s, users_repaired=%s, "
        "dry_run=%s, elapsed_ms=%s",
        users_drifted,
        users_repaired,
        dry_run,
        elapsed_ms,
    )
    return users_drifted, users_repaired


def main() -> None:
    configure_logging(settings.log_level)
    batch_size = _parse_positive_int(
        os.getenv(BATCH_SIZE_ENV),
        default=DEFAULT_BATCH_SIZE,
        label=BATCH_SIZE_ENV,
    )
    dry_run = _parse_bool(os.getenv(DRY_RUN_ENV), default=False)
    asyncio.run(run(batch_size=batch_size, dry_run=dry_run))


if __name__ == "__main__":
    main()
