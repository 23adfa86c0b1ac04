# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Periodic clean-up of expired OTP challenges and refresh-token records.

Both sweeps are idempotent DELETEs, so several workers running them at once
need no coordination.  Each pass uses its own DB session and runs in a
worker thread so the event loop is never blocked on the database.
"""

import asyncio
from typing import Callable, List

from auth.otp import sweep_expired_challenges
from auth.tokens import sweep_expired_refresh_tokens
from core.config import settings
from core.logger import logger
from database import SessionLocal


def sweep_otps() -> int:
    db = SessionLocal()
    try:
        return sweep_expired_challenges(db)
    finally:
        db.close()


def sweep_refresh_tokens() -> int:
    db = SessionLocal()
    try:
        return sweep_expired_refresh_tokens(db)
    finally:
        db.close()


async def run_periodically(name: str, job: Callable[[], int], interval_seconds: int) -> None:
    while True:
        try:
            removed = await asyncio.to_thread(job)
            logger.info("[housekeeping] %s removed %d expired row(s)", name, removed)
        except Exception:
            logger.exception("[housekeeping] %s failed", name)
        await asyncio.sleep(interval_seconds)


def start_housekeeping() -> List[asyncio.Task]:
    """Schedule both sweeps on the running event loop."""
    return [
        asyncio.create_task(
            run_periodically("otp sweep", sweep_otps, settings.otp_sweep_interval_seconds)
        ),
        asyncio.create_task(
            run_periodically("refresh-token sweep", sweep_refresh_tokens, settings.token_sweep_interval_seconds)
        ),
    ]
