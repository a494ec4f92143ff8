"""
Background Reminder Worker
==========================

Runs every ``REMINDER_INTERVAL_SECONDS`` (default one hour).

Each cycle re-derives vehicle statuses (a booking starting today turns
RESERVED without any other event) and sends the due-tomorrow and overdue
notices.  Reminder flags on the rental guarantee each notice goes out
once; a Redis distributed lock keeps two API processes from running the
same cycle concurrently.
"""

from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis

from rental_engine.config import settings
from rental_engine.infrastructure.locks import DistributedLock
from rental_engine.services.reservations import ReservationManager

logger = logging.getLogger(__name__)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def start_reminder_loop(
    manager: ReservationManager, client: aioredis.Redis
) -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop(manager, client))
    logger.info(
        "Reminder worker started (interval=%ds)", settings.reminder_interval_seconds
    )


async def stop_reminder_loop() -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    logger.info("Reminder worker stopped")


# ── Internals ─────────────────────────────────────────────────────────


async def _loop(manager: ReservationManager, client: aioredis.Redis) -> None:
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_reminder_cycle(manager, client)
        except Exception:
            logger.exception("Unhandled error in reminder cycle")
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.reminder_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass


async def run_reminder_cycle(
    manager: ReservationManager, client: aioredis.Redis
) -> int:
    """Execute one reminder cycle.  Returns the number of notices sent."""
    lock = DistributedLock(client, "rental_reminders", ttl_seconds=120)

    if not await lock.acquire():
        logger.debug("Lock held by another worker – skipping cycle")
        return 0

    try:
        manager.refresh_statuses()
        sent = await manager.send_reminders()
        if sent:
            logger.info("Reminder cycle: %d notices sent", sent)
        return sent
    finally:
        await lock.release()
