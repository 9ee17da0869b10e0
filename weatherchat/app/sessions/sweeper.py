"""Periodic housekeeping for the session registry."""

import asyncio
import logging

from weatherchat.app.sessions.registry import SessionRegistry

logger = logging.getLogger(__name__)


async def run_periodic_sweep(registry: SessionRegistry, interval_seconds: float) -> None:
    """Sweep expired sessions every `interval_seconds` until cancelled.

    Advisory only: get/update already evict lazily on access.
    """
    logger.info(f"Session sweeper started (interval={interval_seconds}s)")
    try:
        while True:
            await asyncio.sleep(interval_seconds)
            removed = registry.sweep()
            logger.debug(f"Session sweep removed {removed} sessions")
    except asyncio.CancelledError:
        logger.info("Session sweeper stopped")
        raise
