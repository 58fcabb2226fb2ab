"""Cleanup — evicts expired sessions and removes their files.

The sweeper runs inside the application's event loop every
SWEEP_INTERVAL_SECONDS; orphan removal runs once at startup.
"""

import asyncio
import logging
from datetime import datetime

from api.sessions.repositories.session_registry import SessionRegistry
from storage import FileStorage

logger = logging.getLogger(__name__)


def run_cleanup(registry: SessionRegistry, now: datetime | None = None) -> int:
    """Run one sweep pass. Returns the number of sessions evicted."""
    count = registry.sweep_expired(now)
    if count:
        logger.info("Cleanup removed %d expired session%s", count, "s" if count != 1 else "")
    return count


def remove_orphaned_files(registry: SessionRegistry, storage: FileStorage) -> int:
    """Delete stored files that no live session owns."""
    owned = registry.owned_handles()
    count = 0
    for handle in storage.handles():
        if handle not in owned and storage.delete(handle):
            logger.info("Removed orphaned file %s", handle)
            count += 1
    return count


class ExpirySweeper:
    """Background task calling run_cleanup on a fixed interval."""

    def __init__(self, registry: SessionRegistry, interval: float):
        self.registry = registry
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _loop(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                run_cleanup(self.registry)
            except Exception:
                logger.exception("Cleanup pass failed")

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Expiry sweeper started (every %ss)", self.interval)

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
