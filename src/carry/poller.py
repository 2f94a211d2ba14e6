"""Background poll loop -- refreshes the cached snapshot on an interval.

A failed cycle (feed down, unexpected payload) is logged and the loop keeps
going; the previous snapshot simply ages out of the cache.
"""

import asyncio

from carry.logging import get_logger
from carry.service import SpreadService

logger = get_logger(__name__)


class SnapshotPoller:
    """Runs SpreadService.poll() every interval seconds."""

    def __init__(self, service: SpreadService, interval: float = 300.0) -> None:
        self._service = service
        self._interval = interval
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Begin polling in the background."""
        if self._running:
            logger.warning("poller_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("poller_started", interval=self._interval)

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("poller_stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await self._service.poll()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("poll_cycle_error", exc_info=True)
            if self._running:
                await asyncio.sleep(self._interval)
