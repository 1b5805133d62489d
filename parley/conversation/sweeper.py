"""Background eviction of idle sessions."""

import asyncio
import contextlib
from datetime import timedelta

from parley.conversation.store import SessionStore
from parley.observability.logging import get_logger

logger = get_logger(__name__)


class SessionSweeper:
    """Periodically removes sessions idle for longer than the timeout.

    Eviction is driven only by this sweep; reads never expire a session.
    A failing sweep is logged and retried on the next interval.
    """

    def __init__(
        self,
        store: SessionStore,
        idle_timeout: timedelta,
        interval_seconds: float = 60.0,
    ) -> None:
        self._store = store
        self._idle_timeout = idle_timeout
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Whether the background task is active."""
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        """Run a single eviction pass and return the number of sessions removed."""
        return await self._store.evict_idle(self._idle_timeout)

    def start(self) -> None:
        """Start the background task on the running loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="parley-session-sweeper")
        logger.info(
            "session_sweeper_started",
            idle_timeout_seconds=self._idle_timeout.total_seconds(),
            interval_seconds=self._interval,
        )

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("session_sweeper_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("session_sweep_failed")
