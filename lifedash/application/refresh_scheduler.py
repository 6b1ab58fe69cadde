"""
Debounced refresh scheduler - coalesces bursts of refresh requests.

Every schedule_refresh() call re-arms a single timer on the event loop. When
the timer expires:
  - any write still in flight  -> the refresh is skipped, not postponed;
                                  the next schedule_refresh() retries
  - otherwise                  -> the refresh job runs once

The job itself (daily merge + streaks, monthly in the year view) is supplied
by the tracker that owns the scheduler.
"""
import asyncio
import logging
from typing import Awaitable, Callable

from lifedash.application.pending import PendingMutationTracker

logger = logging.getLogger(__name__)

RefreshJob = Callable[[], Awaitable[None]]


class DebouncedRefreshScheduler:
    def __init__(
        self,
        pending: PendingMutationTracker,
        job: RefreshJob,
        delay: float,
        on_failure: Callable[[BaseException], None] | None = None,
    ):
        """
        Args:
            pending: tracker consulted when the timer fires
            job: coroutine function performing the refresh
            delay: quiet period in seconds
            on_failure: called with the exception when the job raises
        """
        self.pending = pending
        self.job = job
        self.delay = delay
        self.on_failure = on_failure
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._closed = False
        self.attempts = 0
        self.runs = 0
        self.skips = 0

    @property
    def is_armed(self) -> bool:
        return self._handle is not None

    def schedule_refresh(self) -> None:
        """(Re)start the quiet-period timer. Must be called from the event loop; no-op once closed."""
        if self._closed:
            return
        loop = asyncio.get_running_loop()
        self.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if self._closed:
            return
        self.attempts += 1
        if self.pending.has_in_flight:
            self.skips += 1
            logger.debug("Refresh skipped: writes still in flight")
            return
        self.runs += 1
        task = asyncio.get_running_loop().create_task(self._run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self) -> None:
        try:
            await self.job()
        except Exception as e:
            logger.exception("Stats refresh failed")
            if self.on_failure is not None:
                self.on_failure(e)

    async def wait_idle(self) -> None:
        """Wait until no timer is armed and no refresh is running."""
        while self._handle is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(self.delay / 4 or 0)

    def close(self) -> None:
        """Teardown: drop the armed timer and refuse new ones, so nothing fires against a closed tracker."""
        self._closed = True
        self.cancel()
