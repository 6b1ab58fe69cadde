"""
Optimistic toggle controller.

toggle(entity_id, day, value):
  1. snapshot the day collection (immutable tuple, kept for rollback)
  2. mark (day, entity_id) pending
  3. apply the tracker's update/create rule locally, synchronously
  4. dispatch the write in a background task:
       Flip  -> api.toggle_entry(entity_id, day)
       SetTo -> api.set_entry(entity_id, day, value)
  5. success: settle the pending mark, schedule a debounced refresh
  6. failure (any exception): clear the pending mark, restore the snapshot,
     report the error; cancellation rolls back the same way and propagates

A second toggle issued before the first completes snapshots the first one's
optimistic state, so a late failure of the first write also rolls back the
second one's local change. The next refresh restores server truth.
"""
import asyncio
import logging
from datetime import date, datetime, tzinfo
from typing import Callable

from lifedash.application.errors import TrackerError
from lifedash.application.pending import PendingMutationTracker
from lifedash.application.refresh_scheduler import DebouncedRefreshScheduler
from lifedash.application.tracker_state import TrackerState
from lifedash.domain.day_key import to_day_key
from lifedash.domain.day_stat import DayStat, replace_or_insert
from lifedash.domain.toggle_value import Flip, SetTo, ToggleValue
from lifedash.domain.trackers import TrackerRules
from lifedash.infrastructure.api.base import StatsAPI

logger = logging.getLogger(__name__)

DEFAULT_TOGGLE_ERROR = "Failed to toggle. Please try again."


class OptimisticToggleController:
    def __init__(
        self,
        api: StatsAPI,
        state: TrackerState,
        pending: PendingMutationTracker,
        rules: TrackerRules,
        scheduler: DebouncedRefreshScheduler,
        epoch_provider: Callable[[], int],
        tz: tzinfo | None = None,
        error_message: str = DEFAULT_TOGGLE_ERROR,
    ):
        self.api = api
        self.state = state
        self.pending = pending
        self.rules = rules
        self.scheduler = scheduler
        self.epoch_provider = epoch_provider
        self.tz = tz
        self.error_message = error_message
        self._writes: set[asyncio.Task] = set()

    def toggle(
        self,
        entity_id: str,
        day: date | datetime | str,
        value: ToggleValue = Flip(),
    ) -> asyncio.Task:
        """
        Apply a toggle locally and start its background write.

        Returns:
            Task resolving to True if the server accepted the write

        Raises:
            InvalidDateError: ``day`` is not a date; nothing is changed
            TypeError: ``value`` is not a Flip or SetTo
            RuntimeError: called outside a running event loop
        """
        day_key = to_day_key(day, self.tz)
        if not isinstance(value, (Flip, SetTo)):
            raise TypeError(f"Unsupported toggle value: {value!r}")
        loop = asyncio.get_running_loop()

        snapshot = self.state.days
        self.pending.mark_pending(day_key, entity_id)
        self.state.set_days(self.apply_optimistic(snapshot, day_key, entity_id, value))

        return self.track(loop.create_task(self._write(entity_id, day_key, value, snapshot)))

    def track(self, task: asyncio.Task) -> asyncio.Task:
        """Register a background write so drain() waits for it."""
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)
        return task

    def apply_optimistic(
        self,
        days: tuple[DayStat, ...],
        day_key: str,
        entity_id: str,
        value: ToggleValue,
    ) -> tuple[DayStat, ...]:
        existing = next((d for d in days if d.date == day_key), None)
        if existing is not None:
            updated = self.rules.update(existing, entity_id, value)
            return tuple(updated if d is existing else d for d in days)
        return replace_or_insert(days, self.rules.create(day_key, entity_id, value))

    async def dispatch(self, entity_id: str, day_key: str, value: ToggleValue):
        if isinstance(value, SetTo):
            return await self.api.set_entry(entity_id, day_key, value.value)
        return await self.api.toggle_entry(entity_id, day_key)

    async def _write(
        self,
        entity_id: str,
        day_key: str,
        value: ToggleValue,
        snapshot: tuple[DayStat, ...],
    ) -> bool:
        try:
            await self.dispatch(entity_id, day_key, value)
        except asyncio.CancelledError:
            # Teardown: undo the local change but keep the cancellation going
            self._roll_back(entity_id, day_key, snapshot)
            raise
        except Exception as e:
            if not isinstance(e, TrackerError):
                logger.exception("Unexpected error writing %s for %s", entity_id, day_key)
            self._roll_back(entity_id, day_key, snapshot)
            self.state.report_error(e, self.error_message)
            return False

        self.pending.settle(day_key, entity_id, self.epoch_provider())
        self.scheduler.schedule_refresh()
        return True

    def _roll_back(self, entity_id: str, day_key: str, snapshot: tuple[DayStat, ...]) -> None:
        self.pending.clear_pending(day_key, entity_id)
        self.state.restore_days(snapshot)

    @property
    def in_flight(self) -> int:
        return len(self._writes)

    async def drain(self) -> None:
        """Wait for every write started so far (and any started meanwhile)."""
        while self._writes:
            await asyncio.gather(*list(self._writes), return_exceptions=True)
