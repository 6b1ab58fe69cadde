"""
Tracker - the sync core one tracker page talks to.

Owns one of each component (state, pending tracker, stats loader, refresh
scheduler, toggle controller) and wires them together. The presentation
layer reads ``days``, ``monthly_stats``, ``streak_stats``, ``loading`` and
``error`` and calls ``toggle``, ``reload`` and ``refresh``.
"""
import asyncio
import logging
from datetime import date, datetime, tzinfo
from typing import Awaitable, Callable

from lifedash.application.errors import ErrorHandler
from lifedash.application.optimistic_toggle import DEFAULT_TOGGLE_ERROR, OptimisticToggleController
from lifedash.application.pending import PendingMutationTracker
from lifedash.application.refresh_scheduler import DebouncedRefreshScheduler
from lifedash.application.stats_loader import StatsLoader
from lifedash.application.tracker_state import TrackerState
from lifedash.domain.day_key import DEBOUNCE_DELAY_MS, to_day_key, today
from lifedash.domain.day_stat import DayStat
from lifedash.domain.toggle_value import Flip, ToggleValue
from lifedash.domain.trackers import TrackerRules
from lifedash.domain.view_window import View, ViewWindow
from lifedash.infrastructure.api.base import StatsAPI

logger = logging.getLogger(__name__)


class Tracker:
    toggle_error_message = DEFAULT_TOGGLE_ERROR

    def __init__(
        self,
        api: StatsAPI,
        rules: TrackerRules,
        window: ViewWindow | None = None,
        tz: tzinfo | None = None,
        refresh_delay: float = DEBOUNCE_DELAY_MS / 1000,
        on_error: ErrorHandler | None = None,
        on_change: Callable[[TrackerState], None] | None = None,
    ):
        self.api = api
        self.rules = rules
        self.tz = tz
        self.window = window or ViewWindow(View.WEEK, today(tz))
        self.state = TrackerState(on_error=on_error, on_change=on_change)
        self.pending = PendingMutationTracker()
        self.loader = StatsLoader(
            api=api,
            state=self.state,
            pending=self.pending,
            rules=rules,
            window_provider=lambda: self.window,
            tz=tz,
            should_load_daily_stats=self.should_load_daily_stats,
        )
        self.scheduler = DebouncedRefreshScheduler(
            pending=self.pending,
            job=self._refresh_job,
            delay=refresh_delay,
            on_failure=lambda e: self.state.report_error(e, "Failed to refresh stats"),
        )
        self.toggles = OptimisticToggleController(
            api=api,
            state=self.state,
            pending=self.pending,
            rules=rules,
            scheduler=self.scheduler,
            epoch_provider=lambda: self.loader.epoch,
            tz=tz,
            error_message=self.toggle_error_message,
        )

    # --- read side ---

    @property
    def days(self) -> tuple[DayStat, ...]:
        return self.state.days

    @property
    def monthly_stats(self):
        return self.state.monthly_stats

    @property
    def streak_stats(self):
        return self.state.streak_stats

    @property
    def loading(self) -> bool:
        return self.state.loading

    @property
    def error(self) -> str | None:
        return self.state.error

    def day(self, day: date | datetime | str) -> DayStat | None:
        return self.state.day(to_day_key(day, self.tz))

    def today_stat(self) -> DayStat | None:
        return self.day(today(self.tz))

    def today_percent(self) -> int:
        stat = self.today_stat()
        return stat.percentage if stat is not None else 0

    def today_keeps_streak(self) -> bool:
        stat = self.today_stat()
        return stat is not None and stat.keeps_streak

    # --- hooks for subclasses ---

    def should_load_daily_stats(self) -> bool:
        return True

    def extra_loaders(self) -> list[Callable[[], Awaitable]]:
        """Additional loads run with every reload and refresh."""
        return []

    # --- operations ---

    def toggle(
        self,
        entity_id: str,
        day: date | datetime | str,
        value: ToggleValue = Flip(),
    ) -> asyncio.Task:
        return self.toggles.toggle(entity_id, day, value)

    def refresh(self) -> None:
        """Debounced refresh."""
        self.scheduler.schedule_refresh()

    async def _refresh_job(self) -> None:
        loads = [self.loader.load_daily_stats(merge=True), self.loader.load_streak_stats()]
        if self.window.view == View.YEAR:
            loads.append(self.loader.load_monthly_stats())
        loads.extend(load() for load in self.extra_loaders())
        await asyncio.gather(*loads)

    async def reload(self) -> None:
        """Full reload: replaces the day collection and all rollups."""
        self.state.set_loading(True)
        try:
            await asyncio.gather(
                self.loader.load_daily_stats(merge=False),
                self.loader.load_monthly_stats(),
                self.loader.load_streak_stats(),
                *(load() for load in self.extra_loaders()),
            )
        finally:
            self.state.set_loading(False)

    async def set_view(self, view: View | str) -> None:
        self.window = self.window.with_view(View(view))
        await self.reload()

    async def navigate(self, direction: int) -> None:
        """Move the window one week/month/year back (-1) or forward (+1)."""
        self.window = self.window.shift(direction)
        await self.reload()

    async def go_to(self, anchor: date) -> None:
        self.window = ViewWindow(self.window.view, anchor)
        await self.reload()

    async def drain(self) -> None:
        """Wait for in-flight writes and any refresh they scheduled."""
        await self.toggles.drain()
        await self.scheduler.wait_idle()

    def close(self) -> None:
        self.scheduler.close()
