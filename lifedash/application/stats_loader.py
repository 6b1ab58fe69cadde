"""
Stats loader - fetches day-range, monthly and streak stats into TrackerState.

Day-range loads are guarded by a request epoch: each load takes a new epoch
number before dispatch, and a response is applied only if no newer load was
dispatched in the meantime. Out-of-order arrivals are dropped silently.

Merge (merge=True): server days win, except days the pending tracker still
protects and days that exist only locally.
"""
import logging
from datetime import tzinfo
from typing import Callable

from pydantic import ValidationError

from lifedash.application.errors import TrackerError
from lifedash.application.pending import PendingMutationTracker
from lifedash.application.tracker_state import TrackerState
from lifedash.domain.day_key import InvalidDateError
from lifedash.domain.day_stat import DayStat
from lifedash.domain.trackers import TrackerRules
from lifedash.domain.view_window import ViewWindow
from lifedash.infrastructure.api.base import StatsAPI
from lifedash.infrastructure.api.schemas import DailyStatsPayload

logger = logging.getLogger(__name__)

LOAD_ERRORS = (TrackerError, ValidationError, InvalidDateError)


class StatsLoader:
    def __init__(
        self,
        api: StatsAPI,
        state: TrackerState,
        pending: PendingMutationTracker,
        rules: TrackerRules,
        window_provider: Callable[[], ViewWindow],
        tz: tzinfo | None = None,
        should_load_daily_stats: Callable[[], bool] | None = None,
    ):
        self.api = api
        self.state = state
        self.pending = pending
        self.rules = rules
        self.window_provider = window_provider
        self.tz = tz
        self.should_load_daily_stats = should_load_daily_stats or (lambda: True)
        self._epoch = 0

    @property
    def epoch(self) -> int:
        """Epoch of the most recently dispatched day-range request."""
        return self._epoch

    def _next_epoch(self) -> int:
        self._epoch += 1
        return self._epoch

    async def load_daily_stats(self, merge: bool = True) -> bool:
        """
        Load day stats for the active window.

        Args:
            merge: keep protected and local-only days (refresh) instead of
                replacing the whole collection (initial load, view change)

        Returns:
            True if a server response was applied
        """
        if not self.should_load_daily_stats():
            # Invalidate any load still in flight
            self._next_epoch()
            self.state.set_days(())
            return False

        day_range = self.window_provider().day_range()
        if day_range is None:
            return False
        start, end = day_range

        self.state.clear_error()
        request_epoch = self._next_epoch()
        try:
            payload = await self.api.get_daily_stats(start, end)
            server_days = [
                d.to_day_stat(self.rules.statuses_field, self.rules.total(), self.tz)
                for d in DailyStatsPayload.model_validate(payload or {}).days
            ]
        except LOAD_ERRORS as e:
            if request_epoch != self._epoch:
                logger.debug("Dropping failed stale daily stats request #%s", request_epoch)
                return False
            self.state.report_error(e, "Failed to load daily stats")
            return False

        if request_epoch != self._epoch:
            logger.debug(
                "Dropping stale daily stats response #%s (latest #%s)", request_epoch, self._epoch
            )
            return False

        if merge:
            self.state.set_days(self._merge(server_days, request_epoch))
        else:
            self.state.set_days(server_days)
        self.pending.release_settled(before_epoch=request_epoch)
        return True

    def _merge(self, server_days: list[DayStat], request_epoch: int) -> list[DayStat]:
        merged = {d.date: d for d in server_days}
        for local in self.state.days:
            if self.pending.is_any_pending_for_date(local.date, since_epoch=request_epoch):
                logger.debug("Preserving optimistic state for %s", local.date)
                merged[local.date] = local
            elif local.date not in merged:
                merged[local.date] = local
        return list(merged.values())

    async def load_monthly_stats(self, year: int | None = None) -> bool:
        if year is None:
            year = self.window_provider().year
        self.state.clear_error()
        try:
            stats = await self.api.get_monthly_stats(year)
        except TrackerError as e:
            self.state.report_error(e, "Failed to load monthly stats")
            return False
        self.state.set_monthly_stats(stats)
        return True

    async def load_streak_stats(self) -> bool:
        self.state.clear_error()
        try:
            stats = await self.api.get_streak_stats()
        except TrackerError as e:
            self.state.report_error(e, "Failed to load streak stats")
            return False
        self.state.set_streak_stats(stats)
        return True
