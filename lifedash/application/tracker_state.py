"""
Tracker state store.

Holds everything the presentation layer reads: the day collection, month and
streak rollups, the loading flag and the current error message. Only the
tracker components write to it.
"""
import logging
from typing import Any, Callable

from lifedash.application.errors import ErrorHandler, default_error_handler
from lifedash.domain.day_stat import DayStat, find_day, sort_days

logger = logging.getLogger(__name__)


class TrackerState:
    def __init__(
        self,
        on_error: ErrorHandler | None = None,
        on_change: Callable[["TrackerState"], None] | None = None,
    ):
        self._on_error = on_error or default_error_handler
        self._on_change = on_change
        self.days: tuple[DayStat, ...] = ()
        self.monthly_stats: dict[str, Any] | None = None
        self.streak_stats: dict[str, Any] | None = None
        self.loading = False
        self.error: str | None = None

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    def set_days(self, days) -> None:
        self.days = sort_days(days)
        self._changed()

    def restore_days(self, snapshot: tuple[DayStat, ...]) -> None:
        """Put back a previously captured collection as-is."""
        self.days = snapshot
        self._changed()

    def set_monthly_stats(self, stats: dict[str, Any] | None) -> None:
        self.monthly_stats = stats
        self._changed()

    def set_streak_stats(self, stats: dict[str, Any] | None) -> None:
        self.streak_stats = stats
        self._changed()

    def set_loading(self, loading: bool) -> None:
        self.loading = loading
        self._changed()

    def clear_error(self) -> None:
        if self.error is not None:
            self.error = None
            self._changed()

    def report_error(self, exc: BaseException, default_message: str) -> str:
        """Single funnel for user-visible errors."""
        logger.error("%s: %s", default_message, exc)
        self.error = self._on_error(exc, default_message)
        self._changed()
        return self.error

    def day(self, key: str) -> DayStat | None:
        return find_day(self.days, key)
