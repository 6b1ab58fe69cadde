"""
Prayer tracker: explicit prayed/not-prayed toggles and "mark all prayed".

mark_all_prayed takes one snapshot, marks each prayer it will write as
pending (per prayer, not per day), applies a single optimistic "all done"
update and writes the missing prayers one by one. On failure the local day
is rolled back and the day range is re-read so prayers written before the
failure show up.
"""
import asyncio
import logging
from datetime import date, datetime

from lifedash.application.tracker import Tracker
from lifedash.domain.day_key import to_day_key, today
from lifedash.domain.day_stat import DayStat, replace_or_insert
from lifedash.domain.toggle_value import SetTo
from lifedash.domain.trackers import PRAYER_IDS, PrayerRules
from lifedash.infrastructure.api.base import StatsAPI

logger = logging.getLogger(__name__)


class PrayerTracker(Tracker):
    toggle_error_message = "Failed to update prayer. Please try again."
    mark_all_error_message = "Failed to mark all prayers. Please try again."

    def __init__(self, api: StatsAPI, **kwargs):
        super().__init__(api, PrayerRules(), **kwargs)

    def _day_key(self, day: date | datetime | str | None) -> str:
        return to_day_key(today(self.tz) if day is None else day, self.tz)

    def checklist(self, day: date | datetime | str | None = None) -> dict[str, bool]:
        """Status of every daily prayer; missing entries count as not prayed."""
        stat = self.state.day(self._day_key(day))
        return {pid: bool(stat and stat.is_done(pid)) for pid in PRAYER_IDS}

    def toggle_prayer(
        self,
        prayer: str,
        prayed: bool,
        day: date | datetime | str | None = None,
    ) -> asyncio.Task:
        if prayer not in PRAYER_IDS:
            raise ValueError(f"Unknown prayer: {prayer}")
        return self.toggle(prayer, self._day_key(day), SetTo(prayed))

    def mark_all_prayed(self, day: date | datetime | str | None = None) -> asyncio.Task:
        day_key = self._day_key(day)
        loop = asyncio.get_running_loop()

        snapshot = self.state.days
        existing = self.state.day(day_key)
        missing = [pid for pid in PRAYER_IDS if not (existing and existing.is_done(pid))]
        for pid in missing:
            self.pending.mark_pending(day_key, pid)
        if missing:
            self.state.set_days(replace_or_insert(snapshot, self.rules.all_prayed(day_key, existing)))

        return self.toggles.track(loop.create_task(self._write_all(day_key, missing, snapshot)))

    async def _write_all(self, day_key: str, missing: list[str], snapshot: tuple[DayStat, ...]) -> bool:
        if not missing:
            return True

        remaining = list(missing)
        try:
            for pid in missing:
                await self.api.set_entry(pid, day_key, True)
                self.pending.settle(day_key, pid, self.loader.epoch)
                remaining.remove(pid)
        except asyncio.CancelledError:
            self._roll_back_all(day_key, remaining, snapshot)
            raise
        except Exception as e:
            logger.warning(
                "Mark all prayed failed for %s after %d of %d writes: %r",
                day_key, len(missing) - len(remaining), len(missing), e,
            )
            self._roll_back_all(day_key, remaining, snapshot)
            await asyncio.gather(
                self.loader.load_daily_stats(merge=True),
                self.loader.load_streak_stats(),
            )
            self.state.report_error(e, self.mark_all_error_message)
            return False

        self.scheduler.schedule_refresh()
        return True

    def _roll_back_all(self, day_key: str, remaining: list[str], snapshot: tuple[DayStat, ...]) -> None:
        for pid in remaining:
            self.pending.clear_pending(day_key, pid)
        self.state.restore_days(snapshot)
