"""Habit tracker: habit list, per-habit streaks and flip toggles"""
import asyncio
import logging
from datetime import date, datetime

from pydantic import ValidationError

from lifedash.application.errors import TrackerError
from lifedash.application.tracker import Tracker
from lifedash.domain.day_key import today
from lifedash.domain.toggle_value import Flip
from lifedash.domain.trackers import HabitRules
from lifedash.infrastructure.api.base import HabitsAPI
from lifedash.infrastructure.api.schemas import HabitPayload, HabitStreakPayload, parse_habit_streaks

logger = logging.getLogger(__name__)


class HabitTracker(Tracker):
    """
    Daily percentages are relative to the number of active habits, so the
    habit list is loaded first; with no habits there are no stats to load.
    """
    toggle_error_message = "Failed to toggle habit. Please try again."

    def __init__(self, api: HabitsAPI, **kwargs):
        self.habits: list[HabitPayload] = []
        self.habit_streaks: dict[str, HabitStreakPayload] = {}
        super().__init__(api, HabitRules(lambda: len(self.habits)), **kwargs)

    def should_load_daily_stats(self) -> bool:
        return len(self.habits) > 0

    def extra_loaders(self):
        return [self.load_habit_streaks]

    async def load_habits(self) -> bool:
        try:
            payload = await self.api.list_habits(active_only=True)
            self.habits = [HabitPayload.model_validate(h) for h in payload or []]
        except (TrackerError, ValidationError) as e:
            self.state.report_error(e, "Failed to load habits.")
            return False
        return True

    async def load_habit_streaks(self) -> bool:
        # Streak badges are decorative: failures are logged, not shown
        try:
            self.habit_streaks = parse_habit_streaks(await self.api.get_habit_streaks())
        except (TrackerError, ValidationError):
            logger.exception("Failed to load habit streaks")
            return False
        return True

    async def reload(self) -> None:
        if not self.habits:
            self.state.set_days(())
            return
        await super().reload()

    async def start(self) -> None:
        """Initial load: habits first, then stats."""
        self.state.set_loading(True)
        try:
            await self.load_habits()
        finally:
            self.state.set_loading(False)
        await self.reload()

    def toggle_habit(self, habit_id: str, day: date | datetime | str | None = None) -> asyncio.Task:
        if day is None:
            day = today(self.tz)
        return self.toggle(habit_id, day, Flip())

    def streak_for(self, habit_id: str) -> HabitStreakPayload:
        return self.habit_streaks.get(str(habit_id), HabitStreakPayload())
