"""
StatsAPI - the REST collaborator the tracker core talks to.

The core never builds URLs itself; it only calls these coroutines. Responses
are plain decoded JSON, validated by the caller.
"""
from abc import ABC, abstractmethod
from typing import Any


class StatsAPI(ABC):
    """
    Tracker stats and toggle endpoints.

    Implementations:
    - HabitsStatsAPI / PrayersStatsAPI over HTTP (infrastructure.api.http_client)
    - in-memory fakes in tests
    """

    @abstractmethod
    async def get_daily_stats(self, start: str, end: str) -> dict[str, Any]:
        """
        Day records for the inclusive range.

        Returns:
            {"days": [{"date": ..., "<statuses field>": {...}, ...}, ...]}
        """

    @abstractmethod
    async def get_monthly_stats(self, year: int) -> dict[str, Any]:
        pass

    @abstractmethod
    async def get_streak_stats(self) -> dict[str, Any]:
        pass

    @abstractmethod
    async def toggle_entry(self, entity_id: str, day: str) -> Any:
        """Flip the entity's flag for the day server-side."""

    @abstractmethod
    async def set_entry(self, entity_id: str, day: str, value: bool) -> Any:
        """Set the entity's flag for the day to an explicit value."""


class HabitsAPI(StatsAPI):
    """Habit endpoints the habit tracker needs on top of the stats contract."""

    @abstractmethod
    async def list_habits(self, active_only: bool = True) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def get_habit_streaks(self) -> dict[str, Any]:
        """{habit_id: {"currentStreak": int, "longestStreak": int}}"""
