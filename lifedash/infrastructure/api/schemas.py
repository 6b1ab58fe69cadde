"""
Pydantic schemas for tracker API payloads
"""
import math
from datetime import date, datetime, tzinfo
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from lifedash.domain.day_key import to_day_key
from lifedash.domain.day_stat import DayStat, completion_percentage

_CORE_FIELDS = {"date", "habitStatuses", "prayerStatuses", "statuses", "completedCount", "percentage"}


class DayStatPayload(BaseModel):
    """One day record as returned by /stats/daily"""
    model_config = ConfigDict(extra="allow")

    date: datetime | date | str
    habitStatuses: dict[str, bool] | None = None
    prayerStatuses: dict[str, bool] | None = None
    statuses: dict[str, bool] | None = None
    completedCount: int | None = None
    percentage: float | None = None

    def statuses_for(self, statuses_field: str) -> dict[str, bool]:
        value = getattr(self, statuses_field, None)
        if value is None:
            value = self.statuses
        return dict(value or {})

    def to_day_stat(self, statuses_field: str, total: int, tz: tzinfo | None = None) -> DayStat:
        """
        Convert to a domain DayStat with a normalized day key.

        Derived fields the server sent are kept; missing ones are computed
        from the statuses.

        Raises:
            InvalidDateError: the server date cannot be parsed
        """
        statuses = self.statuses_for(statuses_field)
        done = self.completedCount
        if done is None:
            done = sum(1 for v in statuses.values() if v)
        if self.percentage is None:
            percentage = completion_percentage(done, total)
        else:
            percentage = math.floor(self.percentage + 0.5)
        extra = {
            k: v for k, v in self.model_dump().items()
            if k not in _CORE_FIELDS and v is not None
        }
        return DayStat(
            date=to_day_key(self.date, tz),
            statuses=statuses,
            completed_count=done,
            percentage=percentage,
            total=total,
            extra=extra,
        )


class DailyStatsPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    days: list[DayStatPayload] = Field(default_factory=list)


class HabitPayload(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    name: str = ""
    icon: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return v if isinstance(v, str) else str(v)


class HabitStreakPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    currentStreak: int = 0
    longestStreak: int = 0


def parse_habit_streaks(payload: dict[str, Any] | None) -> dict[str, HabitStreakPayload]:
    return {
        str(habit_id): HabitStreakPayload.model_validate(streak)
        for habit_id, streak in (payload or {}).items()
    }
