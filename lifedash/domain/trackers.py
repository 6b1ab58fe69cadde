"""
Per-tracker day rules.

Each tracker supplies two pure functions to the optimistic toggle controller:
  update(day, entity_id, value) - new DayStat for an existing day
  create(day_key, entity_id, value) - DayStat for a day the client has not seen yet

Habits flip and count against the number of active habits.
Prayers take an explicit value and always count against five daily prayers.
"""
from typing import Callable, Protocol

from lifedash.domain.day_stat import DayStat
from lifedash.domain.toggle_value import Flip, ToggleValue

HABIT_MILESTONES = (30, 50, 75, 100, 150, 200, 250, 300, 365)
PRAYER_MILESTONES = (7, 30, 50, 75, 100, 150, 200, 365)

PRAYER_CATEGORIES = (
    ("fajr", "Fajr (Dawn)"),
    ("zuhr", "Zuhr (Midday)"),
    ("asr", "Asr (Afternoon)"),
    ("maghrib", "Maghrib (Sunset)"),
    ("isha", "Isha (Night)"),
)
PRAYER_IDS = tuple(pid for pid, _ in PRAYER_CATEGORIES)
TOTAL_DAILY_PRAYERS = len(PRAYER_CATEGORIES)

HABIT_STATUSES_FIELD = "habitStatuses"
PRAYER_STATUSES_FIELD = "prayerStatuses"


class TrackerRules(Protocol):
    statuses_field: str

    def total(self) -> int: ...

    def update(self, day: DayStat, entity_id: str, value: ToggleValue) -> DayStat: ...

    def create(self, day_key: str, entity_id: str, value: ToggleValue) -> DayStat: ...


class HabitRules:
    statuses_field = HABIT_STATUSES_FIELD

    def __init__(self, total_provider: Callable[[], int]):
        self._total_provider = total_provider

    def total(self) -> int:
        return self._total_provider()

    def update(self, day: DayStat, entity_id: str, value: ToggleValue = Flip()) -> DayStat:
        return day.with_status(entity_id, value.resolve(day.is_done(entity_id)), total=self.total())

    def create(self, day_key: str, entity_id: str, value: ToggleValue = Flip()) -> DayStat:
        # Absent day means nothing was done yet
        return DayStat.build(day_key, {entity_id: value.resolve(False)}, total=self.total())


class PrayerRules:
    statuses_field = PRAYER_STATUSES_FIELD

    def total(self) -> int:
        return TOTAL_DAILY_PRAYERS

    def update(self, day: DayStat, entity_id: str, value: ToggleValue) -> DayStat:
        return day.with_status(entity_id, value.resolve(day.is_done(entity_id)), total=TOTAL_DAILY_PRAYERS)

    def create(self, day_key: str, entity_id: str, value: ToggleValue) -> DayStat:
        return DayStat.build(
            day_key,
            {entity_id: value.resolve(False)},
            total=TOTAL_DAILY_PRAYERS,
            totalPrayers=TOTAL_DAILY_PRAYERS,
        )

    def all_prayed(self, day_key: str, existing: DayStat | None) -> DayStat:
        statuses = {pid: True for pid in PRAYER_IDS}
        if existing is None:
            return DayStat.build(day_key, statuses, total=TOTAL_DAILY_PRAYERS, totalPrayers=TOTAL_DAILY_PRAYERS)
        return existing.with_statuses(statuses, total=TOTAL_DAILY_PRAYERS)


def reached_milestones(streak: int, milestones=HABIT_MILESTONES) -> list[int]:
    return [m for m in milestones if streak >= m]


def next_milestone(streak: int, milestones=HABIT_MILESTONES) -> int | None:
    """Smallest milestone still ahead of ``streak``, None when all are reached."""
    for m in milestones:
        if streak < m:
            return m
    return None
