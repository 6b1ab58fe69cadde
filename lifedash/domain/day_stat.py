"""DayStat - completion state of one calendar day for one tracker"""
import math
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from lifedash.domain.day_key import STREAK_THRESHOLD_PERCENTAGE


def completion_percentage(done: int, total: int) -> int:
    """Whole percent, rounded half up. 0 when nothing is tracked."""
    if total <= 0:
        return 0
    return math.floor(done * 100 / total + 0.5)


@dataclass(frozen=True)
class DayStat:
    date: str
    statuses: Mapping[str, bool] = field(default_factory=dict)
    completed_count: int = 0
    percentage: int = 0
    total: int = 0
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "statuses", MappingProxyType(dict(self.statuses)))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @classmethod
    def build(cls, date: str, statuses: Mapping[str, bool], total: int, **extra: Any) -> "DayStat":
        """Create a DayStat with derived fields computed from ``statuses``."""
        done = sum(1 for v in statuses.values() if v)
        return cls(
            date=date,
            statuses=statuses,
            completed_count=done,
            percentage=completion_percentage(done, total),
            total=total,
            extra=extra,
        )

    def is_done(self, entity_id: str) -> bool:
        return bool(self.statuses.get(entity_id, False))

    @property
    def is_success_day(self) -> bool:
        return self.total > 0 and self.completed_count >= self.total

    @property
    def keeps_streak(self) -> bool:
        """Day counts toward the streak: at least STREAK_THRESHOLD_PERCENTAGE done."""
        return self.percentage >= STREAK_THRESHOLD_PERCENTAGE

    def with_status(self, entity_id: str, done: bool, total: int | None = None) -> "DayStat":
        """Copy with one entity's flag set and completed_count/percentage recomputed."""
        statuses = dict(self.statuses)
        statuses[entity_id] = done
        return self.with_statuses(statuses, total)

    def with_statuses(self, statuses: Mapping[str, bool], total: int | None = None) -> "DayStat":
        total = self.total if total is None else total
        done = sum(1 for v in statuses.values() if v)
        return replace(
            self,
            statuses=statuses,
            completed_count=done,
            percentage=completion_percentage(done, total),
            total=total,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "date": self.date,
            "statuses": dict(self.statuses),
            "completedCount": self.completed_count,
            "percentage": self.percentage,
            "total": self.total,
            "isSuccessDay": self.is_success_day,
        }


def sort_days(days: Iterable[DayStat]) -> tuple[DayStat, ...]:
    return tuple(sorted(days, key=lambda d: d.date))


def find_day(days: Iterable[DayStat], key: str) -> DayStat | None:
    for day in days:
        if day.date == key:
            return day
    return None


def replace_or_insert(days: tuple[DayStat, ...], day: DayStat) -> tuple[DayStat, ...]:
    """Return a new sorted collection with ``day`` in place of any entry on the same date."""
    return sort_days([d for d in days if d.date != day.date] + [day])
