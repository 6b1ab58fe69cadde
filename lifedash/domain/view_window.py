"""
Visible window of a tracker: week, month or year around an anchor date.

Week and month views read day-range stats; the year view only reads monthly
rollups, so it has no day range.
"""
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import Enum

from lifedash.domain.day_key import add_months, month_dates, week_dates


class View(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class ViewWindow:
    view: View
    anchor: date

    @property
    def year(self) -> int:
        return self.anchor.year

    def dates(self) -> list[date]:
        if self.view == View.WEEK:
            return week_dates(self.anchor)
        if self.view == View.MONTH:
            return month_dates(self.anchor.year, self.anchor.month)
        return []

    def day_range(self) -> tuple[str, str] | None:
        """(start, end) day keys, inclusive. None for the year view."""
        days = self.dates()
        if not days:
            return None
        return days[0].isoformat(), days[-1].isoformat()

    def shift(self, direction: int) -> "ViewWindow":
        """Move by ``direction`` weeks, months or years depending on the view."""
        if self.view == View.WEEK:
            anchor = self.anchor + timedelta(weeks=direction)
        elif self.view == View.MONTH:
            anchor = add_months(self.anchor, direction)
        else:
            anchor = add_months(self.anchor, 12 * direction)
        return replace(self, anchor=anchor)

    def with_view(self, view: View) -> "ViewWindow":
        return replace(self, view=View(view))
