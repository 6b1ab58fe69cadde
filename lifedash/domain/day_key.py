"""
Calendar-day keys.

A day key is the canonical ``YYYY-MM-DD`` string used to join local optimistic
state with server day records. Time of day never leaks into a key: any two
timestamps on the same local calendar day map to the same key, and a key maps
to itself.
"""
import calendar
import re
from datetime import date, datetime, timedelta, tzinfo

DEBOUNCE_DELAY_MS = 300
STREAK_THRESHOLD_PERCENTAGE = 75

_DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class InvalidDateError(ValueError):
    pass


def _local_date(value: datetime, tz: tzinfo | None) -> date:
    # Naive timestamps are already local wall-clock time
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(tz).date()


def _parse_string(value: str, tz: tzinfo | None) -> date:
    text = value.strip()
    try:
        if _DAY_KEY_RE.match(text):
            return date.fromisoformat(text)
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return _local_date(datetime.fromisoformat(text), tz)
    except ValueError as e:
        raise InvalidDateError(f"Invalid date: {value!r}") from e


def to_day_key(value: date | datetime | str, tz: tzinfo | None = None) -> str:
    """
    Normalize a date-like value to its day key.

    Args:
        value: date, datetime or ISO-8601 string (a bare day key or a full timestamp)
        tz: zone aware timestamps are converted to before taking the date;
            None means the system local zone

    Returns:
        ``YYYY-MM-DD``

    Raises:
        InvalidDateError: value is not a date (None, numbers, garbage strings,
            impossible calendar dates)

    Example:
        >>> to_day_key("2024-03-04T23:10:00")
        "2024-03-04"
        >>> to_day_key(to_day_key(date(2024, 3, 4)))
        "2024-03-04"
    """
    if isinstance(value, datetime):
        return _local_date(value, tz).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return _parse_string(value, tz).isoformat()
    raise InvalidDateError(f"Invalid date: {value!r}")


def parse_day_key(key: str) -> date:
    """Day key -> date. Raises InvalidDateError."""
    return date.fromisoformat(to_day_key(key))


def today(tz: tzinfo | None = None) -> date:
    return datetime.now(tz).date()


def week_dates(anchor: date) -> list[date]:
    """Monday..Sunday of the week containing ``anchor``."""
    monday = anchor - timedelta(days=anchor.weekday())
    return [monday + timedelta(days=i) for i in range(7)]


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(d: date, n: int) -> date:
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    return date(year, month, min(d.day, last_day_of_month(year, month)))


def month_dates(year: int, month: int) -> list[date]:
    last = last_day_of_month(year, month)
    return [date(year, month, d) for d in range(1, last + 1)]
