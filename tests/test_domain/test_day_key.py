"""
Tests for day keys and calendar helpers
"""
import pytest
from datetime import date, datetime, timedelta, timezone

from lifedash.domain.day_key import (
    InvalidDateError,
    add_months,
    month_dates,
    parse_day_key,
    to_day_key,
    week_dates,
)

MSK = timezone(timedelta(hours=3))


class TestToDayKey:
    def test_date(self):
        assert to_day_key(date(2024, 3, 4)) == "2024-03-04"

    def test_day_key_maps_to_itself(self):
        assert to_day_key("2024-03-04") == "2024-03-04"
        assert to_day_key(to_day_key(date(2024, 3, 4))) == "2024-03-04"

    def test_time_of_day_ignored(self):
        keys = {
            to_day_key(datetime(2024, 3, 4, 0, 0)),
            to_day_key(datetime(2024, 3, 4, 12, 30)),
            to_day_key(datetime(2024, 3, 4, 23, 59, 59)),
            to_day_key("2024-03-04T08:15:00"),
            to_day_key("2024-03-04T08:15:00.000"),
        }
        assert keys == {"2024-03-04"}

    def test_aware_timestamp_uses_local_day(self):
        # 22:30 UTC is already the next day in Moscow
        assert to_day_key("2024-03-03T22:30:00Z", MSK) == "2024-03-04"
        assert to_day_key("2024-03-03T22:30:00Z", timezone.utc) == "2024-03-03"

    def test_aware_datetime_object(self):
        value = datetime(2024, 3, 3, 22, 30, tzinfo=timezone.utc)
        assert to_day_key(value, MSK) == "2024-03-04"

    def test_offset_string(self):
        assert to_day_key("2024-03-04T01:00:00+03:00", timezone.utc) == "2024-03-03"

    def test_surrounding_whitespace(self):
        assert to_day_key(" 2024-03-04 ") == "2024-03-04"

    @pytest.mark.parametrize("value", [None, 42, 3.5, True, "", "not a date", "2024-02-30", "2024-13-01", [2024, 3, 4]])
    def test_invalid(self, value):
        with pytest.raises(InvalidDateError):
            to_day_key(value)

    def test_invalid_date_error_is_value_error(self):
        assert issubclass(InvalidDateError, ValueError)

    def test_parse_day_key(self):
        assert parse_day_key("2024-03-04") == date(2024, 3, 4)


class TestCalendarHelpers:
    def test_week_starts_monday(self):
        # 2024-03-06 is a Wednesday
        days = week_dates(date(2024, 3, 6))
        assert days[0] == date(2024, 3, 4)
        assert days[-1] == date(2024, 3, 10)
        assert len(days) == 7

    def test_week_of_sunday(self):
        days = week_dates(date(2024, 3, 10))
        assert days[0] == date(2024, 3, 4)

    def test_month_dates_leap_february(self):
        days = month_dates(2024, 2)
        assert len(days) == 29
        assert days[-1] == date(2024, 2, 29)

    def test_add_months_clips_to_last_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 12, 15), 1) == date(2025, 1, 15)
        assert add_months(date(2024, 1, 15), -1) == date(2023, 12, 15)
