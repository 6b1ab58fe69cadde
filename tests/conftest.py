"""
Pytest fixtures for testing
"""
import pytest

from fakes import ANCHOR, TEST_DELAY, FakeStatsAPI
from lifedash.application.habits import HabitTracker
from lifedash.application.prayers import PrayerTracker
from lifedash.domain.view_window import View, ViewWindow
from lifedash.infrastructure.api.schemas import HabitPayload


@pytest.fixture
def fake_api():
    return FakeStatsAPI()


@pytest.fixture
def prayer_api():
    return FakeStatsAPI(statuses_field="prayerStatuses")


@pytest.fixture
def week_window():
    return ViewWindow(View.WEEK, ANCHOR)


@pytest.fixture
def habit_tracker(fake_api, week_window):
    """Habit tracker with the fake habits already loaded."""
    tracker = HabitTracker(fake_api, window=week_window, refresh_delay=TEST_DELAY)
    tracker.habits = [HabitPayload.model_validate(h) for h in fake_api.habits]
    yield tracker
    tracker.close()


@pytest.fixture
def prayer_tracker(prayer_api, week_window):
    tracker = PrayerTracker(prayer_api, window=week_window, refresh_delay=TEST_DELAY)
    yield tracker
    tracker.close()
