"""
Tracker factory and command-line entry point
"""
import argparse
import asyncio
import logging

from lifedash.application.errors import ErrorHandler
from lifedash.application.habits import HabitTracker
from lifedash.application.prayers import PrayerTracker
from lifedash.application.tracker import Tracker
from lifedash.config import Settings, get_settings
from lifedash.domain.day_key import today
from lifedash.domain.view_window import View, ViewWindow
from lifedash.infrastructure.api.base import StatsAPI
from lifedash.infrastructure.api.http_client import ApiClient, HabitsStatsAPI, PrayersStatsAPI

logger = logging.getLogger(__name__)

TRACKERS = {
    "habits": (HabitTracker, HabitsStatsAPI),
    "prayers": (PrayerTracker, PrayersStatsAPI),
}


def create_tracker(
    kind: str,
    settings: Settings | None = None,
    api: StatsAPI | None = None,
    view: View = View.WEEK,
    on_error: ErrorHandler | None = None,
) -> Tracker:
    """
    Application factory - builds a fully wired tracker

    Args:
        kind: "habits" or "prayers"
        settings: defaults to get_settings()
        api: StatsAPI to use instead of the HTTP client
        view: initial view
        on_error: user-facing error message hook

    Returns:
        HabitTracker or PrayerTracker
    """
    if kind not in TRACKERS:
        raise ValueError(f"Unknown tracker: {kind}")
    settings = settings or get_settings()
    tracker_cls, api_cls = TRACKERS[kind]
    if api is None:
        api = api_cls(ApiClient.from_settings(settings))

    tz = settings.get_timezone()
    return tracker_cls(
        api,
        window=ViewWindow(View(view), today(tz)),
        tz=tz,
        refresh_delay=settings.refresh_delay_seconds(),
        on_error=on_error,
    )


async def _show(tracker: Tracker) -> None:
    if isinstance(tracker, HabitTracker):
        await tracker.start()
    else:
        await tracker.reload()
    try:
        if tracker.error:
            logger.error(tracker.error)
        for day in tracker.days:
            logger.info("%s  %3d%%  %s", day.date, day.percentage, dict(day.statuses))
        logger.info("Streak: %s", tracker.streak_stats)
        if tracker.window.view == View.YEAR:
            logger.info("Monthly: %s", tracker.monthly_stats)
    finally:
        tracker.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Load and print tracker stats")
    parser.add_argument("tracker", choices=sorted(TRACKERS))
    parser.add_argument("--view", choices=[v.value for v in View], default=View.WEEK.value)
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
    asyncio.run(_show(create_tracker(args.tracker, settings, view=View(args.view))))


if __name__ == "__main__":
    main()
