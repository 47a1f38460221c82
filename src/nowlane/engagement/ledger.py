# src/nowlane/engagement/ledger.py

"""
Daily ledger: one DailyStat per active calendar date, newest 30 kept.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, timedelta

from .models import DailyStat, WeeklySummary

MAX_DAYS = 30
WEEK_DAYS = 7


def get_day(stats: list[DailyStat], day: str) -> DailyStat | None:
    for s in stats:
        if s.date == day:
            return s
    return None


def update_day(stats: list[DailyStat], day: str, updater: Callable[[DailyStat], None]) -> DailyStat:
    """
    Apply updater to the entry for `day`, creating it first if needed (mutates stats).

    Oldest dates are evicted while the ledger holds more than MAX_DAYS entries.
    """
    entry = get_day(stats, day)
    if entry is None:
        entry = DailyStat(date=day)
        stats.append(entry)
        stats.sort(key=lambda s: s.date)
    updater(entry)
    evict_old(stats)
    return entry


def evict_old(stats: list[DailyStat]) -> None:
    overflow = len(stats) - MAX_DAYS
    if overflow > 0:
        stats.sort(key=lambda s: s.date)
        del stats[:overflow]


def weekly_summary(stats: list[DailyStat], today: str) -> WeeklySummary:
    """
    Totals over the 7 calendar days ending today (inclusive).

    The entry dated today-7 is outside the window, so a week never spans 8 dates.
    """
    start = (date.fromisoformat(today) - timedelta(days=WEEK_DAYS - 1)).isoformat()
    window = [s for s in stats if start <= s.date <= today]
    return WeeklySummary(
        tasks_completed=sum(s.tasks_completed for s in window),
        focus_minutes=sum(s.focus_minutes for s in window),
        days_active=len(window),
    )
