# src/nowlane/tasks/lane_timing.py

"""
Due-timestamp computation for lanes.

All timestamps are epoch seconds; day boundaries are taken in local time.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime

from .task_models import Lane, LaneTimings

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60

PARK_REVIEW_DAYS = 30


def end_of_day(now_ts: float) -> float:
    """Last instant of the local calendar day containing now_ts."""
    dt = datetime.fromtimestamp(now_ts).astimezone()
    return dt.replace(hour=23, minute=59, second=59, microsecond=999999).timestamp()


def horizon_days(lane: Lane, timings: LaneTimings) -> int | None:
    """
    Number of days a lane's horizon spans, or None for "end of today".
    """
    if lane == Lane.NOW:
        # Both "same_day" and "24_hours" resolve to the end of the current day.
        return None
    if lane == Lane.SOON:
        return 3 if timings.soon == "2_3_days" else 7
    if lane == Lane.LATER:
        return 7 if timings.later == "1_week" else 14
    return PARK_REVIEW_DAYS


def due_at_for_lane(lane: Lane, timings: LaneTimings | None = None, now_ts: float | None = None) -> float:
    if now_ts is None:
        now_ts = time.time()
    if timings is None:
        timings = LaneTimings()

    normalized = timings.normalized()
    if normalized != timings:
        logger.warning("Unknown lane timing option(s) in %s; using defaults for them", timings)

    days = horizon_days(lane, normalized)
    if days is None:
        return end_of_day(now_ts)
    return float(now_ts) + days * DAY_SECONDS
