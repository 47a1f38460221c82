# tests/test_lane_timing.py

from __future__ import annotations

import time
from datetime import datetime

import pytest

from nowlane.tasks.lane_timing import DAY_SECONDS, PARK_REVIEW_DAYS, due_at_for_lane, end_of_day
from nowlane.tasks.task_models import Lane, LaneTimings, Subtask, Task


def test_lane_rank_and_parse() -> None:
    assert [lane.rank for lane in (Lane.PARK, Lane.LATER, Lane.SOON, Lane.NOW)] == [0, 1, 2, 3]
    assert Lane.parse(" NOW ") == Lane.NOW
    with pytest.raises(ValueError):
        Lane.parse("urgent")
    assert Lane.from_db("bogus") == Lane.LATER


def test_end_of_day_is_same_local_date() -> None:
    now = time.time()
    eod = end_of_day(now)

    assert eod >= now
    local_now = datetime.fromtimestamp(now)
    local_eod = datetime.fromtimestamp(eod)
    assert local_eod.date() == local_now.date()
    assert (local_eod.hour, local_eod.minute, local_eod.second) == (23, 59, 59)


@pytest.mark.parametrize("now_option", ["same_day", "24_hours"])
def test_now_lane_is_due_end_of_today(now_option: str) -> None:
    now = time.time()
    assert due_at_for_lane(Lane.NOW, LaneTimings(now=now_option), now) == end_of_day(now)


@pytest.mark.parametrize(
    ("lane", "timings", "days"),
    [
        (Lane.SOON, LaneTimings(soon="2_3_days"), 3),
        (Lane.SOON, LaneTimings(soon="end_of_week"), 7),
        (Lane.SOON, LaneTimings(soon="custom"), 7),
        (Lane.LATER, LaneTimings(later="1_week"), 7),
        (Lane.LATER, LaneTimings(later="2_weeks"), 14),
        (Lane.PARK, LaneTimings(park="quarterly"), PARK_REVIEW_DAYS),
    ],
)
def test_lane_horizons(lane: Lane, timings: LaneTimings, days: int) -> None:
    now = 1_700_000_000.0
    assert due_at_for_lane(lane, timings, now) == now + days * DAY_SECONDS


def test_unknown_timing_falls_back_to_default() -> None:
    now = 1_700_000_000.0
    assert due_at_for_lane(Lane.SOON, LaneTimings(soon="fortnight"), now) == now + 3 * DAY_SECONDS
    assert LaneTimings(later="never").normalized() == LaneTimings()


def test_task_progress() -> None:
    task = Task(id=1, title="x", lane=Lane.NOW, created_at=0.0, due_at=None)
    assert task.progress == 0

    task.subtasks = [Subtask(1, "a", True), Subtask(2, "b"), Subtask(3, "c")]
    assert task.progress == 33
    assert task.is_open
