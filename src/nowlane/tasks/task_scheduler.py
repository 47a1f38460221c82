# src/nowlane/tasks/task_scheduler.py

from __future__ import annotations

"""
Bucket scheduler.

A small polling loop that:
- fetches open tasks,
- promotes overdue ones one lane up (later -> soon -> now),
- recomputes their due timestamps from the current lane timings,
- flags overdue tasks that are already in the "now" lane.

Park tasks never auto-promote and "now" tasks never de-escalate.
"""

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..core.ports import TaskRepo
from .lane_timing import due_at_for_lane
from .task_models import Lane, LaneTimings, Task

logger = logging.getLogger(__name__)

# One promotion step per tick. Lanes missing here are never moved.
_PROMOTION_STEP: dict[Lane, Lane] = {
    Lane.LATER: Lane.SOON,
    Lane.SOON: Lane.NOW,
}


@dataclass(slots=True, frozen=True)
class Promotion:
    """
    One change applied by a tick.

    For a "now" task that passed its deadline, from_lane == to_lane and
    marked_overdue is True.
    """

    task_id: int
    from_lane: Lane
    to_lane: Lane
    due_at: float | None
    marked_overdue: bool = False


def promote_overdue(tasks: Iterable[Task], *, now_ts: float, timings: LaneTimings) -> list[Promotion]:
    """
    Apply one promotion step to every overdue open task (mutates tasks in place).

    Completed tasks and tasks without a due timestamp are skipped.
    """
    changes: list[Promotion] = []

    for task in tasks:
        if task.completed_at is not None or task.due_at is None:
            continue
        if now_ts < task.due_at:
            continue

        nxt = _PROMOTION_STEP.get(task.lane)
        if nxt is not None:
            prev = task.lane
            task.lane = nxt
            task.due_at = due_at_for_lane(nxt, timings, now_ts)
            changes.append(Promotion(task_id=task.id, from_lane=prev, to_lane=nxt, due_at=task.due_at))
            continue

        if task.lane == Lane.NOW and not task.is_overdue:
            task.is_overdue = True
            changes.append(
                Promotion(
                    task_id=task.id,
                    from_lane=Lane.NOW,
                    to_lane=Lane.NOW,
                    due_at=task.due_at,
                    marked_overdue=True,
                )
            )

    return changes


def next_wake_at(tasks: Iterable[Task]) -> float | None:
    """
    Earliest due timestamp that can still change something on a tick.
    """
    best: float | None = None
    for task in tasks:
        if task.completed_at is not None or task.due_at is None:
            continue
        if task.lane == Lane.PARK:
            continue
        if task.lane == Lane.NOW and task.is_overdue:
            continue
        if best is None or task.due_at < best:
            best = task.due_at
    return best


class BucketScheduler:
    """
    Store-backed tick.

    The tick is single-writer: a tick that starts while another one is still
    running (e.g. a manual /tick racing the background loop) is skipped.
    `lock`, when given, is held for the whole tick (shared with other writers).
    """

    def __init__(
        self,
        task_repo: TaskRepo,
        timings_provider: Callable[[], LaneTimings],
        *,
        lock: contextlib.AbstractContextManager | None = None,
    ) -> None:
        self._repo = task_repo
        self._timings_provider = timings_provider
        self._lock = lock if lock is not None else contextlib.nullcontext()
        self._running = threading.Lock()
        self.last_wake_at: float | None = None

    def tick(self, now_ts: float | None = None) -> list[Promotion]:
        if not self._running.acquire(blocking=False):
            logger.debug("Previous tick still running; skipping")
            return []
        try:
            with self._lock:
                return self._tick(time.time() if now_ts is None else float(now_ts))
        finally:
            self._running.release()

    def _tick(self, now_ts: float) -> list[Promotion]:
        try:
            tasks = self._repo.list_open_tasks()
        except Exception:
            logger.exception("list_open_tasks failed")
            return []

        try:
            timings = self._timings_provider()
        except Exception:
            logger.exception("Lane timings unavailable; using defaults")
            timings = LaneTimings()

        changes = promote_overdue(tasks, now_ts=now_ts, timings=timings)
        self.last_wake_at = next_wake_at(tasks)

        applied: list[Promotion] = []
        for ch in changes:
            try:
                if ch.marked_overdue:
                    self._repo.update_task_fields(ch.task_id, is_overdue=True)
                    logger.info("Task %s is overdue in now", ch.task_id)
                else:
                    self._repo.update_task_fields(ch.task_id, lane=ch.to_lane, due_at=ch.due_at)
                    logger.info("Task %s promoted %s -> %s", ch.task_id, ch.from_lane.value, ch.to_lane.value)
                applied.append(ch)
            except Exception:
                logger.exception("update_task_fields(promotion) failed task_id=%s", ch.task_id)

        return applied


async def run_bucket_scheduler(
        scheduler: BucketScheduler,
        *,
        interval_seconds: float = 60.0,
) -> None:
    """
    Simple polling loop.

    Every interval_seconds (or earlier, when the next due timestamp comes sooner):
    - run scheduler.tick()
    - sleep until the next wake-up

    To stop the scheduler, cancel the coroutine/task.
    """
    interval = max(0.5, float(interval_seconds))

    while True:
        try:
            scheduler.tick()
        except Exception:
            logger.exception("Scheduler tick crashed")

        sleep_s = interval
        wake = scheduler.last_wake_at
        if wake is not None:
            sleep_s = min(interval, max(0.5, wake - time.time()))

        await asyncio.sleep(sleep_s)
