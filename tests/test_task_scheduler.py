# tests/test_task_scheduler.py

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import replace

import pytest

from nowlane.tasks.lane_timing import DAY_SECONDS, end_of_day
from nowlane.tasks.task_models import Lane, LaneTimings, Task
from nowlane.tasks.task_scheduler import (
    BucketScheduler,
    next_wake_at,
    promote_overdue,
    run_bucket_scheduler,
)


def make_task(task_id: int, lane: Lane, due_at: float | None, **kw) -> Task:
    now = time.time()
    return Task(id=task_id, title=f"t{task_id}", lane=lane, created_at=now - 100, due_at=due_at, **kw)


class FakeTaskRepo:
    """
    In-memory TaskRepo used for scheduler unit tests.

    This avoids SQLite and makes tests purely about promotion logic.
    """

    def __init__(self, tasks: list[Task]) -> None:
        self.tasks = {t.id: t for t in tasks}
        self.updates: list[tuple[int, dict]] = []

    def list_open_tasks(self) -> list[Task]:
        # Hand out copies, like a real store would.
        return [replace(t) for t in self.tasks.values() if t.completed_at is None]

    def update_task_fields(self, task_id: int, *, lane=None, due_at=None, is_overdue=None) -> None:
        t = self.tasks[task_id]
        self.updates.append((task_id, {"lane": lane, "due_at": due_at, "is_overdue": is_overdue}))
        self.tasks[task_id] = replace(
            t,
            lane=t.lane if lane is None else lane,
            due_at=t.due_at if due_at is None else due_at,
            is_overdue=t.is_overdue if is_overdue is None else is_overdue,
        )


def test_soon_task_past_due_moves_to_now_once() -> None:
    now = time.time()
    task = make_task(1, Lane.SOON, now - 1)
    tasks = [task]

    changes = promote_overdue(tasks, now_ts=now, timings=LaneTimings())
    assert [(c.from_lane, c.to_lane) for c in changes] == [(Lane.SOON, Lane.NOW)]
    assert task.lane == Lane.NOW
    assert task.due_at == end_of_day(now)

    # Same day: the new due timestamp is end of today, so nothing happens.
    assert promote_overdue(tasks, now_ts=now + 1, timings=LaneTimings()) == []
    assert task.lane == Lane.NOW
    assert task.is_overdue is False


def test_later_moves_one_step_and_gets_soon_horizon() -> None:
    now = time.time()
    task = make_task(1, Lane.LATER, now - 5)

    promote_overdue([task], now_ts=now, timings=LaneTimings(soon="end_of_week"))

    assert task.lane == Lane.SOON
    assert task.due_at == pytest.approx(now + 7 * DAY_SECONDS)


def test_park_never_promotes_and_now_is_only_flagged() -> None:
    now = time.time()
    park = make_task(1, Lane.PARK, now - 10)
    urgent = make_task(2, Lane.NOW, now - 10)

    changes = promote_overdue([park, urgent], now_ts=now, timings=LaneTimings())

    assert park.lane == Lane.PARK
    assert urgent.lane == Lane.NOW
    assert urgent.is_overdue is True
    assert len(changes) == 1 and changes[0].marked_overdue

    # Already flagged: not reported again.
    assert promote_overdue([park, urgent], now_ts=now + 60, timings=LaneTimings()) == []


def test_completed_and_undated_tasks_are_skipped() -> None:
    now = time.time()
    done = make_task(1, Lane.SOON, now - 10, completed_at=now - 5)
    undated = make_task(2, Lane.LATER, None)
    future = make_task(3, Lane.SOON, now + 3600)

    assert promote_overdue([done, undated, future], now_ts=now, timings=LaneTimings()) == []
    assert done.lane == Lane.SOON
    assert undated.lane == Lane.LATER


def test_next_wake_at_picks_earliest_promotable_due() -> None:
    now = time.time()
    tasks = [
        make_task(1, Lane.PARK, now + 10),
        make_task(2, Lane.LATER, now + 500),
        make_task(3, Lane.SOON, now + 200),
        make_task(4, Lane.NOW, now - 50, is_overdue=True),
        make_task(5, Lane.SOON, now + 1, completed_at=now),
    ]
    assert next_wake_at(tasks) == now + 200
    assert next_wake_at([]) is None


def test_bucket_scheduler_writes_changes_back() -> None:
    now = time.time()
    repo = FakeTaskRepo(
        [
            make_task(1, Lane.SOON, now - 1),
            make_task(2, Lane.LATER, now + 3600),
        ]
    )
    scheduler = BucketScheduler(repo, LaneTimings)

    changes = scheduler.tick(now)

    assert [c.task_id for c in changes] == [1]
    assert repo.tasks[1].lane == Lane.NOW
    assert repo.tasks[2].lane == Lane.LATER
    assert scheduler.last_wake_at == pytest.approx(min(end_of_day(now), now + 3600))

    assert scheduler.tick(now + 1) == []
    assert len(repo.updates) == 1


def test_bucket_scheduler_survives_repo_failure() -> None:
    class BrokenRepo(FakeTaskRepo):
        def list_open_tasks(self):
            raise RuntimeError("db locked")

    scheduler = BucketScheduler(BrokenRepo([]), LaneTimings)
    assert scheduler.tick() == []


def test_overlapping_tick_is_skipped() -> None:
    now = time.time()

    class BlockingRepo(FakeTaskRepo):
        def __init__(self, tasks: list[Task]) -> None:
            super().__init__(tasks)
            self.entered = threading.Event()
            self.release = threading.Event()
            self.list_calls = 0

        def list_open_tasks(self) -> list[Task]:
            self.list_calls += 1
            self.entered.set()
            self.release.wait(timeout=5.0)
            return super().list_open_tasks()

    repo = BlockingRepo([make_task(1, Lane.SOON, now - 1)])
    scheduler = BucketScheduler(repo, LaneTimings)
    first: list = []

    worker = threading.Thread(target=lambda: first.extend(scheduler.tick(now)))
    worker.start()
    assert repo.entered.wait(timeout=5.0)

    # A second tick while the first is still inside the repo.
    assert scheduler.tick(now) == []
    assert repo.list_calls == 1

    repo.release.set()
    worker.join(timeout=5.0)

    assert [c.task_id for c in first] == [1]
    assert repo.tasks[1].lane == Lane.NOW


@pytest.mark.asyncio
async def test_scheduler_loop_promotes_due_task() -> None:
    now = time.time()
    repo = FakeTaskRepo([make_task(1, Lane.LATER, now - 1)])
    scheduler = BucketScheduler(repo, LaneTimings)

    runner = asyncio.create_task(run_bucket_scheduler(scheduler, interval_seconds=0.01))

    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert repo.tasks[1].lane == Lane.SOON, "Loop should tick at least once"
