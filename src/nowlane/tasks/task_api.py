# src/nowlane/tasks/task_api.py

"""
Host glue: task-store changes paired with the engagement events they produce.

Callers hold state.lock (the console connector does).
"""

from __future__ import annotations

import logging
import time

from ..core.state import AppState
from .lane_timing import due_at_for_lane
from .task_models import Lane, Task

logger = logging.getLogger(__name__)


def create_task(state: AppState, title: str, lane: Lane, notes: str | None = None) -> int:
    """Add a task with its due timestamp computed from the configured lane timings."""
    now_ts = time.time()
    return state.task_store.add_task(
        title=title,
        lane=lane,
        notes=notes,
        due_at=due_at_for_lane(lane, state.lane_timings(), now_ts),
        created_at=now_ts,
    )


def sort_unsorted_task(state: AppState, unsorted_id: int, lane: Lane) -> int | None:
    """Move an inbox entry into a lane. Returns the new task id, or None if missing."""
    entry = state.task_store.get_unsorted_task(unsorted_id)
    if entry is None:
        return None
    task_id = create_task(state, entry.title, lane)
    state.task_store.remove_unsorted_task(unsorted_id)
    logger.info("Sorted inbox item %s into %s as task %s", unsorted_id, lane.value, task_id)
    return task_id


def move_task(state: AppState, task_id: int, lane: Lane) -> bool:
    """Manual move; the due timestamp is reset for the new lane."""
    due_at = due_at_for_lane(lane, state.lane_timings(), time.time())
    return state.task_store.move_task(task_id, lane, due_at)


def complete_task(state: AppState, task_id: int) -> Task | None:
    """
    Complete a task and record it with the engine.

    Finishing the last open "now" task also records the now-cleared bonus.
    Returns the task as it was before completion, or None if it was missing/already done.
    """
    task = state.task_store.get_task(task_id)
    if task is None or not task.is_open:
        return None

    if not state.task_store.complete_task(task_id):
        return None

    subtask_count = len(task.subtasks)
    state.engine.record_task_complete(subtask_count > 0, subtask_count)

    if task.lane == Lane.NOW and not state.task_store.list_tasks_by_lane(Lane.NOW):
        if state.engine.record_now_cleared():
            logger.info("Now lane cleared")

    return task


def toggle_subtask(state: AppState, task_id: int, subtask_id: int) -> bool | None:
    """Flip a subtask; completing it counts as a subtask event."""
    completed = state.task_store.toggle_subtask(task_id, subtask_id)
    if completed:
        state.engine.record_subtask_complete()
    return completed


def finish_focus_session(state: AppState, task_id: int | None, minutes: int) -> None:
    """Credit a finished focus session to a task (if any) and to the engine."""
    minutes = max(0, int(minutes))
    if task_id is not None:
        state.task_store.add_focus_time(task_id, minutes)
    state.engine.record_focus_session(minutes)
