# src/nowlane/engagement/engine.py

"""
Engagement engine.

Consumes completion events and keeps streak, points, level, the daily ledger and
achievement unlocks up to date.

Threading:
- single writer: callers must serialize record_* calls (AppState.lock in the CLI)
- snapshot saves run on one background worker thread and are never awaited
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from datetime import date

from ..core.clock import SystemClock
from ..core.ports import Clock, SnapshotStorage
from .achievements import UnlockQueue, detect_unlocks
from .ledger import get_day, update_day, weekly_summary
from .models import Achievement, DailyStat, EngagementState, Level, WeeklySummary
from .rules import Points, default_achievements, level_for_points
from .rules import level_progress as _level_progress
from .rules import points_to_next_level as _points_to_next_level
from .snapshot import decode_state, encode_state
from .streak import StreakTransition, advance_streak

logger = logging.getLogger(__name__)

EventDate = date | str | None


def default_state() -> EngagementState:
    return EngagementState(achievements=default_achievements())


class EngagementEngine:
    def __init__(
        self,
        storage: SnapshotStorage,
        *,
        clock: Clock | None = None,
        autosave: bool = True,
    ) -> None:
        self._storage = storage
        self._clock: Clock = clock or SystemClock()
        self._state = default_state()
        self._unlocks = UnlockQueue()

        self._executor: ThreadPoolExecutor | None = None
        if autosave:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="engagement-save")
        self._pending_saves: list[Future[None]] = []

    # ---- lifecycle ----

    def load(self) -> EngagementState:
        """Load the persisted snapshot; fall back to defaults on any failure."""
        try:
            blob = self._storage.load_snapshot()
        except Exception:
            logger.exception("Failed to load engagement snapshot; starting from defaults")
            blob = None

        if blob:
            try:
                self._state = decode_state(blob)
                logger.info(
                    "Engagement state loaded streak=%s points=%s level=%s",
                    self._state.current_streak,
                    self._state.points,
                    self._state.level.value,
                )
            except Exception:
                logger.exception("Engagement snapshot is corrupt; starting from defaults")
                self._state = default_state()
        else:
            self._state = default_state()

        return self._state

    def flush(self, timeout: float | None = None) -> None:
        """Wait for outstanding snapshot saves."""
        pending = list(self._pending_saves)
        if pending:
            wait_futures(pending, timeout=timeout)
        self._pending_saves = [f for f in self._pending_saves if not f.done()]

    def close(self) -> None:
        self.flush()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ---- persistence ----

    def _write_snapshot(self, blob: str) -> None:
        try:
            self._storage.save_snapshot(blob)
        except Exception:
            logger.exception("Failed to save engagement snapshot (will retry on next change)")

    def _schedule_save(self) -> None:
        # Serialize now so the saved blob matches this mutation exactly.
        try:
            blob = encode_state(self._state)
        except Exception:
            logger.exception("Failed to encode engagement snapshot")
            return

        if self._executor is None:
            self._write_snapshot(blob)
            return

        self._pending_saves = [f for f in self._pending_saves if not f.done()]
        self._pending_saves.append(self._executor.submit(self._write_snapshot, blob))

    # ---- helpers ----

    def _event_day(self, on: EventDate) -> str:
        if on is None:
            return self._clock.now().date().isoformat()
        if isinstance(on, date):
            return on.isoformat()
        return date.fromisoformat(on).isoformat()

    def _now_ts(self) -> float:
        return self._clock.now().timestamp()

    def _finish_event(self, day: str, points: int, bump: Callable[[DailyStat], None]) -> None:
        s = self._state
        s.points += points
        s.level = level_for_points(s.points)
        update_day(s.daily_stats, day, bump)
        self._unlocks.push_many(detect_unlocks(s, self._now_ts()))
        self._schedule_save()

    # ---- events ----

    def record_activity(self, today: EventDate = None) -> StreakTransition:
        """Streak transition for a day of activity, without recording an event."""
        day = self._event_day(today)
        tr = advance_streak(self._state, day)
        if not tr.noop:
            self._state.level = level_for_points(self._state.points)
            logger.debug(
                "Streak %s -> %s on %s (bonus=%s protection_consumed=%s)",
                tr.previous_streak,
                tr.new_streak,
                day,
                tr.bonus_points,
                tr.protection_consumed,
            )
            self._unlocks.push_many(detect_unlocks(self._state, self._now_ts()))
            self._schedule_save()
        return tr

    def record_task_complete(self, has_subtasks: bool, subtask_count: int, *, on: EventDate = None) -> None:
        day = self._event_day(on)
        advance_streak(self._state, day)
        self._state.total_tasks_completed += 1

        points = Points.TASK_WITH_SUBTASKS_COMPLETE if has_subtasks else Points.TASK_COMPLETE
        logger.debug("Task complete subtasks=%s count=%s points=%s", has_subtasks, subtask_count, points)

        def bump(d: DailyStat) -> None:
            d.tasks_completed += 1

        self._finish_event(day, points, bump)

    def record_subtask_complete(self, *, on: EventDate = None) -> None:
        day = self._event_day(on)
        advance_streak(self._state, day)
        self._state.total_subtasks_completed += 1

        def bump(d: DailyStat) -> None:
            d.subtasks_completed += 1

        self._finish_event(day, Points.SUBTASK_COMPLETE, bump)

    def record_focus_session(self, minutes: int, *, on: EventDate = None) -> None:
        day = self._event_day(on)
        minutes = max(0, int(minutes))
        advance_streak(self._state, day)
        self._state.total_focus_minutes += minutes

        def bump(d: DailyStat) -> None:
            d.focus_minutes += minutes

        self._finish_event(day, Points.FOCUS_SESSION_COMPLETE, bump)

    def record_now_cleared(self, *, on: EventDate = None) -> bool:
        """
        Award the all-urgent-cleared bonus once per date.

        Returns False (and changes nothing) if it was already awarded for that date.
        """
        day = self._event_day(on)
        existing = get_day(self._state.daily_stats, day)
        if existing is not None and existing.now_cleared:
            logger.debug("Now lane already cleared on %s; no bonus", day)
            return False

        advance_streak(self._state, day)

        def bump(d: DailyStat) -> None:
            d.now_cleared = True

        self._finish_event(day, Points.NOW_CLEARED, bump)
        return True

    def use_streak_protection(self) -> bool:
        if self._state.streak_protection_used:
            return False
        self._state.streak_protection_used = True
        self._schedule_save()
        return True

    # ---- read accessors ----

    @property
    def state(self) -> EngagementState:
        """Live state object; treat as read-only."""
        return self._state

    @property
    def level(self) -> Level:
        return self._state.level

    def level_progress(self) -> float:
        return _level_progress(self._state.points, self._state.level)

    def points_to_next_level(self) -> int:
        return _points_to_next_level(self._state.points, self._state.level)

    def today_stats(self) -> DailyStat | None:
        return get_day(self._state.daily_stats, self._event_day(None))

    def weekly_stats(self) -> WeeklySummary:
        return weekly_summary(self._state.daily_stats, self._event_day(None))

    @property
    def pending_unlock(self) -> Achievement | None:
        return self._unlocks.pending

    def dismiss_unlock(self) -> None:
        self._unlocks.dismiss()

    @property
    def queued_unlocks(self) -> int:
        return len(self._unlocks)
