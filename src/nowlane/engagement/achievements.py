# src/nowlane/engagement/achievements.py

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable

from .models import Achievement, EngagementState
from .rules import ACHIEVEMENT_EVALUATION_ORDER, RULES_BY_ID

logger = logging.getLogger(__name__)


def detect_unlocks(state: EngagementState, now_ts: float) -> list[Achievement]:
    """
    Stamp every satisfied, still-locked achievement with now_ts (mutates state).

    Returned in ACHIEVEMENT_EVALUATION_ORDER. Unlocks are never overwritten.
    """
    by_id = {a.id: a for a in state.achievements}
    unlocked: list[Achievement] = []

    for aid in ACHIEVEMENT_EVALUATION_ORDER:
        ach = by_id.get(aid)
        if ach is None or ach.unlocked_at is not None:
            continue
        if RULES_BY_ID[aid].predicate(state):
            ach.unlocked_at = float(now_ts)
            unlocked.append(ach)
            logger.info("Achievement unlocked: %s", aid)

    return unlocked


class UnlockQueue:
    """
    Unlocks waiting to be shown, surfaced one at a time.

    `pending` holds the one being displayed; it is refilled from the queue head
    only once dismissed.
    """

    def __init__(self) -> None:
        self._queue: deque[Achievement] = deque()
        self._pending: Achievement | None = None

    def push_many(self, achievements: Iterable[Achievement]) -> None:
        self._queue.extend(achievements)

    @property
    def pending(self) -> Achievement | None:
        if self._pending is None and self._queue:
            self._pending = self._queue.popleft()
        return self._pending

    def dismiss(self) -> None:
        self._pending = None

    def __len__(self) -> int:
        return len(self._queue) + (1 if self._pending is not None else 0)
