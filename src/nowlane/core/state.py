# src/nowlane/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..engagement.engine import EngagementEngine
from ..tasks.task_models import LaneTimings
from ..tasks.task_scheduler import BucketScheduler
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    """
    Explicit context object passed to commands and host helpers.

    `lock` serializes every task-store/engine call between the console thread and
    the scheduler thread.
    """

    settings: Any
    task_store: TaskStore
    engine: EngagementEngine
    scheduler: BucketScheduler

    lock: threading.RLock = field(default_factory=threading.RLock)

    def lane_timings(self) -> LaneTimings:
        timings = getattr(self.settings, "lane_timings", None)
        return timings if isinstance(timings, LaneTimings) else LaneTimings()
