# src/nowlane/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (task store, engine, scheduler).
"""

from __future__ import annotations

import logging
import threading

from ..config import get_settings
from ..core.ports import Clock
from ..core.state import AppState
from ..engagement.engine import EngagementEngine
from ..engagement.snapshot_store import SnapshotStore
from ..tasks.task_models import LaneTimings
from ..tasks.task_scheduler import BucketScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.engagement_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock | None = None, autosave: bool = True) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    lock = threading.RLock()
    task_store = TaskStore(settings.tasks_db_path)

    engine = EngagementEngine(SnapshotStore(settings.engagement_db_path), clock=clock, autosave=autosave)
    engine.load()

    def timings() -> LaneTimings:
        raw = getattr(settings, "lane_timings", None)
        return raw if isinstance(raw, LaneTimings) else LaneTimings()

    scheduler = BucketScheduler(task_store, timings, lock=lock)

    return AppState(
        settings=settings,
        task_store=task_store,
        engine=engine,
        scheduler=scheduler,
        lock=lock,
    )
