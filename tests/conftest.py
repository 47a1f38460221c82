# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from nowlane.cli.bootstrap import create_initial_state
from nowlane.core.state import AppState
from nowlane.engagement.engine import EngagementEngine
from nowlane.tasks.task_models import LaneTimings

from .fakes import FakeClock, MemorySnapshotStorage


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="nowlane-test",
        log_level="DEBUG",
        console_enabled=False,
        scheduler_enabled=False,
        tick_interval_seconds=60.0,
        lane_timings=LaneTimings(),
        # Paths (tmp per test run)
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        engagement_db_path=tmp_path / "engagement.sqlite3",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def storage() -> MemorySnapshotStorage:
    return MemorySnapshotStorage()


@pytest.fixture()
def engine(storage: MemorySnapshotStorage, clock: FakeClock) -> EngagementEngine:
    """Engine with synchronous saves so assertions can read storage right away."""
    eng = EngagementEngine(storage, clock=clock, autosave=False)
    eng.load()
    return eng


@pytest.fixture()
def state(settings: SimpleNamespace) -> Iterator[AppState]:
    """
    AppState wired through the real composition root.

    NOTE: We keep real SQLite stores here (TaskStore/SnapshotStore) because
    their correctness is part of what we want to test.
    """
    st = create_initial_state(settings=settings, autosave=False)
    yield st
    st.engine.close()
