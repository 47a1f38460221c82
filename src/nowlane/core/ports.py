# src/nowlane/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The scheduler and the engagement engine depend on Protocols instead of concrete
implementations. This keeps storage swappable and makes testing easier.
"""

from datetime import datetime
from typing import Any, Protocol


class Clock(Protocol):
    """Source of "now" (timezone-aware, local)."""

    def now(self) -> datetime: ...


class SnapshotStorage(Protocol):
    """
    Durable key-value slot for the engagement snapshot.

    The engine alone defines the blob's shape; storage treats it as opaque text.
    """

    def load_snapshot(self) -> str | None: ...
    def save_snapshot(self, blob: str) -> None: ...


class TaskRepo(Protocol):
    # Scheduler API
    def list_open_tasks(self) -> list[Any]: ...
    def update_task_fields(
            self,
            task_id: int,
            *,
            lane: Any | None = None,  # Lane (kept as Any to avoid import coupling)
            due_at: float | None = None,
            is_overdue: bool | None = None,
    ) -> None: ...
