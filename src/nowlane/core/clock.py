# src/nowlane/core/clock.py

from __future__ import annotations

from datetime import datetime


class SystemClock:
    """Wall clock in the machine's local timezone."""

    def now(self) -> datetime:
        return datetime.now().astimezone()
