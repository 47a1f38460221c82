# src/nowlane/engagement/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Level(StrEnum):
    """Level ladder, declared from lowest to highest."""

    STARTER = "starter"
    FOCUSED = "focused"
    PRODUCTIVE = "productive"
    UNSTOPPABLE = "unstoppable"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return list(Level).index(self)


@dataclass(slots=True)
class DailyStat:
    date: str  # ISO calendar date, unique within the ledger
    tasks_completed: int = 0
    subtasks_completed: int = 0
    focus_minutes: int = 0
    now_cleared: bool = False


@dataclass(slots=True)
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    unlocked_at: float | None = None

    @property
    def unlocked(self) -> bool:
        return self.unlocked_at is not None


@dataclass(slots=True)
class EngagementState:
    current_streak: int = 0
    longest_streak: int = 0
    total_tasks_completed: int = 0
    total_subtasks_completed: int = 0
    total_focus_minutes: int = 0
    points: int = 0
    level: Level = Level.STARTER
    last_active_date: str | None = None
    daily_stats: list[DailyStat] = field(default_factory=list)
    achievements: list[Achievement] = field(default_factory=list)
    streak_protection_used: bool = False


@dataclass(slots=True, frozen=True)
class WeeklySummary:
    tasks_completed: int
    focus_minutes: int
    days_active: int
