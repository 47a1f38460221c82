# src/nowlane/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Lane(StrEnum):
    """
    Urgency lanes, declared from least to most urgent.

    Notes:
    - rank follows declaration order (park=0 ... now=3)
    - the stored value is the lowercase name
    """

    PARK = "park"
    LATER = "later"
    SOON = "soon"
    NOW = "now"

    @property
    def rank(self) -> int:
        return _LANE_ORDER.index(self)

    @classmethod
    def parse(cls, raw: str | None) -> Lane:
        value = (raw or "").strip().lower()
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"unknown lane: {raw!r}") from None

    @classmethod
    def from_db(cls, raw: str | None) -> Lane:
        if not raw:
            return cls.LATER
        try:
            return cls(raw)
        except Exception:
            return cls.LATER


_LANE_ORDER: tuple[Lane, ...] = (Lane.PARK, Lane.LATER, Lane.SOON, Lane.NOW)


class ReminderType(StrEnum):
    SOFT = "soft"
    STRONG = "strong"
    PERSISTENT = "persistent"
    NONE = "none"

    @classmethod
    def from_db(cls, raw: str | None) -> ReminderType:
        if not raw:
            return cls.SOFT
        try:
            return cls(raw)
        except Exception:
            return cls.SOFT


@dataclass(slots=True)
class Subtask:
    id: int
    title: str
    completed: bool = False


@dataclass(slots=True)
class Task:
    id: int
    title: str
    lane: Lane
    created_at: float
    due_at: float | None

    notes: str | None = None
    completed_at: float | None = None
    assigned_to: str | None = None

    subtasks: list[Subtask] = field(default_factory=list)
    reminder_type: ReminderType = ReminderType.SOFT
    focus_minutes: int = 0
    is_overdue: bool = False

    @property
    def is_open(self) -> bool:
        return self.completed_at is None

    @property
    def progress(self) -> int:
        """Percentage of completed subtasks (0 when there are none)."""
        if not self.subtasks:
            return 0
        done = sum(1 for st in self.subtasks if st.completed)
        return round(done / len(self.subtasks) * 100)


@dataclass(slots=True)
class UnsortedTask:
    """Quick-dump inbox entry waiting to be sorted into a lane."""

    id: int
    title: str
    created_at: float = 0.0


_NOW_OPTIONS = ("same_day", "24_hours")
_SOON_OPTIONS = ("2_3_days", "end_of_week", "custom")
_LATER_OPTIONS = ("1_week", "2_weeks", "custom")
_PARK_OPTIONS = ("monthly", "quarterly", "manual")


@dataclass(frozen=True, slots=True)
class LaneTimings:
    """
    Per-lane horizon selection (user setting).

    Unknown values are normalized to the lane default by `normalized()`.
    """

    now: str = "same_day"
    soon: str = "2_3_days"
    later: str = "1_week"
    park: str = "monthly"

    def normalized(self) -> LaneTimings:
        return LaneTimings(
            now=self.now if self.now in _NOW_OPTIONS else "same_day",
            soon=self.soon if self.soon in _SOON_OPTIONS else "2_3_days",
            later=self.later if self.later in _LATER_OPTIONS else "1_week",
            park=self.park if self.park in _PARK_OPTIONS else "monthly",
        )
