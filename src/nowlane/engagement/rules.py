# src/nowlane/engagement/rules.py

"""
Static engagement tables: point awards, level ladder, achievement catalogue.

None of these are user-configurable.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .models import Achievement, EngagementState, Level


class Points:
    TASK_COMPLETE = 10
    TASK_WITH_SUBTASKS_COMPLETE = 25
    SUBTASK_COMPLETE = 5
    FOCUS_SESSION_COMPLETE = 15
    NOW_CLEARED = 50
    STREAK_DAY = 20


LEVEL_THRESHOLDS: dict[Level, int] = {
    Level.STARTER: 0,
    Level.FOCUSED: 100,
    Level.PRODUCTIVE: 500,
    Level.UNSTOPPABLE: 1500,
    Level.LEGENDARY: 5000,
}

LEVEL_ORDER: tuple[Level, ...] = tuple(Level)


def level_for_points(points: int) -> Level:
    current = Level.STARTER
    for level in LEVEL_ORDER:
        if points >= LEVEL_THRESHOLDS[level]:
            current = level
    return current


def _next_level(level: Level) -> Level | None:
    idx = LEVEL_ORDER.index(level)
    if idx == len(LEVEL_ORDER) - 1:
        return None
    return LEVEL_ORDER[idx + 1]


def level_progress(points: int, level: Level) -> float:
    """Percent (0-100) of the way from the current level to the next one."""
    nxt = _next_level(level)
    if nxt is None:
        return 100.0
    current_threshold = LEVEL_THRESHOLDS[level]
    next_threshold = LEVEL_THRESHOLDS[nxt]
    progress = (points - current_threshold) / (next_threshold - current_threshold) * 100
    return float(min(max(progress, 0.0), 100.0))


def points_to_next_level(points: int, level: Level) -> int:
    nxt = _next_level(level)
    if nxt is None:
        return 0
    return max(LEVEL_THRESHOLDS[nxt] - points, 0)


@dataclass(frozen=True, slots=True)
class AchievementRule:
    id: str
    title: str
    description: str
    icon: str
    predicate: Callable[[EngagementState], bool]

    def definition(self) -> Achievement:
        return Achievement(id=self.id, title=self.title, description=self.description, icon=self.icon)


def _tasks_at_least(n: int) -> Callable[[EngagementState], bool]:
    return lambda s: s.total_tasks_completed >= n


def _streak_at_least(n: int) -> Callable[[EngagementState], bool]:
    return lambda s: s.current_streak >= n


def _focus_at_least(minutes: int) -> Callable[[EngagementState], bool]:
    return lambda s: s.total_focus_minutes >= minutes


def _level_at_least(level: Level) -> Callable[[EngagementState], bool]:
    return lambda s: s.level.rank >= level.rank


ACHIEVEMENT_RULES: tuple[AchievementRule, ...] = (
    AchievementRule("first_task", "First Step", "Complete your first task", "award", _tasks_at_least(1)),
    AchievementRule("streak_3", "On a Roll", "Maintain a 3-day streak", "zap", _streak_at_least(3)),
    AchievementRule("streak_7", "Week Warrior", "Maintain a 7-day streak", "star", _streak_at_least(7)),
    AchievementRule("streak_30", "Month Master", "Maintain a 30-day streak", "award", _streak_at_least(30)),
    AchievementRule("focus_60", "Deep Work", "Accumulate 60 focus minutes", "target", _focus_at_least(60)),
    AchievementRule("focus_300", "Flow State", "Accumulate 300 focus minutes", "sun", _focus_at_least(300)),
    AchievementRule("tasks_10", "Getting Things Done", "Complete 10 tasks", "check-circle", _tasks_at_least(10)),
    AchievementRule("tasks_50", "Productivity Pro", "Complete 50 tasks", "trending-up", _tasks_at_least(50)),
    AchievementRule("tasks_100", "Century Club", "Complete 100 tasks", "gift", _tasks_at_least(100)),
    AchievementRule(
        "level_focused", "Focused Achiever", "Reach Focused level", "eye", _level_at_least(Level.FOCUSED)
    ),
    AchievementRule(
        "level_productive",
        "Productivity Master",
        "Reach Productive level",
        "bar-chart-2",
        _level_at_least(Level.PRODUCTIVE),
    ),
    AchievementRule(
        "level_unstoppable",
        "Unstoppable Force",
        "Reach Unstoppable level",
        "shield",
        _level_at_least(Level.UNSTOPPABLE),
    ),
)

# Unlocks from a single event are queued in this order. Tests rely on it.
ACHIEVEMENT_EVALUATION_ORDER: tuple[str, ...] = tuple(r.id for r in ACHIEVEMENT_RULES)

RULES_BY_ID: dict[str, AchievementRule] = {r.id: r for r in ACHIEVEMENT_RULES}


def default_achievements() -> list[Achievement]:
    return [RULES_BY_ID[aid].definition() for aid in ACHIEVEMENT_EVALUATION_ORDER]
