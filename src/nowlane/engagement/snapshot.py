# src/nowlane/engagement/snapshot.py

"""
Versioned JSON snapshot of EngagementState.

Decoding is field-by-field: a missing or malformed field falls back to its default
on its own, unknown keys are ignored, and achievements are merged by id onto the
current catalogue (so definitions added later show up locked).
"""

from __future__ import annotations

import json
import logging
import math
from datetime import date, datetime
from typing import Any

from .ledger import MAX_DAYS
from .models import Achievement, DailyStat, EngagementState
from .rules import default_achievements, level_for_points

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def encode_state(state: EngagementState) -> str:
    data: dict[str, Any] = {
        "version": SNAPSHOT_VERSION,
        "current_streak": state.current_streak,
        "longest_streak": state.longest_streak,
        "total_tasks_completed": state.total_tasks_completed,
        "total_subtasks_completed": state.total_subtasks_completed,
        "total_focus_minutes": state.total_focus_minutes,
        "points": state.points,
        "level": state.level.value,
        "last_active_date": state.last_active_date,
        "daily_stats": [
            {
                "date": s.date,
                "tasks_completed": s.tasks_completed,
                "subtasks_completed": s.subtasks_completed,
                "focus_minutes": s.focus_minutes,
                "now_cleared": s.now_cleared,
            }
            for s in state.daily_stats
        ],
        "achievements": [{"id": a.id, "unlocked_at": a.unlocked_at} for a in state.achievements],
        "streak_protection_used": state.streak_protection_used,
    }
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def _finite(raw: int | float) -> bool:
    """NaN, infinities and ints too large for a float are rejected."""
    try:
        return math.isfinite(raw)
    except OverflowError:
        return False


def _count(data: dict[str, Any], key: str) -> int:
    raw = data.get(key)
    if raw is None:
        return 0
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw < 0 or not _finite(raw):
        logger.warning("Snapshot field %s is malformed (%r); using default", key, raw)
        return 0
    return int(raw)


def _flag(data: dict[str, Any], key: str) -> bool:
    raw = data.get(key)
    if raw is None:
        return False
    if not isinstance(raw, bool):
        logger.warning("Snapshot field %s is malformed (%r); using default", key, raw)
        return False
    return raw


def _iso_date(raw: Any) -> str | None:
    if not isinstance(raw, str):
        return None
    try:
        return date.fromisoformat(raw[:10]).isoformat()
    except ValueError:
        return None


def _timestamp(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        if not _finite(raw):
            logger.warning("Snapshot unlock timestamp is malformed (%r); treating as locked", raw)
            return None
        return float(raw)
    if isinstance(raw, str):
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).timestamp()
        except ValueError:
            return None
    return None


def _daily_stats(data: dict[str, Any]) -> list[DailyStat]:
    raw = data.get("daily_stats")
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("Snapshot field daily_stats is malformed; using default")
        return []

    by_date: dict[str, DailyStat] = {}
    for item in raw:
        if not isinstance(item, dict):
            continue
        day = _iso_date(item.get("date"))
        if day is None:
            continue
        by_date[day] = DailyStat(
            date=day,
            tasks_completed=_count(item, "tasks_completed"),
            subtasks_completed=_count(item, "subtasks_completed"),
            focus_minutes=_count(item, "focus_minutes"),
            now_cleared=_flag(item, "now_cleared"),
        )

    stats = sorted(by_date.values(), key=lambda s: s.date)
    return stats[-MAX_DAYS:]


def _achievements(data: dict[str, Any]) -> list[Achievement]:
    catalogue = default_achievements()
    raw = data.get("achievements")
    if raw is None:
        return catalogue
    if not isinstance(raw, list):
        logger.warning("Snapshot field achievements is malformed; using default")
        return catalogue

    stored: dict[str, float] = {}
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("id"), str):
            continue
        ts = _timestamp(item.get("unlocked_at"))
        if ts is not None:
            stored[item["id"]] = ts

    for ach in catalogue:
        ach.unlocked_at = stored.get(ach.id)
    return catalogue


def decode_state(blob: str) -> EngagementState:
    """
    Parse a snapshot. Raises ValueError if the blob is not a JSON object at all.
    """
    data = json.loads(blob)
    if not isinstance(data, dict):
        raise ValueError("snapshot is not a JSON object")

    version = data.get("version")
    if isinstance(version, int) and version > SNAPSHOT_VERSION:
        logger.warning("Snapshot version %s is newer than %s; decoding best-effort", version, SNAPSHOT_VERSION)

    last_active = data.get("last_active_date")
    last_active_date = _iso_date(last_active)
    if last_active is not None and last_active_date is None:
        logger.warning("Snapshot field last_active_date is malformed (%r); using default", last_active)

    points = _count(data, "points")
    current_streak = _count(data, "current_streak")

    return EngagementState(
        current_streak=current_streak,
        longest_streak=max(_count(data, "longest_streak"), current_streak),
        total_tasks_completed=_count(data, "total_tasks_completed"),
        total_subtasks_completed=_count(data, "total_subtasks_completed"),
        total_focus_minutes=_count(data, "total_focus_minutes"),
        points=points,
        level=level_for_points(points),
        last_active_date=last_active_date,
        daily_stats=_daily_stats(data),
        achievements=_achievements(data),
        streak_protection_used=_flag(data, "streak_protection_used"),
    )
