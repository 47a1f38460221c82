# tests/test_snapshot.py

from __future__ import annotations

import json

import pytest

from nowlane.engagement.models import DailyStat, EngagementState, Level
from nowlane.engagement.rules import default_achievements
from nowlane.engagement.snapshot import SNAPSHOT_VERSION, decode_state, encode_state
from nowlane.engagement.snapshot_store import SnapshotStore


def test_encode_writes_version_and_all_fields() -> None:
    state = EngagementState(points=120, level=Level.FOCUSED, achievements=default_achievements())
    data = json.loads(encode_state(state))

    assert data["version"] == SNAPSHOT_VERSION
    assert data["points"] == 120
    assert data["level"] == "focused"
    assert len(data["achievements"]) == 12


def test_decode_restores_unlocks_and_ledger() -> None:
    state = EngagementState(
        current_streak=4,
        longest_streak=6,
        total_tasks_completed=11,
        points=260,
        level=Level.FOCUSED,
        last_active_date="2024-03-09",
        daily_stats=[DailyStat(date="2024-03-09", tasks_completed=2, now_cleared=True)],
        achievements=default_achievements(),
        streak_protection_used=True,
    )
    state.achievements[0].unlocked_at = 1_700_000_000.5

    restored = decode_state(encode_state(state))

    assert restored.current_streak == 4
    assert restored.longest_streak == 6
    assert restored.last_active_date == "2024-03-09"
    assert restored.daily_stats == state.daily_stats
    assert restored.achievements[0].unlocked_at == 1_700_000_000.5
    assert restored.streak_protection_used is True


def test_missing_achievements_get_full_catalogue() -> None:
    blob = json.dumps({"version": 1, "points": 5, "achievements": [{"id": "first_task", "unlocked_at": 10}]})
    state = decode_state(blob)

    assert [a.id for a in state.achievements] == [a.id for a in default_achievements()]
    unlocked = [a.id for a in state.achievements if a.unlocked]
    assert unlocked == ["first_task"]


def test_unknown_achievement_ids_are_dropped() -> None:
    blob = json.dumps({"achievements": [{"id": "retired_badge", "unlocked_at": 10}]})
    state = decode_state(blob)
    assert all(not a.unlocked for a in state.achievements)


def test_iso_unlock_timestamps_are_accepted() -> None:
    blob = json.dumps({"achievements": [{"id": "streak_3", "unlocked_at": "2024-03-01T10:00:00Z"}]})
    state = decode_state(blob)
    streak_3 = next(a for a in state.achievements if a.id == "streak_3")
    assert streak_3.unlocked_at == pytest.approx(1709287200.0)


def test_malformed_field_falls_back_alone() -> None:
    blob = json.dumps(
        {
            "points": "lots",
            "current_streak": 3,
            "last_active_date": "yesterday",
            "daily_stats": {"not": "a list"},
            "streak_protection_used": "yes",
        }
    )
    state = decode_state(blob)

    assert state.points == 0
    assert state.current_streak == 3
    assert state.longest_streak == 3
    assert state.last_active_date is None
    assert state.daily_stats == []
    assert state.streak_protection_used is False


def test_non_finite_numbers_fall_back_alone() -> None:
    blob = (
        '{"version":1,"points":250,"current_streak":Infinity,"total_focus_minutes":NaN,'
        '"longest_streak":1' + "0" * 400 + ","
        '"achievements":[{"id":"first_task","unlocked_at":NaN},{"id":"streak_3","unlocked_at":12.5}]}'
    )
    state = decode_state(blob)

    assert state.points == 250
    assert state.current_streak == 0
    assert state.total_focus_minutes == 0
    assert state.longest_streak == 0
    unlocked = {a.id: a.unlocked_at for a in state.achievements if a.unlocked}
    assert unlocked == {"streak_3": 12.5}


def test_level_is_recomputed_from_points() -> None:
    state = decode_state(json.dumps({"points": 600, "level": "starter"}))
    assert state.level == Level.PRODUCTIVE


def test_daily_stats_are_deduplicated_and_capped() -> None:
    rows = [{"date": f"2024-01-{d:02d}", "tasks_completed": 1} for d in range(31, 0, -1)]
    rows += [{"date": "2024-02-01", "tasks_completed": 1}, {"date": "2024-02-01", "tasks_completed": 7}]
    state = decode_state(json.dumps({"daily_stats": rows}))

    dates = [s.date for s in state.daily_stats]
    assert len(dates) == 30
    assert dates == sorted(dates)
    assert dates[0] == "2024-01-03"
    assert state.daily_stats[-1].tasks_completed == 7


def test_non_object_snapshot_raises() -> None:
    with pytest.raises(ValueError):
        decode_state("[]")


def test_snapshot_store_upserts(tmp_path) -> None:
    store = SnapshotStore(tmp_path / "engagement.sqlite3")
    assert store.load_snapshot() is None

    store.save_snapshot('{"points": 1}')
    store.save_snapshot('{"points": 2}')

    assert store.load_snapshot() == '{"points": 2}'
    # A fresh instance sees the persisted row.
    assert SnapshotStore(tmp_path / "engagement.sqlite3").load_snapshot() == '{"points": 2}'
