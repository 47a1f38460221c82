"""
Engagement subsystem.

Components:
- models.py: state dataclasses (EngagementState, DailyStat, Achievement, Level)
- rules.py: point awards, level ladder, achievement catalogue
- streak.py: day-granularity streak transitions
- ledger.py: rolling 30-day daily ledger + weekly summary
- achievements.py: unlock detection + one-at-a-time unlock queue
- snapshot.py / snapshot_store.py: versioned snapshot codec + SQLite slot
- engine.py: EngagementEngine (the public entry point)
"""
