# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "NOWLANE_APP_NAME": "App display name (default: nowlane).",
    "NOWLANE_LOG_LEVEL": "Console logging level (default: INFO).",
    # Host switches
    "NOWLANE_CONSOLE_ENABLED": "Run the console REPL (true/false, default: true).",
    "NOWLANE_SCHEDULER_ENABLED": "Run the lane scheduler thread (true/false, default: true).",
    "NOWLANE_TICK_INTERVAL_SECONDS": "Max seconds between scheduler ticks (default: 60).",
    # Lane horizons
    "NOWLANE_LANE_NOW": "same_day | 24_hours (both: end of today).",
    "NOWLANE_LANE_SOON": "2_3_days (3 days) | end_of_week | custom (7 days).",
    "NOWLANE_LANE_LATER": "1_week (7 days) | 2_weeks | custom (14 days).",
    "NOWLANE_LANE_PARK": "monthly | quarterly | manual (30-day review).",
    # Paths (gitignored)
    "NOWLANE_DATA_DIR": "Local data directory (default: .local/nowlane).",
    "NOWLANE_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    "NOWLANE_ENGAGEMENT_DB_PATH": (
        "Engagement snapshot SQLite path (default: <data_dir>/engagement.sqlite3)."
    ),
}
