# src/nowlane/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from .tasks.task_models import LaneTimings

ENV_PREFIX = "NOWLANE"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Host switches ----
    console_enabled: bool
    scheduler_enabled: bool
    tick_interval_seconds: float

    # ---- Lane horizons ----
    lane_timings: LaneTimings

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    engagement_db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "nowlane").strip() or "nowlane"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        scheduler_enabled = _env_bool(_k("SCHEDULER_ENABLED"), True)
        tick_interval_seconds = max(1.0, _env_float(_k("TICK_INTERVAL_SECONDS"), 60.0))

        lane_timings = LaneTimings(
            now=_env(_k("LANE_NOW"), "same_day").strip().lower(),
            soon=_env(_k("LANE_SOON"), "2_3_days").strip().lower(),
            later=_env(_k("LANE_LATER"), "1_week").strip().lower(),
            park=_env(_k("LANE_PARK"), "monthly").strip().lower(),
        ).normalized()

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/nowlane"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        engagement_db_path = _env_path(_k("ENGAGEMENT_DB_PATH"), data_dir / "engagement.sqlite3")

        settings = Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            scheduler_enabled=scheduler_enabled,
            tick_interval_seconds=tick_interval_seconds,
            lane_timings=lane_timings,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            engagement_db_path=engagement_db_path,
        )
        return _apply_local_overrides(settings)


def _apply_local_overrides(settings: Settings) -> Settings:
    # Optional local overrides (never committed). Prefer .env; keep it explicit.
    try:
        import config_local as _config_local  # type: ignore
    except ImportError:
        return settings

    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(settings, "console_enabled", bool(_config_local.CONSOLE_ENABLED))
    if hasattr(_config_local, "SCHEDULER_ENABLED"):
        object.__setattr__(settings, "scheduler_enabled", bool(_config_local.SCHEDULER_ENABLED))
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
