# src/nowlane/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

APP_LOGGER = "nowlane"

# Loggers that write from the scheduler thread or the snapshot worker.
BACKGROUND_LOGGERS: tuple[str, ...] = (
    "nowlane.tasks.task_scheduler",
    "nowlane.tasks.scheduler_runner",
    "nowlane.engagement.snapshot_store",
)


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console filter for the interactive REPL:
    - nowlane logs pass
    - background-thread loggers only at WARNING+ (their INFO lines would land in the middle of the prompt)
    - everything else (third-party, 'py.warnings') only at ERROR+
    """

    def __init__(self, quiet: Iterable[str] = BACKGROUND_LOGGERS) -> None:
        super().__init__()
        self._quiet = tuple(quiet)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name != APP_LOGGER and not name.startswith(APP_LOGGER + "."):
            return record.levelno >= logging.ERROR
        if self._quiet and name.startswith(self._quiet):
            return record.levelno >= logging.WARNING
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/nowlane",
    log_name: str = "nowlane",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    interactive: bool = True,
) -> Path:
    """
    Install a filtered stderr handler and a full file handler on the root logger.

    With interactive=False (no REPL, scheduler only) background loggers are not
    muted on stderr. Returns the log file path. Call once, before the first log line.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{log_name or 'nowlane'}.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter(BACKGROUND_LOGGERS if interactive else ()))
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
