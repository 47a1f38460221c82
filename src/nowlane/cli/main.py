# src/nowlane/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the lane scheduler in a background thread (optional),
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.scheduler_runner import SchedulerBackgroundRunner, start_scheduler_in_background

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.engine.close()
    except Exception:
        logger.exception("Failed to flush engagement state.")

    # TaskStore uses short-lived sqlite connections per call; no explicit close required.


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/nowlane")
    setup_logging(
        log_dir=log_dir,
        log_name=getattr(settings, "app_name", "nowlane"),
        console_level=console_level,
        interactive=bool(getattr(settings, "console_enabled", True)),
    )

    logger.info("Starting %s...", getattr(settings, "app_name", "nowlane"))

    state = create_initial_state(settings=settings)

    scheduler_runner: SchedulerBackgroundRunner | None = None
    if settings.scheduler_enabled:
        scheduler_runner = start_scheduler_in_background(state)

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except Exception:
        # Some platforms may not support SIGTERM, etc.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running the scheduler only. Press Ctrl+C to stop.")
            stop_main.wait()

    finally:
        if scheduler_runner is not None:
            scheduler_runner.stop()
            scheduler_runner.join(timeout=10.0)

        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
