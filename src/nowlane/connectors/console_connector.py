# src/nowlane/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..cli.commands import format_unlock
from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except Exception:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def handle_line(state: AppState, line: str) -> str | None:
    """
    One console line -> reply text.

    Commands go through the registry; anything else is dropped into the inbox.
    After each line the pending achievement (if any) is announced and dismissed;
    the rest stay queued for later lines or /unlock.
    """
    with state.lock:
        reply = command_registry.handle(state, line, emit=_print_ts)
        if reply is None:
            uid = state.task_store.add_unsorted_task(line)
            reply = f"Added to inbox as #{uid}. Use /sort {uid} <lane>." if uid is not None else None

        notes: list[str] = []
        pending = state.engine.pending_unlock
        if pending is not None:
            state.engine.dismiss_unlock()
            notes.append(format_unlock(pending))
            more = state.engine.queued_unlocks
            if more:
                notes.append(f"({more} more, use /unlock)")

    parts = [p for p in [reply, *notes] if p]
    return "\n".join(parts) if parts else None


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type a task to drop it in the inbox. Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            user_input = input(">>> ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            out = handle_line(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            out = "Internal error while handling a command."

        if out:
            _print_ts(out)

    logger.info("Console connector finished.")
