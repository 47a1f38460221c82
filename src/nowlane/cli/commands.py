# src/nowlane/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..engagement.models import Achievement
from ..tasks import task_api
from ..tasks.task_models import Lane, Task

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(ts: float | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M")


def _parse_id(raw: str) -> int | None:
    try:
        return int(raw.lstrip("#"))
    except ValueError:
        return None


def _parse_lane(raw: str) -> Lane | None:
    try:
        return Lane.parse(raw)
    except ValueError:
        return None


def format_task(task: Task) -> str:
    flags = " [overdue]" if task.is_overdue else ""
    subs = ""
    if task.subtasks:
        done = sum(1 for st in task.subtasks if st.completed)
        subs = f" ({done}/{len(task.subtasks)} subtasks)"
    return f"#{task.id} {task.title}{subs} due {_fmt_ts(task.due_at)}{flags}"


def format_unlock(ach: Achievement) -> str:
    return f"Achievement unlocked: {ach.title} - {ach.description}"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    t = state.lane_timings()
    interval = getattr(state.settings, "tick_interval_seconds", 60.0)
    return (
        "Status:\n"
        f"  Open tasks: {len(state.task_store.list_open_tasks())}\n"
        f"  Inbox: {len(state.task_store.list_unsorted_tasks())}\n"
        f"  Lane timings: now={t.now} soon={t.soon} later={t.later} park={t.park}\n"
        f"  Scheduler tick: every {interval:g}s"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """/add <lane> <title...>"""
    if len(args) < 2:
        return "Usage: /add <now|soon|later|park> <title>"
    lane = _parse_lane(args[0])
    if lane is None:
        return f"Unknown lane: {args[0]}. Use now, soon, later or park."
    title = " ".join(args[1:])
    try:
        task_id = task_api.create_task(state, title, lane)
    except ValueError as e:
        return f"Cannot add task: {e}"
    return f"Added #{task_id} to {lane.value}."


def cmd_dump(state: AppState, args: list[str]) -> str:
    """/dump first thing; second thing; ..."""
    titles = " ".join(args).split(";")
    ids = state.task_store.add_unsorted_tasks(titles)
    if not ids:
        return "Usage: /dump <title>; <title>; ..."
    return f"Added {len(ids)} item(s) to the inbox."


def cmd_inbox(state: AppState, args: list[str]) -> str:
    items = state.task_store.list_unsorted_tasks()
    if not items:
        return "Inbox is empty."
    lines = ["Inbox:"]
    for it in items:
        lines.append(f"  #{it.id} {it.title}")
    return "\n".join(lines)


def cmd_sort(state: AppState, args: list[str]) -> str:
    """/sort <inbox_id> <lane>"""
    if len(args) != 2:
        return "Usage: /sort <inbox_id> <lane>"
    uid = _parse_id(args[0])
    lane = _parse_lane(args[1])
    if uid is None or lane is None:
        return "Usage: /sort <inbox_id> <now|soon|later|park>"
    task_id = task_api.sort_unsorted_task(state, uid, lane)
    if task_id is None:
        return f"No inbox item #{uid}."
    return f"Inbox item #{uid} is now task #{task_id} in {lane.value}."


def cmd_lanes(state: AppState, args: list[str]) -> str:
    """/lanes [lane]"""
    if args:
        lane = _parse_lane(args[0])
        if lane is None:
            return f"Unknown lane: {args[0]}."
        lanes = [lane]
    else:
        lanes = sorted(Lane, key=lambda ln: ln.rank, reverse=True)

    lines: list[str] = []
    for lane in lanes:
        tasks = state.task_store.list_tasks_by_lane(lane)
        lines.append(f"{lane.value.upper()} ({len(tasks)})")
        for task in tasks:
            lines.append(f"  {format_task(task)}")
    return "\n".join(lines)


def cmd_move(state: AppState, args: list[str]) -> str:
    """/move <task_id> <lane>"""
    if len(args) != 2:
        return "Usage: /move <task_id> <lane>"
    task_id = _parse_id(args[0])
    lane = _parse_lane(args[1])
    if task_id is None or lane is None:
        return "Usage: /move <task_id> <now|soon|later|park>"
    if not task_api.move_task(state, task_id, lane):
        return f"No task #{task_id}."
    return f"Moved #{task_id} to {lane.value}."


def cmd_done(state: AppState, args: list[str]) -> str:
    """/done <task_id>"""
    task_id = _parse_id(args[0]) if args else None
    if task_id is None:
        return "Usage: /done <task_id>"
    task = task_api.complete_task(state, task_id)
    if task is None:
        return f"No open task #{task_id}."
    e = state.engine.state
    return f"Done: {task.title}. Points: {e.points} (streak {e.current_streak})."


def cmd_sub(state: AppState, args: list[str]) -> str:
    """
    /sub add <task_id> <title>
    /sub done <task_id> <subtask_id>
    /sub rm <task_id> <subtask_id>
    """
    usage = "Usage: /sub add <task_id> <title> | /sub done <task_id> <subtask_id> | /sub rm <task_id> <subtask_id>"
    if len(args) < 3:
        return usage

    sub = args[0].lower()
    task_id = _parse_id(args[1])
    if task_id is None or state.task_store.get_task(task_id) is None:
        return f"No task {args[1]}."

    if sub == "add":
        sid = state.task_store.add_subtask(task_id, " ".join(args[2:]))
        return f"Added subtask #{sid} to #{task_id}." if sid is not None else usage

    subtask_id = _parse_id(args[2])
    if subtask_id is None:
        return usage

    if sub == "done":
        flag = task_api.toggle_subtask(state, task_id, subtask_id)
        if flag is None:
            return f"No subtask #{subtask_id} on #{task_id}."
        return f"Subtask #{subtask_id} {'done' if flag else 'reopened'}."

    if sub in ("rm", "del"):
        state.task_store.delete_subtask(task_id, subtask_id)
        return f"Removed subtask #{subtask_id}."

    return usage


def cmd_focus(state: AppState, args: list[str]) -> str:
    """/focus <task_id|-> <minutes>"""
    if len(args) != 2:
        return "Usage: /focus <task_id|-> <minutes>"
    task_id = None if args[0] == "-" else _parse_id(args[0])
    if args[0] != "-" and (task_id is None or state.task_store.get_task(task_id) is None):
        return f"No task {args[0]}."
    try:
        minutes = int(args[1])
    except ValueError:
        return "Minutes must be a whole number."
    if minutes <= 0:
        return "Minutes must be positive."
    task_api.finish_focus_session(state, task_id, minutes)
    return f"Focus session recorded: {minutes} min."


def cmd_stats(state: AppState, args: list[str]) -> str:
    engine = state.engine
    s = engine.state
    today = engine.today_stats()
    week = engine.weekly_stats()
    lines = [
        "Stats:",
        f"  Level: {s.level.value} ({engine.level_progress():.0f}%, {engine.points_to_next_level()} to next)",
        f"  Points: {s.points}",
        f"  Streak: {s.current_streak} (longest {s.longest_streak})"
        + (" [protection used]" if s.streak_protection_used else ""),
        f"  Lifetime: {s.total_tasks_completed} tasks, {s.total_subtasks_completed} subtasks, "
        f"{s.total_focus_minutes} focus min",
    ]
    if today is not None:
        lines.append(
            f"  Today: {today.tasks_completed} tasks, {today.subtasks_completed} subtasks, "
            f"{today.focus_minutes} focus min" + (", now cleared" if today.now_cleared else "")
        )
    lines.append(
        f"  This week: {week.tasks_completed} tasks, {week.focus_minutes} focus min, {week.days_active} active days"
    )
    return "\n".join(lines)


def cmd_achievements(state: AppState, args: list[str]) -> str:
    lines = ["Achievements:"]
    for a in state.engine.state.achievements:
        mark = "x" if a.unlocked else " "
        when = f" ({_fmt_ts(a.unlocked_at)})" if a.unlocked else ""
        lines.append(f"  [{mark}] {a.title} - {a.description}{when}")
    return "\n".join(lines)


def cmd_unlock(state: AppState, args: list[str]) -> str:
    """Show the pending unlock and dismiss it."""
    pending = state.engine.pending_unlock
    if pending is None:
        return "No new achievements."
    state.engine.dismiss_unlock()
    return format_unlock(pending)


def cmd_protect(state: AppState, args: list[str]) -> str:
    if state.engine.use_streak_protection():
        return "Streak protection used."
    return "Streak protection is already used."


def cmd_tick(state: AppState, args: list[str]) -> str:
    changes = state.scheduler.tick()
    if not changes:
        return "Nothing to promote."
    lines = ["Scheduler:"]
    for ch in changes:
        if ch.marked_overdue:
            lines.append(f"  #{ch.task_id} overdue in now")
        else:
            lines.append(f"  #{ch.task_id} {ch.from_lane.value} -> {ch.to_lane.value}")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show settings and counts.")
registry.register("add", cmd_add, help_text="Add a task: /add <lane> <title>.")
registry.register("dump", cmd_dump, help_text="Quick-dump to the inbox: /dump a; b; c.")
registry.register("inbox", cmd_inbox, help_text="List unsorted inbox items.")
registry.register("sort", cmd_sort, help_text="Sort an inbox item: /sort <id> <lane>.")
registry.register("lanes", cmd_lanes, help_text="List open tasks: /lanes [lane].", aliases=["ls"])
registry.register("move", cmd_move, help_text="Move a task: /move <id> <lane>.")
registry.register("done", cmd_done, help_text="Complete a task: /done <id>.")
registry.register("sub", cmd_sub, help_text="Subtasks: /sub add|done|rm ...")
registry.register("focus", cmd_focus, help_text="Record a focus session: /focus <id|-> <minutes>.")
registry.register("stats", cmd_stats, help_text="Show streak, points, level and weekly summary.")
registry.register("achievements", cmd_achievements, help_text="List achievements.")
registry.register("unlock", cmd_unlock, help_text="Show and dismiss the next achievement unlock.")
registry.register("protect", cmd_protect, help_text="Use the streak protection.")
registry.register("tick", cmd_tick, help_text="Run the lane scheduler now.")
