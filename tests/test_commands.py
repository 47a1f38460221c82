# tests/test_commands.py

from __future__ import annotations

from nowlane.cli.commands import CommandRegistry, registry
from nowlane.connectors.console_connector import handle_line
from nowlane.tasks import task_api
from nowlane.tasks.task_models import Lane


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2:" + ",".join(args)

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a", aliases=["alpha"])
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x y") == "h2:x,y"
    assert reg.handle(state, "/ALPHA") == "h2:"
    assert reg.handle(state, "/b", emit=notes.append) == "h3"
    assert called == {"h2": 2, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_help_lists_registered_commands(state) -> None:
    text = registry.handle(state, "/help") or ""
    for name in ("/add", "/done", "/stats", "/tick"):
        assert name in text


def test_add_list_and_done_flow(state) -> None:
    assert registry.handle(state, "/add now Call the bank") == "Added #1 to now."
    assert "Unknown lane" in (registry.handle(state, "/add someday x") or "")

    listing = registry.handle(state, "/lanes now") or ""
    assert "#1 Call the bank" in listing

    reply = registry.handle(state, "/done 1") or ""
    assert reply.startswith("Done: Call the bank.")
    assert "No open task #1" in (registry.handle(state, "/done 1") or "")


def test_dump_and_sort(state) -> None:
    assert registry.handle(state, "/dump milk; eggs ;") == "Added 2 item(s) to the inbox."
    inbox = registry.handle(state, "/inbox") or ""
    assert "#1 milk" in inbox and "#2 eggs" in inbox

    assert "now task #1 in soon" in (registry.handle(state, "/sort 1 soon") or "")
    assert [t.title for t in state.task_store.list_tasks_by_lane(Lane.SOON)] == ["milk"]
    assert "No inbox item #1" in (registry.handle(state, "/sort 1 soon") or "")


def test_sub_and_focus(state) -> None:
    registry.handle(state, "/add later Taxes")
    assert registry.handle(state, "/sub add 1 find receipts") == "Added subtask #1 to #1."
    assert registry.handle(state, "/sub done 1 1") == "Subtask #1 done."
    assert registry.handle(state, "/focus 1 25") == "Focus session recorded: 25 min."
    assert registry.handle(state, "/focus - 0") == "Minutes must be positive."
    assert registry.handle(state, "/focus 42 10") == "No task 42."

    stats = registry.handle(state, "/stats") or ""
    assert "1 subtasks" in stats
    assert "25 focus min" in stats


def test_protect_only_once(state) -> None:
    assert registry.handle(state, "/protect") == "Streak protection used."
    assert registry.handle(state, "/protect") == "Streak protection is already used."


def test_tick_reports_nothing_for_fresh_tasks(state) -> None:
    registry.handle(state, "/add soon Fresh")
    assert registry.handle(state, "/tick") == "Nothing to promote."


def test_console_line_goes_to_inbox(state) -> None:
    reply = handle_line(state, "water the plants") or ""
    assert "Added to inbox as #1" in reply
    assert [u.title for u in state.task_store.list_unsorted_tasks()] == ["water the plants"]


def test_console_announces_one_unlock_per_line(state) -> None:
    ids = [task_api.create_task(state, f"t{i}", Lane.LATER) for i in range(10)]
    for tid in ids:
        task_api.complete_task(state, tid)
    assert state.engine.queued_unlocks == 3

    first = handle_line(state, "/status") or ""
    assert "Achievement unlocked: First Step" in first
    assert "(2 more, use /unlock)" in first

    assert "Getting Things Done" in (registry.handle(state, "/unlock") or "")

    last = handle_line(state, "/status") or ""
    assert "Focused Achiever" in last
    assert "more, use /unlock" not in last
    assert registry.handle(state, "/unlock") == "No new achievements."
