# tests/test_logging_setup.py

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from nowlane.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.fixture()
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def test_console_filter_mutes_background_and_third_party() -> None:
    f = _ConsoleNoiseFilter()

    assert f.filter(_record("nowlane.cli.commands", logging.INFO))
    assert not f.filter(_record("nowlane.tasks.task_scheduler", logging.INFO))
    assert f.filter(_record("nowlane.tasks.task_scheduler", logging.WARNING))
    assert not f.filter(_record("nowlanex.other", logging.WARNING))
    assert not f.filter(_record("py.warnings", logging.WARNING))
    assert f.filter(_record("sqlite_helper", logging.ERROR))


def test_console_filter_without_quiet_loggers() -> None:
    f = _ConsoleNoiseFilter(())
    assert f.filter(_record("nowlane.tasks.task_scheduler", logging.INFO))


def test_setup_logging_writes_named_file(tmp_path: Path, restore_root_logging: None) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs", log_name="nowlane-test", interactive=False)

    logging.getLogger("nowlane.tasks.task_scheduler").debug("tick done")
    for h in logging.getLogger().handlers:
        h.flush()

    assert log_file == tmp_path / "logs" / "nowlane-test.log"
    assert "tick done" in log_file.read_text(encoding="utf-8")
