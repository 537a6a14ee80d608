from __future__ import annotations

import io
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
from rich.console import Console

from agro_dashboard import logging_conf
from agro_dashboard.logging_conf import (
    LOGGER_NAME,
    MAX_LOG_BYTES,
    available_logs,
    configure_logging,
    default_log_dir,
    tail_log,
)
from agro_dashboard.ui import ProgressActivity


def test_progress_activity_is_silent_off_terminal() -> None:
    buffer = io.StringIO()
    activity = ProgressActivity(console=Console(file=buffer, force_terminal=False))
    assert activity.enabled is False
    with activity:
        activity.start("Scraping…")
        activity.update("still scraping")
    assert buffer.getvalue() == ""


def test_progress_activity_runs_spinner_on_terminal() -> None:
    buffer = io.StringIO()
    activity = ProgressActivity(console=Console(file=buffer, force_terminal=True))
    activity.start("Scraping…")
    activity.update("page 2")
    activity.close()
    activity.close()
    assert activity.enabled is True


def test_log_dir_follows_home(tmp_path: Path) -> None:
    assert default_log_dir() == tmp_path.resolve() / "logs"


def test_configure_logging_creates_log_files(tmp_path: Path) -> None:
    logger = configure_logging()
    assert logger is not None
    names = {path.name for path in available_logs()}
    assert {"dashboard.log", "error.log"} <= names


def test_tail_log(tmp_path: Path) -> None:
    path = tmp_path / "sample.log"
    path.write_text("".join(f"line {i}\n" for i in range(10)), encoding="utf-8")
    assert tail_log(path, 3) == ["line 7\n", "line 8\n", "line 9\n"]
    assert tail_log(tmp_path / "missing.log") == []


def test_dashboard_log_rotates() -> None:
    configure_logging()
    handlers = {handler.get_name(): handler for handler in logging.getLogger(LOGGER_NAME).handlers}
    assert isinstance(handlers["dashboard_file"], RotatingFileHandler)
    assert handlers["dashboard_file"].maxBytes == MAX_LOG_BYTES


def test_later_verbose_request_enables_debug_console(monkeypatch: pytest.MonkeyPatch) -> None:
    configure_logging()
    monkeypatch.setattr(logging_conf, "_VERBOSE", False)
    py_logger = logging.getLogger(LOGGER_NAME)
    console = next(handler for handler in py_logger.handlers if handler.get_name() == "console")
    previous = (py_logger.level, console.level)
    console.setLevel(logging.WARNING)
    try:
        configure_logging(verbose=True)
        assert console.level == logging.DEBUG
        assert py_logger.level == logging.DEBUG
        assert logging_conf._VERBOSE is True
    finally:
        py_logger.setLevel(previous[0])
        console.setLevel(previous[1])
