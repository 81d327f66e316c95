# tests/test_config_logging.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from weekplan.config import Settings
from weekplan.logging_setup import _ConsoleNoiseFilter, level_from_name, setup_logging
from weekplan.notify.reminder import DEFAULT_REMINDER_TEXT


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "WEEKPLAN_APP_NAME",
        "WEEKPLAN_LOG_LEVEL",
        "WEEKPLAN_CONSOLE_ENABLED",
        "WEEKPLAN_REMINDERS_ENABLED",
        "WEEKPLAN_REMINDER_TEXT",
        "WEEKPLAN_HABIT_GRID_DAYS",
        "WEEKPLAN_DATA_DIR",
        "WEEKPLAN_DB_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def test_settings_defaults(clean_env) -> None:
    s = Settings.from_env()
    assert s.app_name == "weekplan"
    assert s.log_level == "INFO"
    assert s.console_enabled is True
    assert s.reminders_enabled is True
    assert s.reminder_text == DEFAULT_REMINDER_TEXT
    assert s.habit_grid_days == 30
    assert s.data_dir == Path(".local/weekplan")
    assert s.db_path == Path(".local/weekplan/weekplan.sqlite3")


def test_settings_from_env(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("WEEKPLAN_CONSOLE_ENABLED", "no")
    clean_env.setenv("WEEKPLAN_REMINDERS_ENABLED", "off")
    clean_env.setenv("WEEKPLAN_HABIT_GRID_DAYS", "not-a-number")
    clean_env.setenv("WEEKPLAN_DATA_DIR", str(tmp_path))
    clean_env.setenv("WEEKPLAN_REMINDER_TEXT", "")

    s = Settings.from_env()
    assert s.console_enabled is False
    assert s.reminders_enabled is False
    assert s.habit_grid_days == 30
    assert s.reminder_text == DEFAULT_REMINDER_TEXT
    assert s.db_path == tmp_path / "weekplan.sqlite3"

    clean_env.setenv("WEEKPLAN_HABIT_GRID_DAYS", "0")
    assert Settings.from_env().habit_grid_days == 1


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("15", 15), ("loud", logging.INFO)],
)
def test_level_from_name(raw: str, expected: int) -> None:
    assert level_from_name(raw) == expected


def test_console_filter_quiets_background_components() -> None:
    f = _ConsoleNoiseFilter()

    def rec(name: str, level: int) -> logging.LogRecord:
        return logging.LogRecord(name, level, __file__, 1, "msg", None, None)

    assert f.filter(rec("weekplan.core.service", logging.INFO))
    assert not f.filter(rec("weekplan.notify.reminder", logging.INFO))
    assert f.filter(rec("weekplan.notify.reminder", logging.WARNING))
    assert not f.filter(rec("py.warnings", logging.WARNING))
    assert not f.filter(rec("asyncio", logging.WARNING))
    assert f.filter(rec("asyncio", logging.ERROR))


def test_setup_logging_writes_file(tmp_path: Path, restore_root_logger) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs", console_level=logging.WARNING)

    logging.getLogger("weekplan.test").debug("hello file")
    for h in restore_root_logger.handlers:
        h.flush()

    assert log_file == tmp_path / "logs" / "weekplan.log"
    assert "hello file" in log_file.read_text(encoding="utf-8")
    assert len(restore_root_logger.handlers) == 2
