# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from weekplan.core.service import PlannerService
from weekplan.core.state import AppState
from weekplan.storage.sqlite_store import SqliteStore

from .fakes import FakeNotifier, FakeStore, FixedClock, SequentialIds

# Wednesday; its week starts on Monday 2024-01-01.
NOW = datetime(2024, 1, 3, 10, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="weekplan-test",
        log_level="DEBUG",
        console_enabled=False,
        reminders_enabled=True,
        reminder_text="Check your plan",
        habit_grid_days=30,
        data_dir=tmp_path,
        db_path=tmp_path / "weekplan.sqlite3",
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def service(store: FakeStore, notifier: FakeNotifier, clock: FixedClock) -> PlannerService:
    return PlannerService(store, notifier, clock, id_factory=SequentialIds())


@pytest.fixture()
def sqlite_store(settings: SimpleNamespace) -> SqliteStore:
    """Real SQLite store in tmp_path: its correctness is part of what we test."""
    return SqliteStore(settings.db_path)


@pytest.fixture()
def state(settings: SimpleNamespace, service: PlannerService, notifier: FakeNotifier) -> AppState:
    return AppState(settings=settings, service=service, notifier=notifier)
