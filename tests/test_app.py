# tests/test_app.py

from __future__ import annotations

import asyncio
import builtins
import threading

import pytest

from weekplan.cli.bootstrap import create_initial_state, start_state
from weekplan.connectors.console_connector import run_console_loop
from weekplan.core.models import NotificationConfig
from weekplan.notify.reminder import ReminderNotifier

from .conftest import NOW
from .fakes import FakeMessenger, FixedClock


@pytest.mark.asyncio
async def test_bootstrap_wires_sqlite_and_arms_reminder(settings) -> None:
    state = create_initial_state(FakeMessenger(), settings=settings, clock=FixedClock(NOW))
    assert isinstance(state.notifier, ReminderNotifier)
    assert settings.db_path.exists()

    await start_state(state)
    try:
        assert state.service.tasks == []
        assert state.service.stats is not None
        assert state.notifier.scheduled is not None
        assert state.notifier.scheduled.time == "20:00"
        assert state.notifier.scheduled.text == "Check your plan"
    finally:
        await state.notifier.cancel_all()


@pytest.mark.asyncio
async def test_bootstrap_respects_disabled_reminders(settings) -> None:
    settings.reminders_enabled = False
    state = create_initial_state(FakeMessenger(), settings=settings, clock=FixedClock(NOW))
    await state.service.update_notification_config(NotificationConfig(enabled=False))

    await start_state(state)

    assert state.notifier.scheduled is None


@pytest.mark.asyncio
async def test_console_loop_runs_commands_until_exit(
    state, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    lines = iter(["", "hello", "/add Water plants", "/add", "/tasks", "/exit", "/tasks"])
    monkeypatch.setattr(builtins, "input", lambda _prompt="": next(lines))

    await run_console_loop(state)

    out = capsys.readouterr().out
    assert "Commands start with '/'" in out
    assert "Task added: Water plants" in out
    assert "[!] Task title must not be empty" in out
    assert "1. [medium] Water plants" in out
    # input after /exit is never read
    assert next(lines) == "/tasks"


@pytest.mark.asyncio
async def test_console_loop_stops_on_eof(state, monkeypatch: pytest.MonkeyPatch) -> None:
    def eof(_prompt: str = "") -> str:
        raise EOFError

    monkeypatch.setattr(builtins, "input", eof)
    await run_console_loop(state)


@pytest.mark.asyncio
async def test_console_loop_cancel_abandons_pending_read(
    state, monkeypatch: pytest.MonkeyPatch
) -> None:
    waiting = threading.Event()
    release = threading.Event()

    def blocking_input(_prompt: str = "") -> str:
        waiting.set()
        release.wait(5)
        raise EOFError

    monkeypatch.setattr(builtins, "input", blocking_input)

    task = asyncio.create_task(run_console_loop(state))
    for _ in range(500):
        if waiting.is_set():
            break
        await asyncio.sleep(0.01)
    assert waiting.is_set()

    # what asyncio.run does to the main task on Ctrl+C
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    readers = [t for t in threading.enumerate() if t.name == "weekplan-stdin"]
    assert readers and all(t.daemon for t in readers)
    release.set()
