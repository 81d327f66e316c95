# tests/test_reminder.py

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timedelta

import pytest

from weekplan.core.errors import ValidationError
from weekplan.notify.reminder import (
    TEST_REMINDER_TEXT,
    Reminder,
    ReminderNotifier,
    next_fire_at,
    run_daily_reminder,
)

from .conftest import NOW
from .fakes import FakeMessenger, FixedClock


class _Stop(Exception):
    pass


def _advancing_sleep(clock: FixedClock, messenger: FakeMessenger, stop_after: int):
    """Fake sleep: moves the clock instead of waiting, stops the loop after N sends."""

    async def sleep(seconds: float) -> None:
        if len(messenger.sent) >= stop_after:
            raise _Stop
        clock.advance(seconds=seconds)

    return sleep


async def _block_forever(_seconds: float) -> None:
    await asyncio.Event().wait()


@pytest.mark.parametrize(
    ("now", "time", "expected"),
    [
        (datetime(2024, 1, 3, 10, 0), "20:00", datetime(2024, 1, 3, 20, 0)),
        (datetime(2024, 1, 3, 20, 0), "20:00", datetime(2024, 1, 4, 20, 0)),
        (datetime(2024, 1, 3, 21, 30), "7:05", datetime(2024, 1, 4, 7, 5)),
        (datetime(2024, 1, 31, 23, 59, 30), "00:00", datetime(2024, 2, 1, 0, 0)),
    ],
)
def test_next_fire_at(now: datetime, time: str, expected: datetime) -> None:
    assert next_fire_at(now, time) == expected


@pytest.mark.asyncio
async def test_fires_once_per_day_at_the_configured_time() -> None:
    clock = FixedClock(NOW)
    messenger = FakeMessenger(clock=clock)
    reminder = Reminder(time="20:00", sound=True, vibration=False, text="Plan check")

    with pytest.raises(_Stop):
        await run_daily_reminder(
            reminder,
            messenger,
            clock,
            max_sleep_seconds=3600,
            sleep=_advancing_sleep(clock, messenger, stop_after=2),
        )

    assert [m.at for m in messenger.sent] == [
        datetime(2024, 1, 3, 20, 0),
        datetime(2024, 1, 4, 20, 0),
    ]
    assert all(m.text == "Plan check" and m.sound for m in messenger.sent)


@pytest.mark.asyncio
async def test_send_failure_is_retried_after_delay() -> None:
    clock = FixedClock(datetime(2024, 1, 3, 19, 59))
    messenger = FakeMessenger(clock=clock, fail_times=1)
    reminder = Reminder(time="20:00", sound=False, vibration=False)

    with pytest.raises(_Stop):
        await run_daily_reminder(
            reminder,
            messenger,
            clock,
            retry_delay_seconds=300,
            sleep=_advancing_sleep(clock, messenger, stop_after=1),
        )

    assert [m.at for m in messenger.sent] == [datetime(2024, 1, 3, 20, 5)]


@pytest.mark.asyncio
async def test_notifier_schedule_and_cancel() -> None:
    notifier = ReminderNotifier(FakeMessenger(), FixedClock(NOW), sleep=_block_forever)
    assert notifier.scheduled is None

    await notifier.schedule_daily("20:00", sound=True, vibration=False)
    first = notifier.scheduled
    assert first is not None and first.time == "20:00"

    # rescheduling replaces the running reminder
    await notifier.schedule_daily("06:30", sound=False, vibration=True)
    assert notifier.scheduled is not None and notifier.scheduled.time == "06:30"
    assert len([t for t in asyncio.all_tasks() if t.get_name() == "weekplan-daily-reminder"]) == 1

    await notifier.cancel_all()
    assert notifier.scheduled is None
    assert not [t for t in asyncio.all_tasks() if t.get_name() == "weekplan-daily-reminder"]

    # cancelling twice is harmless
    await notifier.cancel_all()


@pytest.mark.asyncio
async def test_notifier_rejects_bad_time_and_keeps_current() -> None:
    notifier = ReminderNotifier(FakeMessenger(), FixedClock(NOW), sleep=_block_forever)
    await notifier.schedule_daily("20:00", sound=True, vibration=True)

    for bad in ("24:00", "20:60", "8pm", ""):
        with pytest.raises(ValidationError):
            await notifier.schedule_daily(bad, sound=True, vibration=True)

    assert notifier.scheduled is not None and notifier.scheduled.time == "20:00"
    await notifier.cancel_all()


@pytest.mark.asyncio
async def test_notifier_background_task_delivers() -> None:
    clock = FixedClock(datetime(2024, 1, 3, 19, 0))
    messenger = FakeMessenger(clock=clock)

    async def fast_sleep(seconds: float) -> None:
        clock.advance(seconds=seconds)
        await asyncio.sleep(0)

    notifier = ReminderNotifier(
        messenger, clock, text="Evening check", max_sleep_seconds=600, sleep=fast_sleep
    )
    await notifier.schedule_daily("20:00", sound=True, vibration=True)

    for _ in range(100):
        if messenger.sent:
            break
        await asyncio.sleep(0)
    await notifier.cancel_all()

    assert messenger.sent[0].text == "Evening check"
    assert messenger.sent[0].at == datetime(2024, 1, 3, 20, 0)


@pytest.mark.asyncio
async def test_send_test_goes_out_immediately() -> None:
    messenger = FakeMessenger()
    notifier = ReminderNotifier(messenger, FixedClock(NOW))

    await notifier.send_test()

    assert [(m.text, m.sound) for m in messenger.sent] == [(TEST_REMINDER_TEXT, False)]
    assert notifier.scheduled is None


# Central European time as a POSIX rule, so no tz database is needed.
_BERLIN_TZ = "CET-1CEST,M3.5.0,M10.5.0/3"


@pytest.fixture()
def berlin_local_time(monkeypatch: pytest.MonkeyPatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset() is not available on this platform")
    monkeypatch.setenv("TZ", _BERLIN_TZ)
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.mark.parametrize(
    ("now", "expected_offset_hours"),
    [
        (datetime(2024, 3, 30, 21, 0), 2),  # evening before summer time starts
        (datetime(2024, 10, 26, 21, 0), 1),  # evening before winter time starts
    ],
)
def test_next_fire_at_keeps_local_hour_across_dst(
    berlin_local_time, now: datetime, expected_offset_hours: int
) -> None:
    # SystemClock-style value: local time with a fixed UTC offset
    aware_now = now.astimezone()

    fire = next_fire_at(aware_now, "20:00")

    assert fire.date() == now.date() + timedelta(days=1)
    assert (fire.hour, fire.minute) == (20, 0)
    assert fire.utcoffset() == timedelta(hours=expected_offset_hours)
    assert fire > aware_now
