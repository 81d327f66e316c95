# src/weekplan/notify/reminder.py

from __future__ import annotations

"""
Daily reminder.

ReminderNotifier implements the Notifier port with one asyncio task that:
- computes the next HH:mm occurrence from the injected clock,
- sleeps in bounded steps until it is due (wall-clock jumps are picked up),
- sends the reminder text via an injected messenger port,
- on send failure, logs and retries after retry_delay_seconds.

Transport (console, chat, ...) belongs to the messenger, not the notifier.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..core.dates import parse_hhmm
from ..core.errors import ValidationError
from ..core.ports import Clock, OutboundMessenger, SystemClock

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_TEXT = "Today's tasks: check your plan and mark what you got done!"
TEST_REMINDER_TEXT = "Test notification: reminders are working."

Sleeper = Callable[[float], Awaitable[None]]


@dataclass(slots=True, frozen=True)
class Reminder:
    time: str
    sound: bool
    vibration: bool
    text: str = DEFAULT_REMINDER_TEXT


def next_fire_at(now: datetime, time: str) -> datetime:
    """
    Next occurrence of HH:mm strictly after `now` (today if still ahead, else tomorrow).

    A fixed UTC offset (what SystemClock returns) does not follow DST, so such
    times are planned as local wall-clock time and localised afterwards.
    Naive and zoneinfo-aware datetimes are used as they are.
    """
    hour, minute = parse_hhmm(time)
    if isinstance(now.tzinfo, timezone):
        local_now = now.astimezone().replace(tzinfo=None)
        return next_fire_at(local_now, time).astimezone()

    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


async def run_daily_reminder(
    reminder: Reminder,
    messenger: OutboundMessenger,
    clock: Clock,
    *,
    max_sleep_seconds: float = 60.0,
    retry_delay_seconds: float = 60.0,
    sleep: Sleeper = asyncio.sleep,
) -> None:
    """
    Fire `reminder` once a day until cancelled.

    To stop the loop, cancel the coroutine/task.
    """
    step_s = max(0.01, float(max_sleep_seconds))
    retry_s = max(0.01, float(retry_delay_seconds))

    fire_at = next_fire_at(clock.now(), reminder.time)
    logger.debug("Reminder armed for %s", fire_at.isoformat())

    while True:
        remaining = (fire_at - clock.now()).total_seconds()
        if remaining > 0:
            await sleep(min(step_s, remaining))
            continue

        try:
            await messenger.send_text(text=reminder.text, sound=reminder.sound)
        except Exception:
            logger.exception("Reminder send failed; retrying in %.0fs", retry_s)
            fire_at = clock.now() + timedelta(seconds=retry_s)
            continue

        logger.info("Reminder sent (%s)", reminder.time)
        fire_at = next_fire_at(clock.now(), reminder.time)
        logger.debug("Reminder re-armed for %s", fire_at.isoformat())


class ReminderNotifier:
    """Notifier port backed by a single background asyncio task."""

    def __init__(
        self,
        messenger: OutboundMessenger,
        clock: Clock | None = None,
        *,
        text: str = DEFAULT_REMINDER_TEXT,
        max_sleep_seconds: float = 60.0,
        retry_delay_seconds: float = 60.0,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._messenger = messenger
        self._clock: Clock = clock or SystemClock()
        self._text = text
        self._max_sleep_seconds = max_sleep_seconds
        self._retry_delay_seconds = retry_delay_seconds
        self._sleep = sleep

        self._runner: asyncio.Task[None] | None = None
        self._reminder: Reminder | None = None

    @property
    def scheduled(self) -> Reminder | None:
        return self._reminder

    async def schedule_daily(self, time: str, *, sound: bool, vibration: bool) -> None:
        try:
            parse_hhmm(time)
        except ValueError as e:
            raise ValidationError(str(e)) from None

        # Only one daily reminder exists at a time.
        await self.cancel_all()

        reminder = Reminder(time=time, sound=sound, vibration=vibration, text=self._text)
        self._runner = asyncio.create_task(
            run_daily_reminder(
                reminder,
                self._messenger,
                self._clock,
                max_sleep_seconds=self._max_sleep_seconds,
                retry_delay_seconds=self._retry_delay_seconds,
                sleep=self._sleep,
            ),
            name="weekplan-daily-reminder",
        )
        self._reminder = reminder
        logger.info("Daily reminder scheduled at %s (sound=%s vibration=%s)", time, sound, vibration)

    async def cancel_all(self) -> None:
        runner, self._runner = self._runner, None
        self._reminder = None
        if runner is None:
            return

        runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await runner
        logger.info("Daily reminder cancelled")

    async def send_test(self) -> None:
        """Send a one-off notification right away."""
        await self._messenger.send_text(text=TEST_REMINDER_TEXT, sound=False)
