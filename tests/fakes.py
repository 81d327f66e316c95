# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from weekplan.core.errors import StoreWriteError
from weekplan.core.models import DailyTaskEntry, NotificationConfig, Task, WeekSchedule
from weekplan.core.ports import ENTRIES_KEY, NOTIFICATION_CONFIG_KEY, SCHEDULES_KEY, TASKS_KEY


class FixedClock:
    """Deterministic Clock; tests move time explicitly with advance()/set()."""

    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **delta: float) -> None:
        self._now = self._now + timedelta(**delta)


class SequentialIds:
    """id_factory producing id-1, id-2, ..."""

    def __init__(self, prefix: str = "id") -> None:
        self.prefix = prefix
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"{self.prefix}-{self.n}"


class FakeStore:
    """
    In-memory Store.

    - loads hand out fresh lists (callers may mutate them freely)
    - keys listed in fail_writes raise StoreWriteError on save
    - saves counts writes per key for assertions
    """

    def __init__(self) -> None:
        self.tasks: list[Task] = []
        self.entries: list[DailyTaskEntry] = []
        self.schedules: list[WeekSchedule] = []
        self.config: NotificationConfig | None = None
        self.fail_writes: set[str] = set()
        self.saves: dict[str, int] = {}

    def _check_write(self, key: str) -> None:
        if key in self.fail_writes:
            raise StoreWriteError(key, "disk full")
        self.saves[key] = self.saves.get(key, 0) + 1

    async def load_tasks(self) -> list[Task]:
        return list(self.tasks)

    async def save_tasks(self, tasks: list[Task]) -> None:
        self._check_write(TASKS_KEY)
        self.tasks = list(tasks)

    async def load_entries(self) -> list[DailyTaskEntry]:
        return list(self.entries)

    async def save_entries(self, entries: list[DailyTaskEntry]) -> None:
        self._check_write(ENTRIES_KEY)
        self.entries = list(entries)

    async def load_schedules(self) -> list[WeekSchedule]:
        return list(self.schedules)

    async def save_schedules(self, schedules: list[WeekSchedule]) -> None:
        self._check_write(SCHEDULES_KEY)
        self.schedules = list(schedules)

    async def load_notification_config(self) -> NotificationConfig:
        return self.config or NotificationConfig()

    async def save_notification_config(self, config: NotificationConfig) -> None:
        self._check_write(NOTIFICATION_CONFIG_KEY)
        self.config = config


@dataclass(slots=True)
class FakeNotifier:
    """Records Notifier calls as ("schedule", time, sound, vibration) / ("cancel",)."""

    calls: list[tuple] = field(default_factory=list)

    async def schedule_daily(self, time: str, *, sound: bool, vibration: bool) -> None:
        self.calls.append(("schedule", time, sound, vibration))

    async def cancel_all(self) -> None:
        self.calls.append(("cancel",))


@dataclass(slots=True)
class SentMessage:
    text: str
    sound: bool
    at: datetime | None


@dataclass(slots=True)
class FakeMessenger:
    """
    Fake OutboundMessenger used by reminder tests.

    fail_times: how many initial sends should raise.
    """

    clock: FixedClock | None = None
    fail_times: int = 0
    sent: list[SentMessage] = field(default_factory=list)

    async def send_text(self, *, text: str, sound: bool = False) -> None:
        if self.fail_times > 0:
            self.fail_times -= 1
            raise ConnectionError("transport down")
        at = self.clock.now() if self.clock is not None else None
        self.sent.append(SentMessage(text=text, sound=sound, at=at))
