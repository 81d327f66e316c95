# src/weekplan/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

PlannerService depends on Protocols instead of concrete implementations.
This keeps storage/notification backends swappable and makes testing easier.
"""

from datetime import datetime
from typing import Awaitable, Protocol

from .models import DailyTaskEntry, NotificationConfig, Task, WeekSchedule

# Logical storage keys, one persisted document each.
TASKS_KEY = "tasks"
ENTRIES_KEY = "daily_entries"
SCHEDULES_KEY = "week_schedules"
NOTIFICATION_CONFIG_KEY = "notification_config"


class Store(Protocol):
    """
    Persistence port.

    Contract:
    - load_* never raises: missing or unreadable data yields [] / default config
    - save_* replaces the whole stored collection and raises StoreWriteError on failure
    """

    def load_tasks(self) -> Awaitable[list[Task]]: ...
    def save_tasks(self, tasks: list[Task]) -> Awaitable[None]: ...

    def load_entries(self) -> Awaitable[list[DailyTaskEntry]]: ...
    def save_entries(self, entries: list[DailyTaskEntry]) -> Awaitable[None]: ...

    def load_schedules(self) -> Awaitable[list[WeekSchedule]]: ...
    def save_schedules(self, schedules: list[WeekSchedule]) -> Awaitable[None]: ...

    def load_notification_config(self) -> Awaitable[NotificationConfig]: ...
    def save_notification_config(self, config: NotificationConfig) -> Awaitable[None]: ...


class Notifier(Protocol):
    """Daily reminder scheduling. Delivery mechanics belong to the implementation."""

    def schedule_daily(self, time: str, *, sound: bool, vibration: bool) -> Awaitable[None]: ...
    def cancel_all(self) -> Awaitable[None]: ...


class Clock(Protocol):
    def now(self) -> datetime: ...


class OutboundMessenger(Protocol):
    """Connector-side port: how the reminder loop sends text outward."""

    def send_text(self, *, text: str, sound: bool = False) -> Awaitable[None]: ...


class SystemClock:
    """Local wall-clock time (timezone-aware)."""

    def now(self) -> datetime:
        return datetime.now().astimezone()
