# src/weekplan/core/service.py

from __future__ import annotations

"""
PlannerService: the task / daily-entry lifecycle manager.

Constructed once by the composition root (cli/bootstrap.py) with a Store, a
Notifier and a Clock. All state lives on the instance and is read through
properties; every mutation goes Store-first, so a failed save leaves the
in-memory view untouched.

After each entry transition the service:
1) persists the updated entry collection,
2) reloads all entries and the "today" subset,
3) recomputes CompletionStats from the refreshed collection.

Task CRUD only reloads tasks. Deleting a task does not touch entries or
schedules that reference it (those ids are left dangling on purpose).
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import date, datetime
from typing import Any

from .dates import day_of_week, format_date, parse_hhmm, week_start
from .errors import InvalidTransitionError, NotFoundError, ValidationError
from .models import (
    CompletionStats,
    DailyTaskEntry,
    DayStats,
    EntryStatus,
    NotificationConfig,
    Priority,
    Task,
    TrendPoint,
    WeekSchedule,
)
from .ports import Clock, Notifier, Store, SystemClock
from .schedule import find_or_create_for_week, find_schedule_for_week, tasks_for_day, upsert_schedule
from .stats import compute_stats, habit_grid, weekly_trend

logger = logging.getLogger(__name__)

MAX_TITLE_LEN = 200
_EDITABLE_TASK_FIELDS = frozenset({"title", "description", "estimated_minutes", "priority"})


def _new_id() -> str:
    return str(uuid.uuid4())


def _clean_title(title: Any) -> str:
    cleaned = title.strip() if isinstance(title, str) else ""
    if not cleaned:
        raise ValidationError("Task title must not be empty")
    if len(cleaned) > MAX_TITLE_LEN:
        raise ValidationError(f"Task title is too long (max {MAX_TITLE_LEN} characters)")
    return cleaned


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    cleaned = str(description).strip()
    return cleaned or None


def _clean_minutes(minutes: Any) -> int | None:
    if minutes is None:
        return None
    if isinstance(minutes, bool) or (isinstance(minutes, float) and not minutes.is_integer()):
        raise ValidationError("Estimated minutes must be a positive integer")
    try:
        value = int(minutes)
    except (TypeError, ValueError):
        raise ValidationError("Estimated minutes must be a positive integer") from None
    if value <= 0:
        raise ValidationError("Estimated minutes must be a positive integer")
    return value


def _clean_priority(priority: Any) -> Priority:
    try:
        return Priority(str(priority).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown priority: {priority!r} (use low, medium or high)") from None


def _clean_time(raw: str) -> str:
    try:
        hour, minute = parse_hhmm(raw)
    except ValueError as e:
        raise ValidationError(str(e)) from None
    return f"{hour:02d}:{minute:02d}"


class PlannerService:
    def __init__(
        self,
        store: Store,
        notifier: Notifier,
        clock: Clock | None = None,
        *,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock: Clock = clock or SystemClock()
        self._new_id = id_factory

        self._tasks: list[Task] = []
        self._daily_entries: list[DailyTaskEntry] = []
        self._today_entries: list[DailyTaskEntry] = []
        self._current_week_schedule: WeekSchedule | None = None
        self._stats: CompletionStats | None = None
        self._notification_config = NotificationConfig()
        self._loading = False

    # ---- read-only state ----

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def daily_entries(self) -> list[DailyTaskEntry]:
        return list(self._daily_entries)

    @property
    def today_entries(self) -> list[DailyTaskEntry]:
        return list(self._today_entries)

    @property
    def current_week_schedule(self) -> WeekSchedule | None:
        return self._current_week_schedule

    @property
    def stats(self) -> CompletionStats | None:
        return self._stats

    @property
    def notification_config(self) -> NotificationConfig:
        return self._notification_config

    @property
    def loading(self) -> bool:
        return self._loading

    def today(self) -> date:
        return self._clock.now().date()

    # ---- bulk load ----

    async def load_all(self) -> None:
        """
        Startup load.

        Tasks, entries, the current week schedule and the notification config
        are independent and load concurrently; stats wait for the entries.
        """
        self._loading = True
        try:
            await asyncio.gather(
                self.load_tasks(),
                self.load_daily_entries(),
                self.load_current_week_schedule(),
                self.load_notification_config(),
            )
            self._recompute_stats()
            logger.info(
                "Planner loaded: tasks=%d entries=%d today=%d schedule=%s",
                len(self._tasks),
                len(self._daily_entries),
                len(self._today_entries),
                self._current_week_schedule.id if self._current_week_schedule else None,
            )
        finally:
            self._loading = False

    # ---- tasks ----

    async def load_tasks(self) -> None:
        self._tasks = await self._store.load_tasks()
        logger.debug("Tasks reloaded: %d", len(self._tasks))

    def get_task(self, task_id: str) -> Task:
        for t in self._tasks:
            if t.id == task_id:
                return t
        raise NotFoundError("task", task_id)

    async def create_task(
        self,
        title: str,
        *,
        description: str | None = None,
        estimated_minutes: int | None = None,
        priority: Priority | str = Priority.MEDIUM,
    ) -> Task:
        cleaned_title = _clean_title(title)
        minutes = _clean_minutes(estimated_minutes)
        prio = _clean_priority(priority)

        task = Task(
            id=self._new_id(),
            title=cleaned_title,
            description=_clean_description(description),
            estimated_minutes=minutes,
            priority=prio,
            created_at=self._clock.now(),
        )

        tasks = await self._store.load_tasks()
        tasks.append(task)
        await self._store.save_tasks(tasks)
        logger.info("Task created id=%s title=%r", task.id, task.title)

        await self.load_tasks()
        return task

    async def edit_task(self, task_id: str, **updates: Any) -> Task:
        unknown = set(updates) - _EDITABLE_TASK_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit task field(s): {', '.join(sorted(unknown))}")

        changes: dict[str, Any] = {}
        if "title" in updates:
            changes["title"] = _clean_title(updates["title"])
        if "description" in updates:
            changes["description"] = _clean_description(updates["description"])
        if "estimated_minutes" in updates:
            changes["estimated_minutes"] = _clean_minutes(updates["estimated_minutes"])
        if "priority" in updates:
            changes["priority"] = _clean_priority(updates["priority"])

        tasks = await self._store.load_tasks()
        for i, t in enumerate(tasks):
            if t.id == task_id:
                updated = replace(t, **changes)
                tasks[i] = updated
                break
        else:
            raise NotFoundError("task", task_id)

        await self._store.save_tasks(tasks)
        logger.info("Task edited id=%s fields=%s", task_id, ",".join(sorted(changes)) or "-")

        await self.load_tasks()
        return updated

    async def remove_task(self, task_id: str) -> None:
        tasks = await self._store.load_tasks()
        remaining = [t for t in tasks if t.id != task_id]
        if len(remaining) == len(tasks):
            raise NotFoundError("task", task_id)

        # Entries and schedules keep their references to task_id.
        await self._store.save_tasks(remaining)
        logger.info("Task removed id=%s", task_id)

        await self.load_tasks()

    # ---- daily entries ----

    async def load_daily_entries(self) -> None:
        entries = await self._store.load_entries()
        today_key = format_date(self._clock.now())
        self._daily_entries = entries
        self._today_entries = [e for e in entries if e.date == today_key]
        logger.debug("Entries reloaded: %d (today=%d)", len(entries), len(self._today_entries))

    def entries_for(self, day: date | datetime | str) -> list[DailyTaskEntry]:
        key = day if isinstance(day, str) else format_date(day)
        return [e for e in self._daily_entries if e.date == key]

    async def add_entry(
        self,
        task_id: str,
        *,
        on: date | datetime | None = None,
        notes: str | None = None,
    ) -> DailyTaskEntry:
        tasks = await self._store.load_tasks()
        if not any(t.id == task_id for t in tasks):
            raise NotFoundError("task", task_id)

        entry = DailyTaskEntry(
            id=self._new_id(),
            task_id=task_id,
            date=format_date(on or self._clock.now()),
            notes=_clean_description(notes),
        )
        entries = await self._store.load_entries()
        entries.append(entry)
        await self._store.save_entries(entries)
        logger.info("Entry added id=%s task=%s date=%s", entry.id, task_id, entry.date)

        await self._refresh_entries()
        return entry

    async def plan_day(self, on: date | datetime | None = None) -> list[DailyTaskEntry]:
        """
        Create pending entries for everything the week schedule assigns to a day.

        Tasks that already have an entry on that date are skipped, as are
        schedule ids whose task no longer exists, so repeated calls are no-ops.
        """
        day = on or self._clock.now()
        key = format_date(day)

        schedules = await self._store.load_schedules()
        schedule = find_schedule_for_week(schedules, format_date(week_start(day)))
        if schedule is None:
            logger.info("plan_day %s: no schedule for that week", key)
            return []

        tasks = await self._store.load_tasks()
        planned = tasks_for_day(schedule, day_of_week(day), tasks)

        entries = await self._store.load_entries()
        existing = {e.task_id for e in entries if e.date == key}
        created = [
            DailyTaskEntry(id=self._new_id(), task_id=t.id, date=key)
            for t in planned
            if t.id not in existing
        ]
        if not created:
            logger.debug("plan_day %s: nothing new to plan", key)
            return []

        await self._store.save_entries(entries + created)
        logger.info("plan_day %s: created %d entries", key, len(created))

        await self._refresh_entries()
        return created

    async def complete_task(self, entry_id: str, notes: str | None = None) -> DailyTaskEntry:
        now = self._clock.now()
        return await self._transition(
            entry_id,
            "complete",
            allowed_from=(EntryStatus.PENDING,),
            apply=lambda e: replace(
                e,
                status=EntryStatus.COMPLETED,
                completed_at=now,
                notes=_clean_description(notes),
            ),
        )

    async def skip_task(self, entry_id: str) -> DailyTaskEntry:
        return await self._transition(
            entry_id,
            "skip",
            allowed_from=(EntryStatus.PENDING,),
            apply=lambda e: replace(e, status=EntryStatus.SKIPPED, completed_at=None),
        )

    async def undo_task(self, entry_id: str) -> DailyTaskEntry:
        return await self._transition(
            entry_id,
            "undo",
            allowed_from=(EntryStatus.COMPLETED, EntryStatus.SKIPPED),
            apply=lambda e: replace(e, status=EntryStatus.PENDING, completed_at=None),
        )

    async def _transition(
        self,
        entry_id: str,
        action: str,
        *,
        allowed_from: tuple[EntryStatus, ...],
        apply: Callable[[DailyTaskEntry], DailyTaskEntry],
    ) -> DailyTaskEntry:
        entries = await self._store.load_entries()
        for i, e in enumerate(entries):
            if e.id == entry_id:
                idx, entry = i, e
                break
        else:
            raise NotFoundError("entry", entry_id)

        if entry.status not in allowed_from:
            raise InvalidTransitionError(entry_id, entry.status.value, action)

        updated = apply(entry)
        entries[idx] = updated
        await self._store.save_entries(entries)
        logger.info("Entry %s: %s -> %s", entry_id, entry.status.value, updated.status.value)

        await self._refresh_entries()
        return updated

    async def _refresh_entries(self) -> None:
        await self.load_daily_entries()
        self._recompute_stats()

    # ---- week schedule ----

    def _current_week_key(self) -> str:
        return format_date(week_start(self._clock.now()))

    async def load_current_week_schedule(self) -> None:
        schedules = await self._store.load_schedules()
        self._current_week_schedule = find_schedule_for_week(schedules, self._current_week_key())

    def draft_week_schedule(self) -> WeekSchedule:
        """The current week's schedule, or a fresh unsaved one to edit."""
        existing = [self._current_week_schedule] if self._current_week_schedule else []
        return find_or_create_for_week(
            existing,
            self._current_week_key(),
            now=self._clock.now(),
            new_id=self._new_id,
        )

    async def update_week_schedule(self, schedule: WeekSchedule) -> WeekSchedule:
        schedules = await self._store.load_schedules()
        updated = upsert_schedule(schedules, schedule)
        await self._store.save_schedules(updated)
        logger.info("Week schedule saved id=%s week=%s", schedule.id, schedule.week_start_date)

        await self.load_current_week_schedule()
        return schedule

    # ---- statistics ----

    async def load_stats(self) -> CompletionStats:
        entries = await self._store.load_entries()
        self._stats = compute_stats(entries, self._clock.now())
        return self._stats

    def _recompute_stats(self) -> None:
        self._stats = compute_stats(self._daily_entries, self._clock.now())

    def habit_grid(self, days: int = 30) -> list[DayStats]:
        return habit_grid(self._daily_entries, self._clock.now(), days)

    def weekly_trend(self, days: int = 30) -> list[TrendPoint]:
        return weekly_trend(self.habit_grid(days))

    # ---- notifications ----

    async def load_notification_config(self) -> None:
        self._notification_config = await self._store.load_notification_config()

    async def update_notification_config(self, config: NotificationConfig) -> NotificationConfig:
        config = replace(config, time=_clean_time(config.time))

        await self._store.save_notification_config(config)
        self._notification_config = config

        if config.enabled:
            await self._notifier.schedule_daily(
                config.time, sound=config.sound, vibration=config.vibration
            )
            logger.info("Daily reminder scheduled at %s", config.time)
        else:
            await self._notifier.cancel_all()
            logger.info("Daily reminder cancelled")
        return config

    async def apply_notification_config(self) -> None:
        """Re-arm the notifier from the loaded config (used at startup)."""
        config = self._notification_config
        if config.enabled:
            await self._notifier.schedule_daily(
                config.time, sound=config.sound, vibration=config.vibration
            )
        else:
            await self._notifier.cancel_all()
