# src/weekplan/core/schedule.py

from __future__ import annotations

"""
WeekSchedule editing.

Schedules are immutable values: every edit returns a new WeekSchedule so a
draft can be changed freely and only persisted on an explicit save.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import datetime

from .dates import DayOfWeek
from .errors import DuplicateScheduleError
from .models import Task, WeekSchedule, normalize_day_tasks

logger = logging.getLogger(__name__)


def toggle_task(schedule: WeekSchedule, day: DayOfWeek, task_id: str) -> WeekSchedule:
    """Remove task_id from the day if present, otherwise append it."""
    current = schedule.day_tasks(day)
    if task_id in current:
        idx = current.index(task_id)
        updated = current[:idx] + current[idx + 1 :]
    else:
        updated = current + (task_id,)

    tasks = dict(schedule.tasks)
    tasks[day] = updated
    return replace(schedule, tasks=normalize_day_tasks(tasks))


def find_schedule_for_week(
    schedules: Iterable[WeekSchedule], week_start_date: str
) -> WeekSchedule | None:
    for s in schedules:
        if s.week_start_date == week_start_date:
            return s
    return None


def find_or_create_for_week(
    existing: Iterable[WeekSchedule],
    week_start_date: str,
    *,
    now: datetime,
    new_id: Callable[[], str],
) -> WeekSchedule:
    """
    Look up the schedule for a week, or build an empty one.

    A new schedule is NOT persisted here; the caller saves it explicitly.
    """
    found = find_schedule_for_week(existing, week_start_date)
    if found is not None:
        return found
    return WeekSchedule(id=new_id(), week_start_date=week_start_date, tasks={}, created_at=now)


def upsert_schedule(
    schedules: Sequence[WeekSchedule], schedule: WeekSchedule
) -> list[WeekSchedule]:
    """
    Replace the schedule with the same id, else append it.

    Only one schedule may exist per week: a schedule with a different id for
    the same week_start_date is rejected with DuplicateScheduleError.
    """
    for s in schedules:
        if s.id != schedule.id and s.week_start_date == schedule.week_start_date:
            raise DuplicateScheduleError(schedule.week_start_date, s.id)

    out = list(schedules)
    for i, s in enumerate(out):
        if s.id == schedule.id:
            out[i] = schedule
            return out

    out.append(schedule)
    logger.debug("Schedule %s added for week %s", schedule.id, schedule.week_start_date)
    return out


def tasks_for_day(schedule: WeekSchedule, day: DayOfWeek, tasks: Iterable[Task]) -> list[Task]:
    """Resolve a day's task ids in order; ids of deleted tasks are skipped."""
    by_id = {t.id: t for t in tasks}
    return [by_id[tid] for tid in schedule.day_tasks(day) if tid in by_id]
