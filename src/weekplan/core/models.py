# src/weekplan/core/models.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from .dates import WEEK_ORDER, DayOfWeek, parse_hhmm

logger = logging.getLogger(__name__)


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


class EntryStatus(StrEnum):
    """
    Daily entry lifecycle:

        pending --complete--> completed
        pending --skip------> skipped
        completed/skipped --undo--> pending
    """

    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    @classmethod
    def from_db(cls, raw: str | None) -> EntryStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


def _dt_to_str(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _str_to_dt(raw: Any) -> datetime | None:
    if not raw or not isinstance(raw, str):
        return None
    value = raw.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _opt_str(raw: Any) -> str | None:
    if raw is None:
        return None
    s = str(raw)
    return s if s.strip() else None


def _opt_int(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError, OverflowError):
        return None


def _require_id(data: Mapping[str, Any], kind: str) -> str:
    raw = data.get("id")
    if not raw:
        raise ValueError(f"{kind} record without id")
    return str(raw)


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    created_at: datetime
    priority: Priority = Priority.MEDIUM
    description: str | None = None
    estimated_minutes: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "estimatedMinutes": self.estimated_minutes,
            "priority": self.priority.value,
            "createdAt": _dt_to_str(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        return cls(
            id=_require_id(data, "task"),
            title=str(data.get("title") or ""),
            description=_opt_str(data.get("description")),
            estimated_minutes=_opt_int(data.get("estimatedMinutes")),
            priority=Priority.from_db(data.get("priority")),
            created_at=_str_to_dt(data.get("createdAt")) or datetime.fromtimestamp(0),
        )


@dataclass(slots=True, frozen=True)
class DailyTaskEntry:
    id: str
    task_id: str
    date: str  # YYYY-MM-DD
    status: EntryStatus = EntryStatus.PENDING
    completed_at: datetime | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "date": self.date,
            "status": self.status.value,
            "completedAt": _dt_to_str(self.completed_at),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DailyTaskEntry:
        status = EntryStatus.from_db(data.get("status"))
        completed_at = _str_to_dt(data.get("completedAt"))
        return cls(
            id=_require_id(data, "entry"),
            task_id=str(data.get("taskId") or ""),
            date=str(data.get("date") or "")[:10],
            status=status,
            # completedAt only survives while the entry is completed.
            completed_at=completed_at if status == EntryStatus.COMPLETED else None,
            notes=_opt_str(data.get("notes")),
        )


def normalize_day_tasks(
    tasks: Mapping[DayOfWeek | str, Iterable[str]] | None,
) -> dict[DayOfWeek, tuple[str, ...]]:
    """
    Canonical day -> task ids mapping.

    Unknown day keys are dropped, empty days are omitted, and days are
    ordered monday..sunday so equal schedules compare equal.
    """
    by_day: dict[DayOfWeek, tuple[str, ...]] = {}
    for key, ids in (tasks or {}).items():
        try:
            day = DayOfWeek(str(key))
        except ValueError:
            logger.warning("Dropping unknown day key in schedule: %r", key)
            continue
        if ids is None:
            continue
        if not isinstance(ids, (list, tuple)):
            logger.warning("Dropping %s in schedule: task ids are not a list: %r", day.value, ids)
            continue
        clean = tuple(str(i) for i in ids if i)
        if clean:
            by_day[day] = clean
    return {d: by_day[d] for d in WEEK_ORDER if d in by_day}


@dataclass(slots=True, frozen=True)
class WeekSchedule:
    id: str
    week_start_date: str  # Monday, YYYY-MM-DD
    created_at: datetime
    tasks: dict[DayOfWeek, tuple[str, ...]] = field(default_factory=dict)

    def day_tasks(self, day: DayOfWeek) -> tuple[str, ...]:
        return self.tasks.get(day, ())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "weekStartDate": self.week_start_date,
            "tasks": {day.value: list(ids) for day, ids in self.tasks.items()},
            "createdAt": _dt_to_str(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WeekSchedule:
        raw_tasks = data.get("tasks")
        return cls(
            id=_require_id(data, "schedule"),
            week_start_date=str(data.get("weekStartDate") or "")[:10],
            tasks=normalize_day_tasks(raw_tasks if isinstance(raw_tasks, Mapping) else None),
            created_at=_str_to_dt(data.get("createdAt")) or datetime.fromtimestamp(0),
        )


@dataclass(slots=True, frozen=True)
class NotificationConfig:
    enabled: bool = True
    time: str = "20:00"  # HH:mm
    sound: bool = True
    vibration: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "time": self.time,
            "sound": self.sound,
            "vibration": self.vibration,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NotificationConfig:
        default = cls()
        return cls(
            enabled=_opt_bool(data.get("enabled"), default.enabled),
            time=_valid_time(data.get("time"), default.time),
            sound=_opt_bool(data.get("sound"), default.sound),
            vibration=_opt_bool(data.get("vibration"), default.vibration),
        )


def _opt_bool(raw: Any, default: bool) -> bool:
    # Only real JSON booleans count; "false" is not False.
    return raw if isinstance(raw, bool) else default


def _valid_time(raw: Any, default: str) -> str:
    if not isinstance(raw, str):
        return default
    try:
        hour, minute = parse_hhmm(raw)
    except ValueError:
        logger.warning("Stored reminder time %r is invalid; using %s", raw, default)
        return default
    return f"{hour:02d}:{minute:02d}"


@dataclass(slots=True, frozen=True)
class DayStats:
    date: str
    total: int
    completed: int
    percentage: int


@dataclass(slots=True, frozen=True)
class WeekStats:
    week_start_date: str
    total: int
    completed: int
    percentage: int


@dataclass(slots=True, frozen=True)
class MonthStats:
    month: str
    total: int
    completed: int
    percentage: int


@dataclass(slots=True, frozen=True)
class TrendPoint:
    week: int
    total: int
    completed: int
    percentage: int


@dataclass(slots=True, frozen=True)
class CompletionStats:
    """Derived view over the entry log; recomputed, never persisted."""

    daily: list[DayStats]
    weekly: WeekStats
    monthly: MonthStats
