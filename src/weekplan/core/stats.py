# src/weekplan/core/stats.py

from __future__ import annotations

"""
Completion statistics.

Pure functions over a flat log of DailyTaskEntry records:
- daily_stats:   per-date counts for an ordered list of dates
- weekly_stats:  counts inside a Monday..Sunday window
- monthly_stats: counts inside the calendar month of a reference date
- habit_grid / weekly_trend: last-N-days grid and its 7-day roll-up

Nothing here mutates its inputs or reads the clock.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta

from .dates import format_date, month_label, parse_date, week_dates, week_start
from .models import (
    CompletionStats,
    DailyTaskEntry,
    DayStats,
    EntryStatus,
    MonthStats,
    TrendPoint,
    WeekStats,
)

logger = logging.getLogger(__name__)


def completion_percentage(completed: int, total: int) -> int:
    """round(100 * completed / total), half up; 0 when there is nothing to count."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def _count(entries: Iterable[DailyTaskEntry]) -> tuple[int, int]:
    total = 0
    completed = 0
    for e in entries:
        total += 1
        if e.status == EntryStatus.COMPLETED:
            completed += 1
    return total, completed


def _entry_date(entry: DailyTaskEntry) -> date | None:
    try:
        return parse_date(entry.date)
    except ValueError:
        logger.debug("Ignoring entry %s with malformed date %r", entry.id, entry.date)
        return None


def daily_stats(
    entries: Sequence[DailyTaskEntry],
    dates: Iterable[date | datetime | str],
) -> list[DayStats]:
    out: list[DayStats] = []
    for d in dates:
        key = d if isinstance(d, str) else format_date(d)
        total, completed = _count(e for e in entries if e.date == key)
        out.append(
            DayStats(
                date=key,
                total=total,
                completed=completed,
                percentage=completion_percentage(completed, total),
            )
        )
    return out


def weekly_stats(entries: Sequence[DailyTaskEntry], week_start_date: date | datetime) -> WeekStats:
    """Entries dated within [week_start_date, week_start_date + 6 days]."""
    days = week_dates(week_start_date)
    first, last = days[0], days[-1]

    def in_week(e: DailyTaskEntry) -> bool:
        d = _entry_date(e)
        return d is not None and first <= d <= last

    total, completed = _count(e for e in entries if in_week(e))
    return WeekStats(
        week_start_date=format_date(first),
        total=total,
        completed=completed,
        percentage=completion_percentage(completed, total),
    )


def monthly_stats(entries: Sequence[DailyTaskEntry], reference: date | datetime) -> MonthStats:
    def in_month(e: DailyTaskEntry) -> bool:
        d = _entry_date(e)
        return d is not None and d.year == reference.year and d.month == reference.month

    total, completed = _count(e for e in entries if in_month(e))
    return MonthStats(
        month=month_label(reference),
        total=total,
        completed=completed,
        percentage=completion_percentage(completed, total),
    )


def compute_stats(entries: Sequence[DailyTaskEntry], now: date | datetime) -> CompletionStats:
    """Daily stats for the week containing `now`, plus that week's and month's totals."""
    start = week_start(now)
    return CompletionStats(
        daily=daily_stats(entries, week_dates(start)),
        weekly=weekly_stats(entries, start),
        monthly=monthly_stats(entries, now),
    )


def habit_grid(
    entries: Sequence[DailyTaskEntry],
    today: date | datetime,
    days: int = 30,
) -> list[DayStats]:
    """The last `days` days ending at `today` (inclusive), oldest first."""
    end = today.date() if isinstance(today, datetime) else today
    span = max(0, int(days))
    dates = [end - timedelta(days=i) for i in range(span - 1, -1, -1)]
    return daily_stats(entries, dates)


def weekly_trend(grid: Sequence[DayStats], weeks: int | None = None) -> list[TrendPoint]:
    """
    Roll a habit grid up into 7-day chunks ending at its newest day.

    `weeks` defaults to the number of whole weeks in the grid (at least one).
    Days older than the oldest chunk are left out. Points are returned oldest
    first and numbered from 1.
    """
    n = max(1, len(grid) // 7) if weeks is None else max(0, int(weeks))
    out: list[TrendPoint] = []
    for i in range(n):
        end = len(grid) - (n - 1 - i) * 7
        chunk = grid[max(0, end - 7) : max(0, end)]
        total = sum(d.total for d in chunk)
        completed = sum(d.completed for d in chunk)
        out.append(
            TrendPoint(
                week=i + 1,
                total=total,
                completed=completed,
                percentage=completion_percentage(completed, total),
            )
        )
    return out
