# src/weekplan/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import replace
from typing import TypeVar, cast

from ..core.dates import WEEK_ORDER, DayOfWeek, day_of_week, parse_date
from ..core.errors import NotFoundError, ValidationError
from ..core.models import DailyTaskEntry, EntryStatus, Task
from ..core.schedule import tasks_for_day, toggle_task
from ..core.state import AppState

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

T = TypeVar("T", Task, DailyTaskEntry)

_STATUS_MARK = {
    EntryStatus.PENDING: "[ ]",
    EntryStatus.COMPLETED: "[x]",
    EntryStatus.SKIPPED: "[-]",
}


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /today, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return await h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return await h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting / lookup helpers ----


def _resolve(items: Sequence[T], ref: str, kind: str) -> T:
    """Pick an item by 1-based list number or by (unique) id prefix."""
    if ref.isdigit():
        idx = int(ref)
        if 1 <= idx <= len(items):
            return items[idx - 1]
    matches = [it for it in items if it.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        raise ValidationError(f"Ambiguous {kind} reference: {ref}")
    raise NotFoundError(kind, ref)


def _task_line(i: int, t: Task) -> str:
    minutes = f" ({t.estimated_minutes} min)" if t.estimated_minutes else ""
    return f"{i}. [{t.priority.value}] {t.title}{minutes}  id={t.id[:8]}"


def _entry_line(i: int, e: DailyTaskEntry, titles: dict[str, str]) -> str:
    title = titles.get(e.task_id, "(deleted task)")
    notes = f"  - {e.notes}" if e.notes else ""
    return f"{i}. {_STATUS_MARK[e.status]} {title}{notes}  id={e.id[:8]}"


def _pop_option(args: list[str], flag: str) -> str | None:
    if flag not in args:
        return None
    idx = args.index(flag)
    if idx + 1 >= len(args):
        raise ValidationError(f"Missing value for {flag}")
    value = args[idx + 1]
    del args[idx : idx + 2]
    return value


def _date_arg(raw: str):
    try:
        return parse_date(raw)
    except ValueError as e:
        raise ValidationError(str(e)) from None


def _draft(state: AppState):
    if state.schedule_draft is None:
        state.schedule_draft = state.service.draft_week_schedule()
    return state.schedule_draft


# ---- commands ----


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = state.service.tasks
    if not tasks:
        return "No tasks yet. Add one with /add <title>."
    return "\n".join(["Tasks:"] + [_task_line(i, t) for i, t in enumerate(tasks, start=1)])


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title> [--min N] [--prio low|medium|high]
    """
    rest = list(args)
    minutes = _pop_option(rest, "--min")
    prio = _pop_option(rest, "--prio") or "medium"
    task = await state.service.create_task(" ".join(rest), estimated_minutes=minutes, priority=prio)
    return f"Task added: {task.title} (id={task.id[:8]})"


async def cmd_edit(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /edit <task> <new title>"
    task = _resolve(state.service.tasks, args[0], "task")
    updated = await state.service.edit_task(task.id, title=" ".join(args[1:]))
    return f"Task renamed: {updated.title}"


async def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <task>"
    task = _resolve(state.service.tasks, args[0], "task")
    await state.service.remove_task(task.id)
    return f"Task removed: {task.title}"


async def cmd_today(state: AppState, args: list[str]) -> str:
    service = state.service
    entries = service.today_entries
    today = service.today()
    header = f"Today ({today.isoformat()}, {day_of_week(today).value}):"
    if not entries:
        return f"{header}\n  Nothing planned. Use /plan to pull tasks from the week schedule."
    titles = {t.id: t.title for t in service.tasks}
    return "\n".join([header] + [_entry_line(i, e, titles) for i, e in enumerate(entries, start=1)])


async def cmd_plan(state: AppState, args: list[str]) -> str:
    on = _date_arg(args[0]) if args else None
    created = await state.service.plan_day(on)
    if not created:
        return "Nothing new to plan."
    return f"Planned {len(created)} task(s) for {created[0].date}."


async def cmd_entry(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /entry <task> [YYYY-MM-DD]"
    task = _resolve(state.service.tasks, args[0], "task")
    on = _date_arg(args[1]) if len(args) > 1 else None
    entry = await state.service.add_entry(task.id, on=on)
    return f"Entry added: {task.title} on {entry.date}"


def _entry_ref(state: AppState, ref: str) -> DailyTaskEntry:
    # Numbers refer to /today; id prefixes may point at any day.
    if ref.isdigit():
        return _resolve(state.service.today_entries, ref, "entry")
    return _resolve(state.service.daily_entries, ref, "entry")


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <entry> [notes]"
    entry = _entry_ref(state, args[0])
    notes = " ".join(args[1:]) or None
    await state.service.complete_task(entry.id, notes)
    return f"Completed. {_stats_line(state)}"


async def cmd_skip(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /skip <entry>"
    entry = _entry_ref(state, args[0])
    await state.service.skip_task(entry.id)
    return f"Skipped. {_stats_line(state)}"


async def cmd_undo(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /undo <entry>"
    entry = _entry_ref(state, args[0])
    await state.service.undo_task(entry.id)
    return f"Back to pending. {_stats_line(state)}"


async def cmd_week(state: AppState, args: list[str]) -> str:
    draft = _draft(state)
    tasks = state.service.tasks
    saved = state.service.current_week_schedule
    suffix = "" if saved is not None and saved == draft else " (unsaved changes)"
    lines = [f"Week of {draft.week_start_date}{suffix}:"]
    for day in WEEK_ORDER:
        titles = [t.title for t in tasks_for_day(draft, day, tasks)]
        dangling = len(draft.day_tasks(day)) - len(titles)
        if dangling:
            titles.append(f"({dangling} deleted)")
        lines.append(f"  {day.value:<9} {', '.join(titles) if titles else '-'}")
    return "\n".join(lines)


async def cmd_toggle(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /toggle <day> <task>"
    try:
        day = DayOfWeek.parse(args[0])
    except ValueError as e:
        raise ValidationError(str(e)) from None
    task = _resolve(state.service.tasks, args[1], "task")

    before = _draft(state)
    state.schedule_draft = toggle_task(before, day, task.id)
    added = task.id in state.schedule_draft.day_tasks(day)
    verb = "added to" if added else "removed from"
    return f"{task.title} {verb} {day.value}. Use /save to keep the change."


async def cmd_save(state: AppState, args: list[str]) -> str:
    draft = _draft(state)
    await state.service.update_week_schedule(draft)
    state.schedule_draft = state.service.current_week_schedule
    return f"Week schedule saved ({draft.week_start_date})."


def _stats_line(state: AppState) -> str:
    stats = state.service.stats
    if stats is None:
        return ""
    w = stats.weekly
    return f"This week: {w.completed}/{w.total} ({w.percentage}%)."


async def cmd_stats(state: AppState, args: list[str]) -> str:
    stats = state.service.stats or await state.service.load_stats()
    w, m = stats.weekly, stats.monthly
    lines = [
        "Completion stats:",
        f"  Week of {w.week_start_date}: {w.completed}/{w.total} ({w.percentage}%)",
        f"  {m.month}: {m.completed}/{m.total} ({m.percentage}%)",
        "  Days:",
    ]
    for d in stats.daily:
        lines.append(f"    {d.date}  {d.completed}/{d.total}  {d.percentage:>3}%")
    return "\n".join(lines)


async def cmd_grid(state: AppState, args: list[str]) -> str:
    days = int(getattr(state.settings, "habit_grid_days", 30))
    grid = state.service.habit_grid(days)
    cells = "".join(
        "." if d.total == 0 else "#" if d.percentage >= 80 else "+" if d.percentage >= 50 else "-"
        for d in grid
    )
    lines = [f"Last {days} days (oldest first): {cells}"]
    for p in state.service.weekly_trend(days):
        lines.append(f"  week {p.week}: {p.completed}/{p.total} ({p.percentage}%)")
    return "\n".join(lines)


async def cmd_notify(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /notify          -> show config
    /notify on|off   -> enable / disable the daily reminder
    /notify HH:mm    -> set reminder time (and enable it)
    /notify test     -> send a notification now
    """
    service = state.service
    config = service.notification_config
    if not args:
        status = "ON" if config.enabled else "OFF"
        return f"Daily reminder is {status} at {config.time} (sound={config.sound})."

    arg = args[0].lower()
    if arg == "test":
        send_test = getattr(state.notifier, "send_test", None)
        if send_test is None:
            return "This notifier cannot send test notifications."
        await send_test()
        return "Test notification sent."

    if arg in ("on", "1", "true", "yes"):
        updated = replace(config, enabled=True)
    elif arg in ("off", "0", "false", "no"):
        updated = replace(config, enabled=False)
    else:
        updated = replace(config, enabled=True, time=args[0])

    if emit:
        emit("[NOTIFY] Updating reminder...")
    saved = await service.update_notification_config(updated)
    if saved.enabled:
        return f"Daily reminder set for {saved.time}."
    return "Daily reminder disabled."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("tasks", cmd_tasks, help_text="List tasks.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <title> [--min N] [--prio low|medium|high].")
registry.register("edit", cmd_edit, help_text="Rename a task: /edit <task> <new title>.")
registry.register("rm", cmd_rm, help_text="Delete a task (entries and schedules keep its id).")
registry.register("today", cmd_today, help_text="Show today's entries.", aliases=["t"])
registry.register("plan", cmd_plan, help_text="Create entries from the week schedule: /plan [YYYY-MM-DD].")
registry.register("entry", cmd_entry, help_text="Add a one-off entry: /entry <task> [YYYY-MM-DD].")
registry.register("done", cmd_done, help_text="Complete an entry: /done <entry> [notes].")
registry.register("skip", cmd_skip, help_text="Skip an entry: /skip <entry>.")
registry.register("undo", cmd_undo, help_text="Reset an entry to pending: /undo <entry>.")
registry.register("week", cmd_week, help_text="Show this week's schedule (draft if edited).")
registry.register("toggle", cmd_toggle, help_text="Add/remove a task on a day: /toggle <day> <task>.")
registry.register("save", cmd_save, help_text="Save the edited week schedule.")
registry.register("stats", cmd_stats, help_text="Daily / weekly / monthly completion stats.")
registry.register("grid", cmd_grid, help_text="Habit grid and weekly trend.")
registry.register("notify", cmd_notify, help_text="Reminder: /notify [on|off|HH:mm|test].")
