# src/weekplan/core/errors.py

from __future__ import annotations


class PlannerError(Exception):
    """Base class for errors raised by the planner core."""


class ValidationError(PlannerError, ValueError):
    """User-facing input problem, rejected before anything reaches the store."""


class InvalidTransitionError(ValidationError):
    def __init__(self, entry_id: str, current: str, action: str) -> None:
        super().__init__(f"Cannot {action} entry {entry_id}: status is {current}")
        self.entry_id = entry_id
        self.current = current
        self.action = action


class DuplicateScheduleError(ValidationError):
    def __init__(self, week_start_date: str, existing_id: str) -> None:
        super().__init__(
            f"A schedule for the week of {week_start_date} already exists (id={existing_id})"
        )
        self.week_start_date = week_start_date
        self.existing_id = existing_id


class NotFoundError(PlannerError, KeyError):
    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0])


class StoreWriteError(PlannerError):
    """A save to the Store failed; the mutation did not happen."""

    def __init__(self, key: str, message: str = "") -> None:
        super().__init__(f"Failed to save {key}" + (f": {message}" if message else ""))
        self.key = key
