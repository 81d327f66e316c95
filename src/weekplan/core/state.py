# src/weekplan/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .models import WeekSchedule
from .service import PlannerService


@dataclass
class AppState:
    # Settings object (config.Settings or a test stand-in).
    settings: Any

    service: PlannerService
    # Concrete notifier, kept for connector-only actions (e.g. test notification).
    notifier: Any

    # Week schedule being edited in the console; persisted only by /save.
    schedule_draft: WeekSchedule | None = None
