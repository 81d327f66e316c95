# src/weekplan/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations (SqliteStore, ReminderNotifier, SystemClock)
  into one PlannerService held by AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import Clock, OutboundMessenger, SystemClock
from ..core.service import PlannerService
from ..core.state import AppState
from ..notify.reminder import ReminderNotifier
from ..storage.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    messenger: OutboundMessenger,
    *,
    settings=None,
    clock: Clock | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    clock = clock or SystemClock()
    notifier = ReminderNotifier(messenger, clock, text=settings.reminder_text)
    service = PlannerService(SqliteStore(settings.db_path), notifier, clock)

    logger.debug("Planner wired: db=%s", settings.db_path)
    return AppState(settings=settings, service=service, notifier=notifier)


async def start_state(state: AppState) -> None:
    """Load everything and re-arm the daily reminder from the stored config."""
    await state.service.load_all()

    if not getattr(state.settings, "reminders_enabled", True):
        logger.info("Reminders disabled by settings.")
        return

    try:
        await state.service.apply_notification_config()
    except Exception:
        logger.exception("Failed to arm the daily reminder.")
