# src/weekplan/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, loads the planner and re-arms the daily
reminder, then runs the console REPL (or just keeps the reminder alive when
the console is disabled).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..cli.bootstrap import create_initial_state, start_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleMessenger, run_console_loop
from ..core.state import AppState
from ..logging_setup import level_from_name, setup_logging

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    cancel = getattr(state.notifier, "cancel_all", None)
    if cancel is None:
        return
    try:
        await cancel()
    except Exception:
        logger.debug("Notifier shutdown failed.", exc_info=True)


async def run_app(settings) -> None:
    state = create_initial_state(ConsoleMessenger(), settings=settings)
    await start_state(state)

    try:
        if settings.console_enabled:
            await run_console_loop(state)
        else:
            logger.info("Console disabled. Running the daily reminder only. Press Ctrl+C to stop.")
            await asyncio.Event().wait()
    finally:
        await _shutdown(state)
        logger.info("Bye.")


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(
        log_dir=settings.data_dir,
        console_level=level_from_name(settings.log_level),
    )
    logger.info("Starting %s (log file: %s)...", settings.app_name, log_file)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run_app(settings))


if __name__ == "__main__":
    main()
