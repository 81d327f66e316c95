# src/weekplan/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
import threading
from datetime import datetime

from ..cli.commands import CommandRegistry
from ..cli.commands import registry as command_registry
from ..core.errors import PlannerError
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleMessenger:
    """OutboundMessenger that prints reminders to the terminal."""

    async def send_text(self, *, text: str, sound: bool = False) -> None:
        bell = "\a" if sound and sys.stdout.isatty() else ""
        _print_ts(f"{bell}[REMINDER] {text}")


async def _read_line(prompt: str) -> str:
    """
    input() on a daemon thread.

    A read still blocked when the loop is cancelled (Ctrl+C) is simply
    abandoned; it does not hold up interpreter exit the way an executor
    worker would.
    """
    loop = asyncio.get_running_loop()
    fut: asyncio.Future[str] = loop.create_future()

    def deliver(line: str | None, exc: Exception | None) -> None:
        if fut.done():
            return
        if exc is not None:
            fut.set_exception(exc)
        else:
            fut.set_result(line or "")

    def reader() -> None:
        try:
            line = input(prompt)
        except Exception as e:  # EOFError, closed stdin
            result: tuple[str | None, Exception | None] = (None, e)
        else:
            result = (line, None)
        # The loop may already be closed after a cancelled read.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(deliver, *result)

    threading.Thread(target=reader, name="weekplan-stdin", daemon=True).start()
    return await fut


async def run_console_loop(state: AppState, registry: CommandRegistry | None = None) -> None:
    """
    Async REPL.

    Input is read on a daemon thread so the daily reminder keeps firing while
    the prompt waits. Commands run one at a time on the event loop.

    Stops on /exit, /quit or EOF. Ctrl+C under asyncio.run cancels this
    coroutine; the cancellation is logged and re-raised so the caller's
    shutdown runs.
    """
    registry = registry or command_registry
    app_name = str(getattr(state.settings, "app_name", "weekplan"))
    logger.info("Console connector started.")
    _print_ts(f"[{app_name}] Use /help for commands, /today to see today's plan, /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for slower operations.
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            line = (await _read_line(">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except asyncio.CancelledError:
            logger.info("Console cancelled, exiting.")
            print()
            raise

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await registry.handle(state, line, emit=emit)
        except PlannerError as e:
            reply = f"[!] {e}"
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            reply = "Commands start with '/'. Use /help to list them."
        _print_ts(reply)

    logger.info("Console connector finished.")
