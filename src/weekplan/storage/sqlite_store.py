# src/weekplan/storage/sqlite_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar

from ..core.errors import StoreWriteError
from ..core.models import DailyTaskEntry, NotificationConfig, Task, WeekSchedule
from ..core.ports import ENTRIES_KEY, NOTIFICATION_CONFIG_KEY, SCHEDULES_KEY, TASKS_KEY

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqliteStore:
    """
    SQLite key/value store implementing the Store port.

    Each logical collection (tasks, daily_entries, week_schedules,
    notification_config) is one JSON document in the `documents` table.
    Saves replace the whole document.

    Failure policy:
    - reads never raise: sqlite errors and undecodable JSON are logged and
      recovered to an empty collection / default config
    - writes raise StoreWriteError

    Thread-safety:
    - each call opens its own SQLite connection; the async methods run the
      blocking work in a worker thread
    """

    def __init__(self, db_path: str | Path = "weekplan.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            keys = self.count_documents()
        except sqlite3.Error:
            keys = -1
        logger.info("SqliteStore ready db=%s documents=%s", self._db_path, keys)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def count_documents(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM documents").fetchone()
            return int(n)
        finally:
            conn.close()

    def _read(self, key: str) -> Any | None:
        """Parsed JSON stored under key, or None when missing or unreadable."""
        try:
            conn = self._get_conn()
            try:
                row = conn.execute("SELECT value FROM documents WHERE key = ?", (key,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error:
            logger.exception("Failed to read %s from %s", key, self._db_path)
            return None

        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning("Stored %s is not valid JSON; treating as empty.", key)
            return None

    def _write(self, key: str, payload: Any) -> None:
        try:
            value = json.dumps(payload, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StoreWriteError(key, "payload is not JSON-serializable") from e

        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO documents(key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                   updated_at = excluded.updated_at
                    """,
                    (key, value, time.time()),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.exception("Failed to write %s to %s", key, self._db_path)
            raise StoreWriteError(key, str(e)) from e
        logger.debug("Saved %s (%d bytes)", key, len(value))

    def _read_list(self, key: str, from_dict: Callable[[Mapping[str, Any]], T]) -> list[T]:
        raw = self._read(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Stored %s is not a list; treating as empty.", key)
            return []

        out: list[T] = []
        for item in raw:
            if not isinstance(item, dict):
                logger.warning("Skipping malformed %s record: %r", key, item)
                continue
            try:
                out.append(from_dict(item))
            except (ValueError, TypeError, OverflowError) as e:
                logger.warning("Skipping malformed %s record: %s", key, e)
        return out

    def _read_config(self) -> NotificationConfig:
        raw = self._read(NOTIFICATION_CONFIG_KEY)
        if not isinstance(raw, dict):
            return NotificationConfig()
        return NotificationConfig.from_dict(raw)

    # ---- Store port ----

    async def load_tasks(self) -> list[Task]:
        return await asyncio.to_thread(self._read_list, TASKS_KEY, Task.from_dict)

    async def save_tasks(self, tasks: list[Task]) -> None:
        await asyncio.to_thread(self._write, TASKS_KEY, [t.to_dict() for t in tasks])

    async def load_entries(self) -> list[DailyTaskEntry]:
        return await asyncio.to_thread(self._read_list, ENTRIES_KEY, DailyTaskEntry.from_dict)

    async def save_entries(self, entries: list[DailyTaskEntry]) -> None:
        await asyncio.to_thread(self._write, ENTRIES_KEY, [e.to_dict() for e in entries])

    async def load_schedules(self) -> list[WeekSchedule]:
        return await asyncio.to_thread(self._read_list, SCHEDULES_KEY, WeekSchedule.from_dict)

    async def save_schedules(self, schedules: list[WeekSchedule]) -> None:
        await asyncio.to_thread(self._write, SCHEDULES_KEY, [s.to_dict() for s in schedules])

    async def load_notification_config(self) -> NotificationConfig:
        return await asyncio.to_thread(self._read_config)

    async def save_notification_config(self, config: NotificationConfig) -> None:
        await asyncio.to_thread(self._write, NOTIFICATION_CONFIG_KEY, config.to_dict())
