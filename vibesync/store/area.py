from __future__ import annotations

import datetime as dt
import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from .. import db
from ..signals import Subscription
from .types import ChangeListener, StorageChange

logger = logging.getLogger(__name__)

RawChanges = dict[str, tuple[str | None, str | None]]


def _utc_now() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


class StorageArea:
    """One persistent key-value backend: a SQLite file plus its listener registry.

    Values are stored as text; adapters decide how text maps to values and which
    subscribers a write notifies.
    """

    def __init__(
        self,
        db_path: Path | str,
        *,
        name: str,
        clock: Callable[[], str] = _utc_now,
    ) -> None:
        self.name = name
        self.db_path = Path(db_path).expanduser()
        self._clock = clock
        self._lock = threading.RLock()
        self.conn = db.connect(self.db_path, check_same_thread=False)
        db.initialize_schema(self.conn)
        self._listeners: list[tuple[str, ChangeListener]] = []

    def close(self) -> None:
        with self._lock:
            self.conn.close()

    def read(self, keys: Iterable[str]) -> dict[str, str]:
        wanted = list(dict.fromkeys(keys))
        if not wanted:
            return {}
        placeholders = ",".join(["?"] * len(wanted))
        with self._lock:
            rows = self.conn.execute(
                f"SELECT key, value FROM kv_entries WHERE key IN ({placeholders})",
                wanted,
            ).fetchall()
        return {str(row["key"]): str(row["value"]) for row in rows}

    def read_stamps(self, keys: Iterable[str]) -> dict[str, str]:
        wanted = list(dict.fromkeys(keys))
        if not wanted:
            return {}
        placeholders = ",".join(["?"] * len(wanted))
        with self._lock:
            rows = self.conn.execute(
                f"SELECT key, updated_at FROM kv_entries WHERE key IN ({placeholders})",
                wanted,
            ).fetchall()
        return {str(row["key"]): str(row["updated_at"]) for row in rows}

    def keys(self) -> list[str]:
        with self._lock:
            rows = self.conn.execute("SELECT key FROM kv_entries ORDER BY key").fetchall()
        return [str(row["key"]) for row in rows]

    def write(self, entries: Mapping[str, str | None]) -> RawChanges:
        """Apply writes in one transaction; `None` deletes the key.

        Returns the raw (old, new) pair for every key whose stored text changed.
        """
        changes: RawChanges = {}
        if not entries:
            return changes
        with self._lock:
            current = self.read(entries.keys())
            now = self._clock()
            try:
                for key, value in entries.items():
                    old = current.get(key)
                    if old == value:
                        continue
                    if value is None:
                        self.conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
                    else:
                        self.conn.execute(
                            """
                            INSERT INTO kv_entries(key, value, updated_at)
                            VALUES (?, ?, ?)
                            ON CONFLICT(key) DO UPDATE SET
                                value = excluded.value,
                                updated_at = excluded.updated_at
                            """,
                            (key, value, now),
                        )
                    changes[key] = (old, value)
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return changes

    def add_listener(self, listener: ChangeListener, *, context: str) -> Subscription:
        entry = (context, listener)
        with self._lock:
            self._listeners.append(entry)

        def _remove() -> None:
            with self._lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        return Subscription(_remove)

    def notify(
        self,
        changes: Mapping[str, StorageChange],
        *,
        area: str,
        exclude_context: str | None = None,
    ) -> None:
        if not changes:
            return
        with self._lock:
            listeners = [
                listener
                for context, listener in self._listeners
                if exclude_context is None or context != exclude_context
            ]
        for listener in listeners:
            try:
                listener(dict(changes), area)
            except Exception as exc:
                logger.warning("%s storage listener failed", self.name, exc_info=exc)
