from __future__ import annotations

import datetime as dt
import logging
import threading
import traceback
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run `fn` every `interval_s` seconds on a daemon thread until cancelled.

    A failing tick is logged and recorded; the loop keeps running. `run_once`
    executes one tick on the caller's thread.
    """

    def __init__(
        self,
        interval_s: float,
        fn: Callable[[], object],
        *,
        name: str = "periodic-task",
        log_path: Path | None = None,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self.interval_s = interval_s
        self.name = name
        self.log_path = log_path
        self.runs = 0
        self.last_error: str | None = None
        self._fn = fn
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self, timeout: float | None = 1.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def run_once(self) -> bool:
        self.runs += 1
        try:
            self._fn()
        except Exception as exc:
            self.last_error = str(exc) or exc.__class__.__name__
            logger.exception("%s tick failed", self.name)
            if self.log_path is not None:
                _append_task_log(self.log_path, traceback.format_exc())
            return False
        self.last_error = None
        return True

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_s):
            self.run_once()


def _append_task_log(log_path: Path, message: str) -> None:
    try:
        log_path = log_path.expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        ts = dt.datetime.now(dt.UTC).isoformat()
        with log_path.open("a", encoding="utf-8", errors="ignore") as handle:
            handle.write(f"\n[{ts}]\n{message}\n")
    except OSError:
        return
