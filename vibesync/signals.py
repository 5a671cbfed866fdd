from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Subscription:
    """Handle returned by every subscribe/connect call; `cancel` is idempotent."""

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe: Callable[[], None] | None = unsubscribe

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    def cancel(self) -> None:
        unsubscribe = self._unsubscribe
        self._unsubscribe = None
        if unsubscribe is not None:
            unsubscribe()


class SyncSignal:
    """Zero-payload "re-read the shared keys now" broadcast for one context.

    Writes into the page store never notify listeners in the writing context, so
    every write path that touches the page store dispatches this signal itself.
    """

    def __init__(self, name: str = "storage") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    def connect(self, callback: Callable[[], None]) -> Subscription:
        with self._lock:
            self._callbacks.append(callback)

        def _disconnect() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return Subscription(_disconnect)

    def dispatch(self) -> int:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback()
            except Exception as exc:
                logger.warning("%s signal listener failed", self.name, exc_info=exc)
        return len(callbacks)
