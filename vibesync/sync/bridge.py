from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from ..signals import Subscription, SyncSignal
from ..store import ExtensionStore, PageStore, StorageChange
from . import bootstrap, propagate, reconcile
from .capture import capture_slot
from .scheduler import PeriodicTask

logger = logging.getLogger(__name__)

DEFAULT_RECONCILE_INTERVAL_S = 5.0


class SyncBridge:
    """Keeps the shared keys of a page store and an extension store converged.

    Constructed once per hosting context. `attach` seeds the page store, wires
    both propagators and the capture watcher, and starts the reconciliation
    task; from then on the bridge runs until the context is torn down. `detach`
    exists for teardown and tests.
    """

    def __init__(
        self,
        page: PageStore,
        extension: ExtensionStore,
        *,
        signal: SyncSignal | None = None,
        reconcile_interval_s: float = DEFAULT_RECONCILE_INTERVAL_S,
        reconcile_mode: str = reconcile.MODE_SYMMETRIC,
        capture_sink: Callable[[str], object] | None = None,
        log_path: Path | None = None,
    ) -> None:
        if reconcile_mode not in reconcile.RECONCILE_MODES:
            raise ValueError(f"unknown reconcile mode: {reconcile_mode}")
        self.page = page
        self.extension = extension
        self.signal = signal or SyncSignal()
        self.reconcile_mode = reconcile_mode
        self.capture = capture_slot(extension)
        self.capture_sink = capture_sink
        self.task = PeriodicTask(
            reconcile_interval_s,
            self.reconcile_pass,
            name="vibesync-reconcile",
            log_path=log_path,
        )
        self._lock = threading.RLock()
        self._subscriptions: list[Subscription] = []
        self.seeded_keys: list[str] = []

    @property
    def attached(self) -> bool:
        return bool(self._subscriptions)

    def attach(self, *, start_timer: bool = True) -> SyncBridge:
        with self._lock:
            if self.attached:
                return self
            self.seeded_keys = bootstrap.bootstrap_page_store(
                self.page, self.extension, self.signal
            )
            self._subscriptions.append(self.page.subscribe(self._on_page_change))
            self._subscriptions.append(self.extension.subscribe(self._on_extension_change))
            if self.capture_sink is not None:
                self._subscriptions.append(self.extension.subscribe(self._on_capture_change))
                self.capture.forward(self._deliver_capture)
            if start_timer:
                self.task.start()
            logger.info(
                "bridge attached (mode=%s, interval=%ss)",
                self.reconcile_mode,
                self.task.interval_s,
            )
        return self

    def detach(self) -> None:
        self.task.cancel()
        with self._lock:
            subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.cancel()

    def reconcile_pass(self) -> list[reconcile.Correction]:
        with self._lock:
            return reconcile.reconcile_pass(
                self.page,
                self.extension,
                mode=self.reconcile_mode,
                signal=self.signal,
            )

    def _on_page_change(self, changes: dict[str, StorageChange], area: str) -> None:
        with self._lock:
            propagate.propagate_page_changes(changes, self.extension)

    def _on_extension_change(self, changes: dict[str, StorageChange], area: str) -> None:
        with self._lock:
            propagate.propagate_extension_changes(changes, area, self.page, self.signal)

    def _on_capture_change(self, changes: dict[str, StorageChange], area: str) -> None:
        with self._lock:
            self.capture.on_change(changes, area, self._deliver_capture)

    def _deliver_capture(self, payload: str) -> None:
        if self.capture_sink is not None:
            self.capture_sink(payload)


_BRIDGE: SyncBridge | None = None
_BRIDGE_LOCK = threading.Lock()


def attach_bridge(
    page: PageStore,
    extension: ExtensionStore,
    *,
    start_timer: bool = True,
    **kwargs,
) -> SyncBridge:
    """Attach the process-wide bridge, or return the one already attached."""
    global _BRIDGE
    with _BRIDGE_LOCK:
        if _BRIDGE is not None and _BRIDGE.attached:
            return _BRIDGE
        _BRIDGE = SyncBridge(page, extension, **kwargs)
        return _BRIDGE.attach(start_timer=start_timer)


def current_bridge() -> SyncBridge | None:
    return _BRIDGE


def reset_bridge() -> None:
    global _BRIDGE
    with _BRIDGE_LOCK:
        bridge, _BRIDGE = _BRIDGE, None
    if bridge is not None:
        bridge.detach()
