from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum

from ..keys import CAPTURE_SLOT_KEY, SELECTION_SLOT_KEY
from ..signals import Subscription
from ..store import EXTENSION_AREA, ExtensionStore, StorageChange

logger = logging.getLogger(__name__)


class CaptureState(str, Enum):
    EMPTY = "empty"
    PENDING = "pending"
    DELIVERED = "delivered"
    CONSUMED = "consumed"


@dataclass(frozen=True)
class CaptureStatus:
    state: CaptureState
    payload: str | None = None


class HandoffSlot:
    """Single-writer handoff of captured text through one extension-store key.

    empty -> pending (produce) -> delivered (forward) -> consumed (consume) -> empty.

    With `clear_on_forward=False` forwarding leaves the payload in the store so a
    second reader can still see it; that reader calls `consume` to clear the slot.
    If it never does, the slot stays delivered.
    """

    def __init__(
        self,
        extension: ExtensionStore,
        key: str = CAPTURE_SLOT_KEY,
        *,
        clear_on_forward: bool = False,
    ) -> None:
        self.extension = extension
        self.key = key
        self.clear_on_forward = clear_on_forward
        self._lock = threading.RLock()
        self._delivered: str | None = None

    def _read(self) -> str | None:
        payload = self.extension.get_one(self.key)
        if payload is None or payload == "":
            return None
        return payload if isinstance(payload, str) else str(payload)

    def produce(self, payload: str) -> Future[None]:
        if not isinstance(payload, str) or not payload.strip():
            raise ValueError("capture payload must be non-empty text")
        return self.extension.set({self.key: payload})

    def status(self) -> CaptureStatus:
        with self._lock:
            payload = self._read()
            if payload is None:
                self._delivered = None
                return CaptureStatus(CaptureState.EMPTY)
            if payload == self._delivered:
                return CaptureStatus(CaptureState.DELIVERED, payload)
            return CaptureStatus(CaptureState.PENDING, payload)

    def forward(self, sink: Callable[[str], object]) -> CaptureStatus:
        with self._lock:
            current = self.status()
            if current.state is not CaptureState.PENDING or current.payload is None:
                return current
            sink(current.payload)
            if self.clear_on_forward:
                self.extension.remove([self.key])
                self._delivered = None
                return CaptureStatus(CaptureState.CONSUMED, current.payload)
            self._delivered = current.payload
            logger.debug("forwarded %s (%d chars)", self.key, len(current.payload))
            return CaptureStatus(CaptureState.DELIVERED, current.payload)

    def consume(self) -> CaptureStatus:
        with self._lock:
            payload = self._read()
            if payload is None:
                self._delivered = None
                return CaptureStatus(CaptureState.EMPTY)
            self.extension.remove([self.key])
            self._delivered = None
            return CaptureStatus(CaptureState.CONSUMED, payload)

    def on_change(
        self,
        changes: dict[str, StorageChange],
        area: str,
        sink: Callable[[str], object],
    ) -> CaptureStatus | None:
        """Forward a payload that just landed in this slot; other changes are ignored."""
        if area != EXTENSION_AREA or self.key not in changes:
            return None
        if changes[self.key].new_value is None:
            return None
        return self.forward(sink)

    def watch(self, sink: Callable[[str], object]) -> Subscription:
        return self.extension.subscribe(lambda changes, area: self.on_change(changes, area, sink))


def capture_slot(extension: ExtensionStore) -> HandoffSlot:
    return HandoffSlot(extension, CAPTURE_SLOT_KEY, clear_on_forward=False)


def selection_slot(extension: ExtensionStore) -> HandoffSlot:
    return HandoffSlot(extension, SELECTION_SLOT_KEY, clear_on_forward=True)


def next_pending_text(extension: ExtensionStore) -> str | None:
    """Side panel read order: a pending selection wins and is cleared; a captured
    page is read but left in place for the page to pick up."""
    selection = selection_slot(extension).consume()
    if selection.payload is not None:
        return selection.payload
    return capture_slot(extension).status().payload
