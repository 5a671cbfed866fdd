from __future__ import annotations

from enum import Enum


class SyncKey(str, Enum):
    VOCABULARY = "vocabulary"
    READING_HISTORY = "readingHistory"
    CREDENTIAL = "credential"


SYNC_KEYS: tuple[str, ...] = tuple(key.value for key in SyncKey)

# Handoff slots live in the extension store but never take part in steady-state sync.
CAPTURE_SLOT_KEY = "capturedFullPage"
SELECTION_SLOT_KEY = "selectedText"


def is_sync_key(key: object) -> bool:
    return isinstance(key, str) and key in SYNC_KEYS
