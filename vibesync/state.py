from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any

from .keys import SyncKey
from .signals import SyncSignal
from .store import ExtensionStore, PageStore, StorageAdapter


@dataclass
class SharedState:
    vocabulary: list[dict[str, Any]] = field(default_factory=list)
    reading_history: dict[str, int] = field(default_factory=dict)
    credential: str = ""


def date_key(day: dt.date) -> str:
    # Unpadded month and day, matching the keys the page writes.
    return f"{day.year}-{day.month}-{day.day}"


def load_shared_state(store: StorageAdapter) -> SharedState:
    values = store.get([key.value for key in SyncKey])
    vocabulary = values.get(SyncKey.VOCABULARY.value)
    history = values.get(SyncKey.READING_HISTORY.value)
    credential = values.get(SyncKey.CREDENTIAL.value)
    state = SharedState()
    if isinstance(vocabulary, list):
        state.vocabulary = [item for item in vocabulary if isinstance(item, dict)]
    if isinstance(history, dict):
        for day, count in history.items():
            if isinstance(count, int) and not isinstance(count, bool):
                state.reading_history[str(day)] = count
    if credential is not None:
        state.credential = str(credential)
    return state


def _write(store: StorageAdapter, key: SyncKey, value: Any, signal: SyncSignal | None) -> None:
    store.set({key.value: value})
    if signal is not None and isinstance(store, PageStore):
        signal.dispatch()


def _same_word(entry: dict[str, Any], word: str) -> bool:
    return str(entry.get("word", "")).lower() == word.lower()


def save_word(
    store: StorageAdapter,
    word: str,
    translation: str = "",
    definition: str = "",
    *,
    signal: SyncSignal | None = None,
) -> bool:
    """Prepend a vocabulary entry; returns False if the word is already saved."""
    word = word.strip()
    if not word:
        raise ValueError("word must not be empty")
    vocabulary = load_shared_state(store).vocabulary
    if any(_same_word(entry, word) for entry in vocabulary):
        return False
    entry = {"word": word, "translation": translation, "definition": definition}
    _write(store, SyncKey.VOCABULARY, [entry, *vocabulary], signal)
    return True


def delete_word(store: StorageAdapter, word: str, *, signal: SyncSignal | None = None) -> bool:
    vocabulary = load_shared_state(store).vocabulary
    remaining = [entry for entry in vocabulary if not _same_word(entry, word)]
    if len(remaining) == len(vocabulary):
        return False
    _write(store, SyncKey.VOCABULARY, remaining, signal)
    return True


def record_reading(
    store: StorageAdapter,
    *,
    today: dt.date | None = None,
    signal: SyncSignal | None = None,
) -> int:
    day = date_key(today or dt.date.today())
    history = load_shared_state(store).reading_history
    history[day] = history.get(day, 0) + 1
    _write(store, SyncKey.READING_HISTORY, history, signal)
    return history[day]


def reading_streak(history: dict[str, int], *, today: dt.date | None = None) -> int:
    day = today or dt.date.today()
    streak = 0
    while history.get(date_key(day)):
        streak += 1
        day -= dt.timedelta(days=1)
    return streak


def save_credential(
    credential: str,
    extension: ExtensionStore,
    page: PageStore | None = None,
    *,
    signal: SyncSignal | None = None,
) -> None:
    """Store an API credential in the extension store and, if given, the page store."""
    credential = credential.strip()
    if not credential:
        raise ValueError("credential must not be empty")
    extension.set({SyncKey.CREDENTIAL.value: credential})
    if page is not None:
        _write(page, SyncKey.CREDENTIAL, credential, signal)
