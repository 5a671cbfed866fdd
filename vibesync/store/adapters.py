from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable, Mapping
from concurrent.futures import Future
from typing import Any

from ..codec import decode_value, encode_value
from ..signals import Subscription
from .area import RawChanges, StorageArea
from .types import ChangeListener, StorageChange

logger = logging.getLogger(__name__)

PAGE_AREA = "page"
EXTENSION_AREA = "local"


class StorageAdapter:
    """Uniform get/set/subscribe surface over one storage area.

    `set` and `remove` are fire-and-forget: they return a resolved future and a
    failed write is logged and stored on the future instead of being raised.
    """

    area_name = ""

    def __init__(self, area: StorageArea, *, context: str) -> None:
        self.area = area
        self.context = context

    def _to_text(self, value: Any) -> str:
        raise NotImplementedError

    def _from_text(self, raw: str) -> Any:
        raise NotImplementedError

    def _native_change(self, old: str | None, new: str | None) -> StorageChange:
        raise NotImplementedError

    def _exclude_context(self) -> str | None:
        raise NotImplementedError

    def get(self, keys: Iterable[str]) -> dict[str, Any]:
        raw = self.area.read(keys)
        return {key: self._from_text(value) for key, value in raw.items()}

    def get_one(self, key: str) -> Any:
        return self.get([key]).get(key)

    def modified_at(self, keys: Iterable[str]) -> dict[str, str]:
        return self.area.read_stamps(keys)

    def set(self, entries: Mapping[str, Any]) -> Future[None]:
        return self._write(
            {key: None if value is None else self._to_text(value) for key, value in entries.items()}
        )

    def remove(self, keys: Iterable[str]) -> Future[None]:
        return self._write({key: None for key in keys})

    def subscribe(self, listener: ChangeListener) -> Subscription:
        return self.area.add_listener(listener, context=self.context)

    def _write(self, entries: Mapping[str, str | None]) -> Future[None]:
        future: Future[None] = Future()
        try:
            raw_changes = self.area.write(entries)
        except sqlite3.Error as exc:
            logger.warning(
                "%s store write failed for %s", self.area_name, sorted(entries), exc_info=exc
            )
            future.set_exception(exc)
            return future
        future.set_result(None)
        self._dispatch(raw_changes)
        return future

    def _dispatch(self, raw_changes: RawChanges) -> None:
        changes = {
            key: self._native_change(old, new) for key, (old, new) in raw_changes.items()
        }
        self.area.notify(changes, area=self.area_name, exclude_context=self._exclude_context())


class PageStore(StorageAdapter):
    """String-only store scoped to the page origin.

    Reads decode best-effort; change notifications carry the raw strings and are
    delivered to subscribers in other contexts only.
    """

    area_name = PAGE_AREA

    def _to_text(self, value: Any) -> str:
        return encode_value(value)

    def _from_text(self, raw: str) -> Any:
        return decode_value(raw)

    def _native_change(self, old: str | None, new: str | None) -> StorageChange:
        return StorageChange(old_value=old, new_value=new)

    def _exclude_context(self) -> str | None:
        return self.context

    def get_raw(self, keys: Iterable[str]) -> dict[str, str]:
        return self.area.read(keys)


class ExtensionStore(StorageAdapter):
    """Structured store scoped to the extension; every write notifies every subscriber."""

    area_name = EXTENSION_AREA

    def _to_text(self, value: Any) -> str:
        return json.dumps(value, ensure_ascii=False)

    def _from_text(self, raw: str) -> Any:
        return decode_value(raw)

    def _native_change(self, old: str | None, new: str | None) -> StorageChange:
        return StorageChange(
            old_value=None if old is None else self._from_text(old),
            new_value=None if new is None else self._from_text(new),
        )

    def _exclude_context(self) -> str | None:
        return None
