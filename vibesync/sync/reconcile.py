from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..codec import encode_value, is_empty, text_holds
from ..keys import SYNC_KEYS
from ..signals import SyncSignal
from ..store import ExtensionStore, PageStore
from .propagate import credential_guarded

logger = logging.getLogger(__name__)

MODE_PUSH = "push"
MODE_SYMMETRIC = "symmetric"
RECONCILE_MODES = (MODE_PUSH, MODE_SYMMETRIC)

PAGE_TO_EXTENSION = "page->extension"
EXTENSION_TO_PAGE = "extension->page"


@dataclass(frozen=True)
class Correction:
    key: str
    direction: str
    value: Any


@dataclass(frozen=True)
class KeyComparison:
    key: str
    page_value: Any
    extension_value: Any
    page_updated_at: str | None
    extension_updated_at: str | None

    @property
    def in_sync(self) -> bool:
        return self.page_value == self.extension_value


def compare_stores(page: PageStore, extension: ExtensionStore) -> list[KeyComparison]:
    page_values = page.get(SYNC_KEYS)
    extension_values = extension.get(SYNC_KEYS)
    page_stamps = page.modified_at(SYNC_KEYS)
    extension_stamps = extension.modified_at(SYNC_KEYS)
    return [
        KeyComparison(
            key=key,
            page_value=page_values.get(key),
            extension_value=extension_values.get(key),
            page_updated_at=page_stamps.get(key),
            extension_updated_at=extension_stamps.get(key),
        )
        for key in SYNC_KEYS
    ]


def _winner(item: KeyComparison, mode: str) -> str | None:
    page_empty = is_empty(item.page_value)
    extension_empty = is_empty(item.extension_value)
    if mode == MODE_PUSH:
        return None if page_empty else PAGE_TO_EXTENSION
    if credential_guarded(item.key, item.page_value, item.extension_value):
        return EXTENSION_TO_PAGE
    if credential_guarded(item.key, item.extension_value, item.page_value):
        return PAGE_TO_EXTENSION
    if item.page_value is None:
        return None if extension_empty else EXTENSION_TO_PAGE
    if item.extension_value is None:
        return None if page_empty else PAGE_TO_EXTENSION
    if (item.extension_updated_at or "") > (item.page_updated_at or ""):
        return EXTENSION_TO_PAGE
    return PAGE_TO_EXTENSION


def reconcile_pass(
    page: PageStore,
    extension: ExtensionStore,
    *,
    mode: str = MODE_SYMMETRIC,
    signal: SyncSignal | None = None,
) -> list[Correction]:
    """Compare every shared key across both stores and correct drift.

    `push` treats the page store as the truth and never pushes an empty value.
    `symmetric` lets the most recently modified side win (ties go to the page
    store); an empty credential never wins over a non-empty one.
    """
    if mode not in RECONCILE_MODES:
        raise ValueError(f"unknown reconcile mode: {mode}")
    corrections: list[Correction] = []
    page_raw = page.get_raw(SYNC_KEYS)
    for item in compare_stores(page, extension):
        if item.in_sync:
            continue
        direction = _winner(item, mode)
        if direction == EXTENSION_TO_PAGE and text_holds(
            page_raw.get(item.key), item.extension_value
        ):
            # The page text already spells this value; settle on its decoded form.
            direction = PAGE_TO_EXTENSION
        if direction == PAGE_TO_EXTENSION:
            extension.set({item.key: item.page_value})
            corrections.append(Correction(item.key, direction, item.page_value))
        elif direction == EXTENSION_TO_PAGE:
            page.set({item.key: encode_value(item.extension_value)})
            corrections.append(Correction(item.key, direction, item.extension_value))
    for correction in corrections:
        logger.debug("reconciled %s (%s)", correction.key, correction.direction)
    if signal is not None and any(c.direction == EXTENSION_TO_PAGE for c in corrections):
        signal.dispatch()
    return corrections
