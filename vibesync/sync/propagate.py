from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..codec import decode_value, encode_value, is_empty, text_holds
from ..keys import SyncKey, is_sync_key
from ..signals import SyncSignal
from ..store import EXTENSION_AREA, ExtensionStore, PageStore, StorageChange

logger = logging.getLogger(__name__)

WRITTEN = "written"
GUARDED = "guarded"
UNCHANGED = "unchanged"


def credential_guarded(key: str, incoming: Any, existing: Any) -> bool:
    """True when an empty credential would clobber a non-empty one."""
    return key == SyncKey.CREDENTIAL.value and is_empty(incoming) and not is_empty(existing)


def propagate_page_changes(
    changes: Mapping[str, StorageChange],
    extension: ExtensionStore,
) -> dict[str, str]:
    outcomes: dict[str, str] = {}
    for key, change in changes.items():
        if not is_sync_key(key):
            continue
        incoming = decode_value(change.new_value)
        existing = extension.get_one(key)
        if credential_guarded(key, incoming, existing):
            logger.debug("dropped empty %s from page store", key)
            outcomes[key] = GUARDED
            continue
        if incoming == existing:
            outcomes[key] = UNCHANGED
            continue
        if incoming is None:
            extension.remove([key])
        else:
            extension.set({key: incoming})
        outcomes[key] = WRITTEN
    return outcomes


def propagate_extension_changes(
    changes: Mapping[str, StorageChange],
    area: str,
    page: PageStore,
    signal: SyncSignal | None = None,
) -> dict[str, str]:
    outcomes: dict[str, str] = {}
    if area != EXTENSION_AREA:
        return outcomes
    for key, change in changes.items():
        if not is_sync_key(key):
            continue
        incoming = change.new_value
        raw = page.get_raw([key]).get(key)
        existing = decode_value(raw)
        if credential_guarded(key, incoming, existing):
            logger.debug("dropped empty %s from extension store", key)
            outcomes[key] = GUARDED
            continue
        if text_holds(raw, incoming):
            outcomes[key] = UNCHANGED
            continue
        if incoming is None:
            page.remove([key])
        else:
            page.set({key: encode_value(incoming)})
        outcomes[key] = WRITTEN
    if signal is not None and WRITTEN in outcomes.values():
        signal.dispatch()
    return outcomes
