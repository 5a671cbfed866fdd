from __future__ import annotations

import logging

from ..codec import encode_value, is_empty
from ..keys import SYNC_KEYS
from ..signals import SyncSignal
from ..store import ExtensionStore, PageStore

logger = logging.getLogger(__name__)


def bootstrap_page_store(
    page: PageStore,
    extension: ExtensionStore,
    signal: SyncSignal | None = None,
) -> list[str]:
    """Seed the page store from the extension store once, before any UI renders.

    The extension store is authoritative only at this moment: every shared key
    it holds with a non-empty value overwrites the page copy.
    """
    values = extension.get(SYNC_KEYS)
    entries = {key: encode_value(value) for key, value in values.items() if not is_empty(value)}
    if entries:
        page.set(entries)
        logger.debug("seeded page store keys: %s", sorted(entries))
    if signal is not None:
        signal.dispatch()
    return sorted(entries)
