from __future__ import annotations

from .adapters import EXTENSION_AREA, PAGE_AREA, ExtensionStore, PageStore, StorageAdapter
from .area import StorageArea
from .types import ChangeListener, StorageChange

__all__ = [
    "EXTENSION_AREA",
    "PAGE_AREA",
    "ChangeListener",
    "ExtensionStore",
    "PageStore",
    "StorageAdapter",
    "StorageArea",
    "StorageChange",
]
