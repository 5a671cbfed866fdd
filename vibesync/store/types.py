from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StorageChange:
    old_value: Any = None
    new_value: Any = None


ChangeListener = Callable[[dict[str, StorageChange], str], None]
