from __future__ import annotations

import json
from typing import Any


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def decode_value(value: Any) -> Any:
    """Best-effort decode of a stored value.

    Strings are parsed as strict JSON; anything that fails to parse, including
    the `NaN` / `Infinity` constants Python would otherwise accept, is returned
    as the raw string. Non-string values are already decoded and pass through.
    """
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value, parse_constant=_reject_constant)
    except ValueError:
        return value


def encode_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def values_equal(raw: Any, decoded: Any) -> bool:
    """Compare a stored raw value against an already-decoded one."""
    return decode_value(raw) == decoded


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def text_holds(raw: str | None, value: Any) -> bool:
    """True when writing `value` into a string-only store holding `raw` changes nothing.

    Either the stored text decodes to `value`, or `value` serializes to the
    stored text (a JSON-looking string such as `"[1]"` cannot be told apart
    from the list it spells once it is stored as text).
    """
    if values_equal(raw, value):
        return True
    return raw is not None and value is not None and encode_value(value) == raw
