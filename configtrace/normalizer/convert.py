"""Conversion of parser output (plain Python data) into canonical values.

Format-specific richness degrades to the nearest canonical kind:

* dates, times and datetimes (YAML, TOML) become ISO-8601 strings
* ``bytes`` (YAML ``!!binary``) become base64 strings
* sets (YAML ``!!set``) become maps whose values are null
* non-string map keys (YAML) are stringified with the scalar rendering
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal

from configtrace.models.values import (
    NULL,
    BoolValue,
    ListValue,
    MapValue,
    NumberValue,
    StringValue,
    Value,
    render_number,
)

DEFAULT_MAX_DEPTH = 64


class ConversionError(ValueError):
    """Parser output cannot be represented as a canonical value."""


def to_value(obj: object, max_depth: int = DEFAULT_MAX_DEPTH) -> Value:
    """Convert plain Python data to a canonical :data:`Value`.

    Raises ConversionError for duplicate keys after stringification, keys of
    unsupported types, unsupported leaf types, or nesting beyond *max_depth*
    (which also catches self-referencing YAML aliases).
    """
    return _convert(obj, 0, max_depth)


def _convert(obj: object, depth: int, max_depth: int) -> Value:
    if obj is None:
        return NULL
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return BoolValue(obj)
    if isinstance(obj, int):
        return NumberValue(Decimal(obj))
    if isinstance(obj, float):
        return NumberValue(Decimal(repr(obj)))
    if isinstance(obj, Decimal):
        return NumberValue(obj)
    if isinstance(obj, str):
        return StringValue(obj)
    if isinstance(obj, (bytes, bytearray)):
        return StringValue(base64.b64encode(bytes(obj)).decode("ascii"))
    if isinstance(obj, (datetime, date, time)):
        return StringValue(obj.isoformat())

    if depth >= max_depth:
        raise ConversionError(f"nesting depth exceeds the maximum of {max_depth}")

    if isinstance(obj, Mapping):
        entries: list[tuple[str, Value]] = []
        seen: set[str] = set()
        for raw_key, raw_value in obj.items():
            key = key_text(raw_key)
            if key in seen:
                raise ConversionError(f"duplicate key '{key}'")
            seen.add(key)
            entries.append((key, _convert(raw_value, depth + 1, max_depth)))
        return MapValue(tuple(entries))
    if isinstance(obj, (set, frozenset)):
        keys = sorted(key_text(item) for item in obj)
        return MapValue(tuple((key, NULL) for key in keys))
    if isinstance(obj, (list, tuple)):
        return ListValue(tuple(_convert(item, depth + 1, max_depth) for item in obj))

    raise ConversionError(f"unsupported value type {type(obj).__name__}")


def key_text(key: object) -> str:
    """Canonical text of a map key; non-string YAML keys use the scalar rendering."""
    if isinstance(key, str):
        return key
    if key is None:
        return "null"
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, (int, float, Decimal)):
        return render_number(Decimal(repr(key)) if isinstance(key, float) else Decimal(key))
    if isinstance(key, (datetime, date, time)):
        return key.isoformat()
    raise ConversionError(f"unsupported map key type {type(key).__name__}")
