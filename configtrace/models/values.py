"""Canonical value model shared by every configuration format.

All three source formats (YAML, JSON, TOML) converge on this closed set of
immutable value kinds.  Consumers dispatch with ``isinstance`` over the six
classes; ``Value`` is the union alias.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import TypeAlias


class ValueKind(StrEnum):
    """Kind tag of a canonical value (used in serialized snapshots)."""

    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    LIST = "list"
    MAP = "map"


@dataclass(frozen=True)
class NullValue:
    kind = ValueKind.NULL


@dataclass(frozen=True)
class BoolValue:
    value: bool
    kind = ValueKind.BOOL


@dataclass(frozen=True, eq=False)
class NumberValue:
    """Exact decimal number.

    Equality is by numeric value, so ``1.0`` equals ``1``.  NaN compares equal
    to NaN so that a document always equals itself.
    """

    value: Decimal
    kind = ValueKind.NUMBER

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NumberValue):
            return NotImplemented
        if self.value.is_nan() or other.value.is_nan():
            return self.value.is_nan() and other.value.is_nan()
        return self.value == other.value

    def __hash__(self) -> int:
        if self.value.is_nan():
            return hash("nan")
        return hash(self.value)


@dataclass(frozen=True)
class StringValue:
    value: str
    kind = ValueKind.STRING


@dataclass(frozen=True)
class ListValue:
    items: tuple[Value, ...] = ()
    kind = ValueKind.LIST


@dataclass(frozen=True, eq=False)
class MapValue:
    """Ordered mapping of unique string keys to values.

    Source order is preserved in ``entries``; equality ignores order.
    """

    entries: tuple[tuple[str, Value], ...] = ()
    kind = ValueKind.MAP

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MapValue):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)

    def __hash__(self) -> int:
        return hash(frozenset(self.entries))

    def keys(self) -> list[str]:
        return [key for key, _ in self.entries]


Value: TypeAlias = NullValue | BoolValue | NumberValue | StringValue | ListValue | MapValue
ScalarValue: TypeAlias = NullValue | BoolValue | NumberValue | StringValue

NULL = NullValue()

_PLAIN_DIGITS = 1000


def is_container(value: Value) -> bool:
    return isinstance(value, (ListValue, MapValue))


def _strip_zeros(number: Decimal) -> Decimal:
    sign, digits, exponent = number.as_tuple()
    while len(digits) > 1 and digits[-1] == 0:
        digits = digits[:-1]
        exponent += 1
    return Decimal((sign, digits, exponent))


def render_number(number: Decimal) -> str:
    """Canonical text for a number: ``1.50`` -> ``1.5``, ``1E+2`` -> ``100``.

    Magnitudes beyond ``_PLAIN_DIGITS`` digits use scientific notation
    (``1E+5000``) instead of being written out in full.
    """
    if number.is_nan():
        return "nan"
    if number.is_infinite():
        return "-inf" if number < 0 else "inf"
    if number.is_zero():
        return "0"
    number = _strip_zeros(number)
    if abs(number.adjusted()) > _PLAIN_DIGITS:
        return str(number)
    return format(number, "f")


def render_value(value: Value) -> str:
    """Return the string representation used for display and regex checks."""
    if isinstance(value, StringValue):
        return value.value
    if isinstance(value, NumberValue):
        return render_number(value.value)
    if isinstance(value, BoolValue):
        return "true" if value.value else "false"
    if isinstance(value, NullValue):
        return "null"
    if isinstance(value, ListValue):
        return "[" + ", ".join(render_value(item) for item in value.items) + "]"
    return "{" + ", ".join(f"{key}: {render_value(item)}" for key, item in value.entries) + "}"


def to_plain(value: Value) -> object:
    """Convert to JSON-friendly Python data for report rendering."""
    if isinstance(value, NullValue):
        return None
    if isinstance(value, BoolValue):
        return value.value
    if isinstance(value, StringValue):
        return value.value
    if isinstance(value, NumberValue):
        number = value.value
        if not number.is_finite() or abs(number.adjusted()) > _PLAIN_DIGITS:
            return render_number(number)
        if number == number.to_integral_value():
            return int(number)
        return float(number)
    if isinstance(value, ListValue):
        return [to_plain(item) for item in value.items]
    return {key: to_plain(item) for key, item in value.entries}


def to_typed(value: Value) -> dict[str, object]:
    """Lossless tagged encoding used by snapshot files."""
    if isinstance(value, NullValue):
        return {"kind": ValueKind.NULL.value}
    if isinstance(value, BoolValue):
        return {"kind": ValueKind.BOOL.value, "value": value.value}
    if isinstance(value, NumberValue):
        return {"kind": ValueKind.NUMBER.value, "value": str(value.value)}
    if isinstance(value, StringValue):
        return {"kind": ValueKind.STRING.value, "value": value.value}
    if isinstance(value, ListValue):
        return {"kind": ValueKind.LIST.value, "items": [to_typed(item) for item in value.items]}
    return {
        "kind": ValueKind.MAP.value,
        "entries": [[key, to_typed(item)] for key, item in value.entries],
    }


def from_typed(data: object) -> Value:
    """Inverse of :func:`to_typed`.  Raises ``ValueError`` on malformed input."""
    if not isinstance(data, dict):
        raise ValueError(f"expected a tagged value object, got {type(data).__name__}")
    try:
        kind = ValueKind(data.get("kind"))
    except ValueError as exc:
        raise ValueError(f"unknown value kind: {data.get('kind')!r}") from exc

    if kind is ValueKind.NULL:
        return NULL
    if kind is ValueKind.BOOL:
        raw = data.get("value")
        if not isinstance(raw, bool):
            raise ValueError("bool value must be true or false")
        return BoolValue(raw)
    if kind is ValueKind.NUMBER:
        try:
            return NumberValue(Decimal(str(data.get("value"))))
        except ArithmeticError as exc:
            raise ValueError(f"invalid number: {data.get('value')!r}") from exc
    if kind is ValueKind.STRING:
        raw = data.get("value")
        if not isinstance(raw, str):
            raise ValueError("string value must be a string")
        return StringValue(raw)
    if kind is ValueKind.LIST:
        return ListValue(tuple(from_typed(item) for item in data.get("items", [])))
    entries = []
    for pair in data.get("entries", []):
        if not isinstance(pair, list) or len(pair) != 2 or not isinstance(pair[0], str):
            raise ValueError("map entries must be [key, value] pairs")
        entries.append((pair[0], from_typed(pair[1])))
    return MapValue(tuple(entries))
