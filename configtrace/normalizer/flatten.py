"""Flatten a canonical value tree into dotted key-path entries."""

from __future__ import annotations

from configtrace.models.flat import FlatEntry, FlattenedMapping, Segment
from configtrace.models.values import ListValue, MapValue, NullValue, Value


def flatten(root: Value) -> FlattenedMapping:
    """Return one entry per leaf reachable from *root*.

    List elements get zero-based integer segments.  Empty maps and lists
    below the root are kept as a single entry holding the empty container.
    A null or empty root yields an empty mapping; a scalar root is stored
    under the empty key path.

    Raises DuplicateKeyPathError when two leaves join to the same key path.
    """
    if isinstance(root, NullValue):
        return FlattenedMapping()
    if isinstance(root, MapValue) and not root.entries:
        return FlattenedMapping()
    if isinstance(root, ListValue) and not root.items:
        return FlattenedMapping()

    entries: list[FlatEntry] = []
    # explicit stack, children pushed in reverse to keep source order
    stack: list[tuple[tuple[Segment, ...], Value]] = [((), root)]
    while stack:
        segments, value = stack.pop()
        if isinstance(value, MapValue) and value.entries:
            for key, child in reversed(value.entries):
                stack.append(((*segments, key), child))
        elif isinstance(value, ListValue) and value.items:
            for index in range(len(value.items) - 1, -1, -1):
                stack.append(((*segments, index), value.items[index]))
        else:
            entries.append(FlatEntry(segments, value))
    return FlattenedMapping(entries)
