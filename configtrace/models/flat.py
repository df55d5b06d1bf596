"""Flattened (leaf-level) view of a canonical value tree."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from configtrace.models.values import BoolValue, ListValue, MapValue, NullValue, NumberValue, StringValue, Value

Segment = str | int


def join_path(segments: Iterable[Segment]) -> str:
    return ".".join(str(segment) for segment in segments)


@dataclass(frozen=True)
class FlatEntry:
    """One leaf of a document.

    ``segments`` keeps map keys as ``str`` and list indices as ``int`` so the
    container shape can be rebuilt from a set of entries.
    """

    segments: tuple[Segment, ...]
    value: Value

    @property
    def key_path(self) -> str:
        return join_path(self.segments)


class DuplicateKeyPathError(ValueError):
    """Two distinct leaves flatten to the same dotted key path."""

    def __init__(self, key_path: str) -> None:
        super().__init__(f"ambiguous key path '{key_path}' (a key containing '.' collides with a nested key)")
        self.key_path = key_path


class FlattenedMapping(Mapping[str, Value]):
    """Read-only mapping of dotted key path to leaf value for one document.

    Iteration follows source order.  Use :meth:`sorted_keys` where a
    deterministic lexicographic order is required.
    """

    __slots__ = ("_entries", "_prefixes")

    def __init__(self, entries: Iterable[FlatEntry] = ()) -> None:
        self._entries: dict[str, FlatEntry] = {}
        for entry in entries:
            key = entry.key_path
            if key in self._entries:
                raise DuplicateKeyPathError(key)
            self._entries[key] = entry
        self._prefixes: frozenset[tuple[Segment, ...]] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> FlattenedMapping:
        """Build a mapping from ``{"a.b": <python value>}`` pairs.

        Numeric path segments are treated as list indices.  Intended for
        callers that already hold flat data (tests, ad-hoc comparisons).
        """
        from configtrace.normalizer.convert import to_value

        entries = []
        for key, raw in data.items():
            segments = tuple(int(part) if part.isdigit() else part for part in key.split(".")) if key else ()
            entries.append(FlatEntry(segments, raw if _is_value(raw) else to_value(raw)))
        return cls(entries)

    def __getitem__(self, key: str) -> Value:
        return self._entries[key].value

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        inner = ", ".join(f"{key!r}: {entry.value!r}" for key, entry in self._entries.items())
        return f"FlattenedMapping({{{inner}}})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FlattenedMapping):
            return {k: e.value for k, e in self._entries.items()} == {k: e.value for k, e in other._entries.items()}
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def entry(self, key: str) -> FlatEntry:
        return self._entries[key]

    def entries(self) -> list[FlatEntry]:
        return list(self._entries.values())

    def sorted_keys(self) -> list[str]:
        return sorted(self._entries)

    def container_prefixes(self) -> frozenset[tuple[Segment, ...]]:
        """Segment tuples of every non-empty container that has leaves below it."""
        if self._prefixes is None:
            prefixes: set[tuple[Segment, ...]] = set()
            for entry in self._entries.values():
                for depth in range(1, len(entry.segments)):
                    prefixes.add(entry.segments[:depth])
            self._prefixes = frozenset(prefixes)
        return self._prefixes

    def has_node(self, key: str) -> bool:
        """True if ``key`` names a leaf or a container with leaves below it."""
        if key in self._entries:
            return True
        prefix = key + "."
        return any(candidate.startswith(prefix) for candidate in self._entries)

    def subtree(self, segments: tuple[Segment, ...]) -> Value:
        """Rebuild the container value rooted at ``segments`` from its leaves."""
        depth = len(segments)
        below = [
            (entry.segments[depth:], entry.value)
            for entry in self._entries.values()
            if len(entry.segments) > depth and entry.segments[:depth] == segments
        ]
        if not below:
            raise KeyError(join_path(segments))
        return _build(below)


def _is_value(raw: object) -> bool:
    return isinstance(raw, (NullValue, BoolValue, NumberValue, StringValue, ListValue, MapValue))


def _build(items: list[tuple[tuple[Segment, ...], Value]]) -> Value:
    if len(items) == 1 and not items[0][0]:
        return items[0][1]

    groups: dict[Segment, list[tuple[tuple[Segment, ...], Value]]] = {}
    for rel, value in items:
        groups.setdefault(rel[0], []).append((rel[1:], value))

    if all(isinstance(head, int) for head in groups):
        ordered = sorted(groups.items(), key=lambda kv: kv[0])
        return ListValue(tuple(_build(children) for _, children in ordered))
    return MapValue(tuple((str(head), _build(children)) for head, children in groups.items()))
