"""Inventory snapshot: the flattened mapping of every config file under a root.

A snapshot serializes to JSON with typed leaves so it can later stand in for
the "old" side of a diff without re-reading the original files.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from configtrace.models.flat import FlatEntry, FlattenedMapping
from configtrace.models.values import from_typed, to_typed

SNAPSHOT_VERSION = 1


@dataclass
class FileSnapshot:
    """One config file: its hash and either a mapping or a parse error."""

    path: str
    format: str
    sha256: str
    mapping: FlattenedMapping | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.mapping is not None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "path": self.path,
            "format": self.format,
            "sha256": self.sha256,
        }
        if self.mapping is not None:
            data["entries"] = [
                {"path": list(entry.segments), "value": to_typed(entry.value)}
                for entry in self.mapping.entries()
            ]
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> FileSnapshot:
        mapping = None
        raw_entries = data.get("entries")
        if raw_entries is not None:
            if not isinstance(raw_entries, list):
                raise ValueError("file entries must be a list")
            entries = []
            for raw in raw_entries:
                if not isinstance(raw, dict) or not isinstance(raw.get("path"), list):
                    raise ValueError(f"invalid entry: {raw!r}")
                segments = tuple(raw["path"])
                if not all(isinstance(s, (str, int)) and not isinstance(s, bool) for s in segments):
                    raise ValueError(f"invalid key path segments: {raw['path']!r}")
                entries.append(FlatEntry(segments, from_typed(raw["value"])))
            mapping = FlattenedMapping(entries)
        error = data.get("error")
        if error is not None and not isinstance(error, str):
            raise ValueError("file error must be a string")
        return cls(
            path=str(data["path"]),
            format=str(data.get("format", "")),
            sha256=str(data.get("sha256", "")),
            mapping=mapping,
            error=error,
        )


@dataclass
class Snapshot:
    """All config files found under ``root``, keyed by relative POSIX path."""

    root: str
    created_at: str
    files: dict[str, FileSnapshot] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "snapshot_version": SNAPSHOT_VERSION,
            "root": self.root,
            "created_at": self.created_at,
            "files": [self.files[path].to_dict() for path in sorted(self.files)],
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Snapshot:
        if data.get("snapshot_version") != SNAPSHOT_VERSION:
            raise ValueError(f"unsupported snapshot_version: {data.get('snapshot_version')!r}")
        raw_files = data.get("files", [])
        if not isinstance(raw_files, list):
            raise ValueError("'files' must be a list")
        files = {}
        for raw in raw_files:
            if not isinstance(raw, dict):
                raise ValueError(f"file record must be an object, got {type(raw).__name__}")
            snap = FileSnapshot.from_dict(raw)
            files[snap.path] = snap
        return cls(root=str(data.get("root", "")), created_at=str(data.get("created_at", "")), files=files)
