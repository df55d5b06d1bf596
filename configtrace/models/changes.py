"""Key-level change structures produced by the diff engine and history walker."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from configtrace.models.policy import Violation
from configtrace.models.values import Value, to_plain


class ChangeKind(StrEnum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class FileStatus(StrEnum):
    """How a file as a whole differs between the two sides of a comparison."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    ERROR = "error"


@dataclass(frozen=True)
class Change:
    """One classified difference at one key path.

    ``old_value`` is None only for ADDED, ``new_value`` only for REMOVED.
    """

    kind: ChangeKind
    key_path: str
    old_value: Value | None = None
    new_value: Value | None = None

    @classmethod
    def added(cls, key_path: str, new_value: Value) -> Change:
        return cls(ChangeKind.ADDED, key_path, None, new_value)

    @classmethod
    def removed(cls, key_path: str, old_value: Value) -> Change:
        return cls(ChangeKind.REMOVED, key_path, old_value, None)

    @classmethod
    def changed(cls, key_path: str, old_value: Value, new_value: Value) -> Change:
        return cls(ChangeKind.CHANGED, key_path, old_value, new_value)

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "key": self.key_path,
            "old_value": None if self.old_value is None else to_plain(self.old_value),
            "new_value": None if self.new_value is None else to_plain(self.new_value),
        }


@dataclass
class FileChanges:
    """Changes, violations and errors for one file in one comparison."""

    path: str
    status: FileStatus
    changes: list[Change] = field(default_factory=list)
    violations: list[Violation] = field(default_factory=list)
    error: str | None = None

    @property
    def keys_added(self) -> int:
        return sum(1 for c in self.changes if c.kind is ChangeKind.ADDED)

    @property
    def keys_removed(self) -> int:
        return sum(1 for c in self.changes if c.kind is ChangeKind.REMOVED)

    @property
    def keys_changed(self) -> int:
        return sum(1 for c in self.changes if c.kind is ChangeKind.CHANGED)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "path": self.path,
            "status": self.status.value,
            "keys_added": self.keys_added,
            "keys_removed": self.keys_removed,
            "keys_changed": self.keys_changed,
            "changes": [c.to_dict() for c in self.changes],
        }
        if self.violations:
            data["violations"] = [v.to_dict() for v in self.violations]
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class RevisionInfo:
    """Revision metadata as delivered by the version-control collaborator.

    ``paths`` lists the files touched relative to ``parent_id`` (first parent).
    """

    revision_id: str
    parent_id: str | None
    author: str
    timestamp: str
    message: str
    paths: tuple[str, ...] = ()


@dataclass
class RevisionChangeSet:
    """Per-revision bundle of file-level changes, violations and errors."""

    revision_id: str
    author: str
    timestamp: str | None
    message: str
    file_changes: list[FileChanges] = field(default_factory=list)

    @property
    def short_id(self) -> str:
        return self.revision_id[:7]

    @property
    def summary(self) -> str:
        return self.message.splitlines()[0] if self.message else ""

    @property
    def violations(self) -> list[Violation]:
        return [v for fc in self.file_changes for v in fc.violations]

    @property
    def errors(self) -> list[FileChanges]:
        return [fc for fc in self.file_changes if fc.status is FileStatus.ERROR]

    def to_dict(self) -> dict[str, object]:
        return {
            "revision": self.revision_id,
            "short_revision": self.short_id,
            "author": self.author,
            "timestamp": self.timestamp,
            "message": self.message,
            "files": [fc.to_dict() for fc in self.file_changes],
        }


@dataclass
class SnapshotDiff:
    """Comparison of two inventories (directories or snapshot files).

    Files present on one side only are listed by path and not expanded
    into key-level changes.
    """

    files_added: list[str] = field(default_factory=list)
    files_removed: list[str] = field(default_factory=list)
    file_changes: list[FileChanges] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(
            self.files_added
            or self.files_removed
            or any(fc.changes for fc in self.file_changes)
        )

    @property
    def errors(self) -> list[FileChanges]:
        return [fc for fc in self.file_changes if fc.status is FileStatus.ERROR]

    def to_dict(self) -> dict[str, object]:
        return {
            "files_added": list(self.files_added),
            "files_removed": list(self.files_removed),
            "files": [fc.to_dict() for fc in self.file_changes],
        }
