"""Key-path diff between two flattened documents.

Equality is structural on canonical values: type and value must both match,
so the string ``"20"`` differs from the number ``20`` while ``1.0`` equals
``1``.  Output is sorted lexicographically by key path and a key path never
appears in more than one Change.

A key that is a leaf on one side and a non-empty container on the other is
reported once, as CHANGED at that key, with the container rebuilt from its
leaves.  Its descendants do not produce further changes.
"""

from __future__ import annotations

from configtrace.models.changes import Change, FileChanges, FileStatus, SnapshotDiff
from configtrace.models.flat import FlattenedMapping
from configtrace.models.snapshot import Snapshot
from configtrace.observability.logging import get_logger
from configtrace.observability.metrics import diff_changes_total

_logger = get_logger("diff.engine")

EMPTY = FlattenedMapping()


def diff(old: FlattenedMapping, new: FlattenedMapping) -> list[Change]:
    """Compare two flattened mappings and return the ordered change set."""
    changes: dict[str, Change] = {}
    absorbed_old: set[str] = set()
    absorbed_new: set[str] = set()

    # leaf <-> container transitions
    new_prefixes = new.container_prefixes()
    for key in old:
        if key in new:
            continue
        entry = old.entry(key)
        if entry.segments and entry.segments in new_prefixes:
            changes[key] = Change.changed(key, entry.value, new.subtree(entry.segments))
            absorbed_new.update(_keys_below(new, entry.segments))

    old_prefixes = old.container_prefixes()
    for key in new:
        if key in old:
            continue
        entry = new.entry(key)
        if entry.segments and entry.segments in old_prefixes:
            changes[key] = Change.changed(key, old.subtree(entry.segments), entry.value)
            absorbed_old.update(_keys_below(old, entry.segments))

    for key in old:
        if key in changes or key in absorbed_old:
            continue
        if key not in new:
            changes[key] = Change.removed(key, old[key])
        elif old[key] != new[key]:
            changes[key] = Change.changed(key, old[key], new[key])

    for key in new:
        if key in changes or key in absorbed_new or key in old:
            continue
        changes[key] = Change.added(key, new[key])

    ordered = [changes[key] for key in sorted(changes)]
    for change in ordered:
        diff_changes_total.labels(kind=change.kind.value).inc()
    return ordered


def _keys_below(mapping: FlattenedMapping, segments: tuple) -> list[str]:
    depth = len(segments)
    return [
        entry.key_path
        for entry in mapping.entries()
        if len(entry.segments) > depth and entry.segments[:depth] == segments
    ]


def file_changes(path: str, old: FlattenedMapping | None, new: FlattenedMapping | None) -> FileChanges:
    """Diff one file where either side may be absent (``None``).

    An absent old side makes every entry ADDED; an absent new side makes
    every entry REMOVED.
    """
    if old is None and new is None:
        raise ValueError(f"{path}: at least one side of the comparison must exist")
    if old is None:
        status = FileStatus.ADDED
    elif new is None:
        status = FileStatus.REMOVED
    else:
        status = FileStatus.MODIFIED
    return FileChanges(path=path, status=status, changes=diff(old or EMPTY, new or EMPTY))


def diff_snapshots(old: Snapshot, new: Snapshot) -> SnapshotDiff:
    """Compare two inventories file by file, matching on relative path.

    Files present on one side only are reported as whole-file additions or
    removals.  Files that failed to parse on either side are reported as
    errors without key-level changes.  Unchanged files are omitted.
    """
    result = SnapshotDiff()
    old_paths = set(old.files)
    new_paths = set(new.files)

    result.files_added = sorted(new_paths - old_paths)
    result.files_removed = sorted(old_paths - new_paths)

    for path in sorted(old_paths & new_paths):
        before = old.files[path]
        after = new.files[path]
        if before.mapping is None or after.mapping is None:
            errors = []
            if before.error:
                errors.append(f"old: {before.error}")
            if after.error:
                errors.append(f"new: {after.error}")
            result.file_changes.append(
                FileChanges(path=path, status=FileStatus.ERROR, error="; ".join(errors) or "not parsed")
            )
            continue
        if before.sha256 and before.sha256 == after.sha256:
            continue
        changes = diff(before.mapping, after.mapping)
        if changes:
            result.file_changes.append(FileChanges(path=path, status=FileStatus.MODIFIED, changes=changes))

    _logger.info(
        "snapshot_diff",
        files_added=len(result.files_added),
        files_removed=len(result.files_removed),
        files_changed=sum(1 for fc in result.file_changes if fc.changes),
        errors=len(result.errors),
    )
    return result
