"""Tests for the Diff Engine: key-level, single-file and snapshot diffs."""

from __future__ import annotations

from decimal import Decimal

import pytest
from hypothesis import given, settings

from configtrace.diff import diff, diff_snapshots, file_changes
from configtrace.models.changes import Change, ChangeKind, FileStatus
from configtrace.models.snapshot import FileSnapshot, Snapshot
from configtrace.models.values import ListValue, MapValue, NumberValue, StringValue
from configtrace.normalizer import flatten, to_value

from .conftest import make_mapping, map_documents


def _snapshot(files: dict[str, dict | None], errors: dict[str, str] | None = None) -> Snapshot:
    snap = Snapshot(root="/tmp/x", created_at="2026-03-02T00:00:00+00:00")
    for path, data in files.items():
        snap.files[path] = FileSnapshot(
            path=path,
            format="yaml",
            sha256=str(hash(repr(data))),
            mapping=make_mapping(data) if data is not None else None,
            error=(errors or {}).get(path),
        )
    return snap


class TestDiff:
    def test_identical_mappings(self) -> None:
        mapping = make_mapping({"a": 1, "b.c": "x"})
        assert diff(mapping, mapping) == []

    def test_string_to_number_is_a_change(self) -> None:
        changes = diff(make_mapping({"timeout": "20"}), make_mapping({"timeout": 20}))
        assert len(changes) == 1
        change = changes[0]
        assert change.kind is ChangeKind.CHANGED
        assert change.key_path == "timeout"
        assert change.old_value == StringValue("20")
        assert change.new_value == NumberValue(Decimal(20))

    def test_float_and_int_are_equal(self) -> None:
        assert diff(make_mapping({"n": 1}), make_mapping({"n": Decimal("1.0")})) == []

    def test_mixed_changes_sorted_by_key(self) -> None:
        old = make_mapping({"z": 1, "a": 1, "b": 2, "c": 3})
        new = make_mapping({"z": 9, "a": 1, "b": "changed", "d": 4})
        changes = diff(old, new)
        assert [(c.key_path, c.kind) for c in changes] == [
            ("b", ChangeKind.CHANGED),
            ("c", ChangeKind.REMOVED),
            ("d", ChangeKind.ADDED),
            ("z", ChangeKind.CHANGED),
        ]

    def test_added_and_removed_carry_one_value(self) -> None:
        changes = diff(make_mapping({"old": 1}), make_mapping({"new": 2}))
        removed, added = sorted(changes, key=lambda c: c.kind.value, reverse=True)
        assert removed.kind is ChangeKind.REMOVED and removed.new_value is None
        assert added.kind is ChangeKind.ADDED and added.old_value is None

    def test_list_elements_compared_positionally(self) -> None:
        old = flatten(to_value({"hosts": ["a", "b"]}))
        new = flatten(to_value({"hosts": ["b", "a", "c"]}))
        assert [(c.key_path, c.kind) for c in diff(old, new)] == [
            ("hosts.0", ChangeKind.CHANGED),
            ("hosts.1", ChangeKind.CHANGED),
            ("hosts.2", ChangeKind.ADDED),
        ]

    def test_leaf_to_container_is_one_change(self) -> None:
        old = flatten(to_value({"db": "sqlite://x"}))
        new = flatten(to_value({"db": {"host": "h", "port": 1}}))
        changes = diff(old, new)
        assert len(changes) == 1
        assert changes[0].kind is ChangeKind.CHANGED
        assert changes[0].key_path == "db"
        assert changes[0].old_value == StringValue("sqlite://x")
        assert changes[0].new_value == to_value({"host": "h", "port": 1})

    def test_container_to_leaf_is_one_change(self) -> None:
        old = flatten(to_value({"db": ["a"]}))
        new = flatten(to_value({"db": None}))
        changes = diff(old, new)
        assert [(c.key_path, c.kind) for c in changes] == [("db", ChangeKind.CHANGED)]
        assert changes[0].old_value == ListValue((StringValue("a"),))

    def test_empty_container_to_populated(self) -> None:
        old = flatten(to_value({"labels": {}}))
        new = flatten(to_value({"labels": {"team": "core"}}))
        changes = diff(old, new)
        assert len(changes) == 1
        assert changes[0].old_value == MapValue()
        assert changes[0].new_value == to_value({"team": "core"})

    def test_no_key_path_repeats(self) -> None:
        old = flatten(to_value({"a": 1, "b": {"c": 1}, "d": [1, 2]}))
        new = flatten(to_value({"a": {"x": 1}, "b": 2, "d": [1]}))
        keys = [c.key_path for c in diff(old, new)]
        assert len(keys) == len(set(keys))
        assert keys == sorted(keys)

    def test_host_change_and_new_pool_size(self) -> None:
        old = make_mapping({"database.host": "localhost"})
        new = make_mapping({"database.host": "db.prod.internal", "database.pool_size": 20})
        assert diff(old, new) == [
            Change.changed("database.host", StringValue("localhost"), StringValue("db.prod.internal")),
            Change.added("database.pool_size", NumberValue(Decimal(20))),
        ]


class TestFileChanges:
    def test_absent_old_side_adds_everything(self) -> None:
        fc = file_changes("app.yaml", None, make_mapping({"a": 1, "b": 2}))
        assert fc.status is FileStatus.ADDED
        assert fc.keys_added == 2
        assert all(c.kind is ChangeKind.ADDED for c in fc.changes)

    def test_absent_new_side_removes_everything(self) -> None:
        fc = file_changes("app.yaml", make_mapping({"a": 1}), None)
        assert fc.status is FileStatus.REMOVED
        assert fc.keys_removed == 1

    def test_both_absent_is_an_error(self) -> None:
        with pytest.raises(ValueError):
            file_changes("app.yaml", None, None)


class TestDiffSnapshots:
    def test_files_on_one_side_are_not_expanded(self) -> None:
        old = _snapshot({"a.yaml": {"x": 1}, "gone.yaml": {"y": 1}})
        new = _snapshot({"a.yaml": {"x": 1}, "new.yaml": {"z": 1}})
        result = diff_snapshots(old, new)
        assert result.files_added == ["new.yaml"]
        assert result.files_removed == ["gone.yaml"]
        assert result.file_changes == []
        assert result.has_changes

    def test_common_file_changes(self) -> None:
        old = _snapshot({"a.yaml": {"x": 1}})
        new = _snapshot({"a.yaml": {"x": 2}})
        result = diff_snapshots(old, new)
        assert len(result.file_changes) == 1
        assert result.file_changes[0].status is FileStatus.MODIFIED
        assert result.file_changes[0].keys_changed == 1

    def test_unparsed_side_is_a_file_error(self) -> None:
        old = _snapshot({"a.yaml": {"x": 1}})
        new = _snapshot({"a.yaml": None}, errors={"a.yaml": "invalid YAML at line 3"})
        result = diff_snapshots(old, new)
        assert len(result.errors) == 1
        assert result.errors[0].error == "new: invalid YAML at line 3"
        assert not result.has_changes

    def test_one_malformed_file_does_not_hide_the_others(self) -> None:
        old = _snapshot({"a.yaml": {"x": 1}, "b.json": {"y": 1}, "c.toml": {"z": 1}})
        new = _snapshot(
            {"a.yaml": {"x": 2}, "b.json": None, "c.toml": {"z": 1, "w": 2}},
            errors={"b.json": "invalid JSON at line 1, column 2: Expecting value"},
        )
        result = diff_snapshots(old, new)
        by_path = {fc.path: fc for fc in result.file_changes}
        assert by_path["b.json"].status is FileStatus.ERROR
        assert by_path["a.yaml"].keys_changed == 1
        assert by_path["c.toml"].keys_added == 1
        assert result.has_changes

    def test_identical_snapshots(self) -> None:
        snap = _snapshot({"a.yaml": {"x": 1}})
        result = diff_snapshots(snap, snap)
        assert not result.has_changes
        assert result.to_dict() == {"files_added": [], "files_removed": [], "files": []}


class TestProperties:
    @given(a=map_documents, b=map_documents)
    @settings(max_examples=100)
    def test_symmetry(self, a: dict, b: dict) -> None:
        forward = diff(flatten(to_value(a)), flatten(to_value(b)))
        backward = diff(flatten(to_value(b)), flatten(to_value(a)))
        swap = {ChangeKind.ADDED: ChangeKind.REMOVED, ChangeKind.REMOVED: ChangeKind.ADDED}
        mirrored = [
            (c.key_path, swap.get(c.kind, c.kind), c.new_value, c.old_value) for c in forward
        ]
        assert mirrored == [(c.key_path, c.kind, c.old_value, c.new_value) for c in backward]

    @given(doc=map_documents)
    @settings(max_examples=100)
    def test_idempotence(self, doc: dict) -> None:
        mapping = flatten(to_value(doc))
        assert diff(mapping, mapping) == []
