"""Config file inventory: discovery, hashing, normalization and snapshots.

Paths inside a snapshot are relative to the scanned root and use ``/`` as
separator, so two snapshots of the same tree taken on different machines or
at different locations compare file by file.
"""

from __future__ import annotations

import hashlib
import json
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path

from configtrace.errors import InputError, ParseError, SnapshotError
from configtrace.models.report import InventoryEntry
from configtrace.models.snapshot import FileSnapshot, Snapshot
from configtrace.normalizer.convert import DEFAULT_MAX_DEPTH
from configtrace.normalizer.formats import detect_format
from configtrace.normalizer.normalize import normalize
from configtrace.observability.logging import get_logger

_logger = get_logger("inventory")

_SKIP_DIRS = frozenset({".git", ".hg", ".svn"})


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def discover_config_files(root: str | Path) -> list[str]:
    """Return the sorted relative POSIX paths of config files under *root*.

    A *root* that is itself a config file yields just its name.
    """
    root = Path(root)
    if root.is_file():
        if detect_format(root) is None:
            raise InputError(f"{root}: not a YAML, JSON or TOML file")
        return [root.name]
    if not root.is_dir():
        raise InputError(f"{root}: no such file or directory")

    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        base = Path(dirpath)
        for name in filenames:
            if detect_format(name) is not None:
                found.append((base / name).relative_to(root).as_posix())
    return sorted(found)


def base_dir(root: Path) -> Path:
    """Directory that snapshot paths under *root* are relative to."""
    return root.parent if root.is_file() else root


def snapshot_file(root: str | Path, rel_path: str, max_depth: int = DEFAULT_MAX_DEPTH) -> FileSnapshot:
    """Hash and normalize one file; parse failures are kept on the snapshot."""
    root = Path(root)
    fmt = detect_format(rel_path)
    full = base_dir(root) / rel_path
    try:
        data = full.read_bytes()
    except OSError as exc:
        return FileSnapshot(path=rel_path, format=str(fmt), sha256="", error=f"cannot read file: {exc.strerror or exc}")

    snap = FileSnapshot(path=rel_path, format=str(fmt), sha256=sha256_hex(data))
    try:
        snap.mapping = normalize(data, fmt, max_depth=max_depth)
    except ParseError as exc:
        _logger.warning("file_parse_failed", path=rel_path, error=str(exc))
        snap.error = str(exc)
    return snap


def build_snapshot(root: str | Path, max_depth: int = DEFAULT_MAX_DEPTH, workers: int = 1) -> Snapshot:
    """Inventory every config file under *root*.

    With ``workers > 1`` files are normalized on a thread pool; the result is
    keyed by path so ordering does not depend on completion order.
    """
    root = Path(root)
    paths = discover_config_files(root)
    if workers > 1 and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="configtrace-inv") as pool:
            snaps = list(pool.map(lambda rel: snapshot_file(root, rel, max_depth), paths))
    else:
        snaps = [snapshot_file(root, rel, max_depth) for rel in paths]

    snapshot = Snapshot(
        root=str(root),
        created_at=datetime.now(UTC).isoformat(),
        files={snap.path: snap for snap in snaps},
    )
    _logger.info(
        "inventory_built",
        root=str(root),
        files=len(snaps),
        errors=sum(1 for snap in snaps if not snap.ok),
    )
    return snapshot


def save_snapshot(snapshot: Snapshot, out: str | Path) -> None:
    out = Path(out)
    try:
        out.write_text(json.dumps(snapshot.to_dict(), indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise SnapshotError(f"{out}: cannot write snapshot: {exc.strerror or exc}") from exc
    _logger.info("snapshot_saved", path=str(out), files=len(snapshot.files))


def load_snapshot(path: str | Path) -> Snapshot:
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SnapshotError(f"{path}: cannot read snapshot: {exc.strerror or exc}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SnapshotError(f"{path}: snapshot is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise SnapshotError(f"{path}: snapshot must be a JSON object")
    try:
        return Snapshot.from_dict(raw)
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotError(f"{path}: malformed snapshot: {exc}") from exc


def is_snapshot_file(path: str | Path) -> bool:
    """True when *path* is a JSON document carrying ``snapshot_version``."""
    path = Path(path)
    if not path.is_file() or path.suffix.lower() != ".json":
        return False
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    return isinstance(raw, dict) and "snapshot_version" in raw


def inventory_entries(snapshot: Snapshot) -> list[InventoryEntry]:
    return [
        InventoryEntry(
            path=snap.path,
            format=snap.format,
            sha256=snap.sha256,
            entries=len(snap.mapping) if snap.mapping is not None else 0,
            error=snap.error,
        )
        for snap in (snapshot.files[path] for path in sorted(snapshot.files))
    ]
