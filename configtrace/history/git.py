"""git implementation of VersionControl, driving the ``git`` executable.

Every invocation runs with ``-C <toplevel>`` and a timeout.  Log records are
delimited with ASCII record/unit separators so commit messages may contain
anything but those two control characters.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

from configtrace.errors import HistoryError, RetrievalError
from configtrace.history.base import VersionControl, in_scope
from configtrace.models.changes import RevisionInfo
from configtrace.observability.logging import get_logger

_logger = get_logger("history.git")

_RS = "\x1e"
_US = "\x1f"
_LOG_FORMAT = f"--format={_RS}%H{_US}%P{_US}%an{_US}%aI{_US}%B{_US}"
_MISSING_MARKERS = ("does not exist in", "exists on disk, but not in", "Not a valid object name", "invalid object name")


class GitRepository(VersionControl):
    """A working tree or bare repository reachable from *path*."""

    def __init__(self, path: str | Path = ".", timeout: float = 30) -> None:
        self._timeout = timeout
        start = Path(path)
        cwd = start if start.is_dir() else start.parent
        if not cwd.is_dir():
            raise HistoryError(f"{path}: no such file or directory")
        proc = self._run(["rev-parse", "--show-toplevel"], cwd=cwd)
        if proc.returncode != 0:
            raise HistoryError(f"{path}: not a git repository ({_stderr(proc)})")
        self.root = Path(proc.stdout.decode("utf-8").strip())

    def relative(self, path: str | Path) -> str | None:
        """Path filter for *path* relative to the repository root (None for the root)."""
        resolved = Path(path).resolve()
        try:
            rel = resolved.relative_to(self.root.resolve())
        except ValueError as exc:
            raise HistoryError(f"{path}: outside repository {self.root}") from exc
        posix = rel.as_posix()
        return None if posix in ("", ".") else posix

    def log(self, revision_range: str | None, path_filter: str | None, limit: int) -> list[RevisionInfo]:
        args = [
            "log",
            _LOG_FORMAT,
            "--name-only",
            "--no-renames",
            "--diff-merges=first-parent",
            "-n",
            str(limit),
            revision_range or "HEAD",
            "--",
        ]
        if path_filter:
            args.append(path_filter)
        proc = self._git(args)
        if proc.returncode != 0:
            raise HistoryError(f"git log failed for {revision_range or 'HEAD'}: {_stderr(proc)}")

        revisions = []
        for record in proc.stdout.decode("utf-8", errors="replace").split(_RS):
            if not record.strip():
                continue
            fields = record.split(_US, 5)
            if len(fields) != 6:
                raise HistoryError(f"unexpected git log record: {record[:80]!r}")
            sha, parents, author, timestamp, message, names = fields
            paths = tuple(line.strip() for line in names.splitlines() if line.strip())
            revisions.append(
                RevisionInfo(
                    revision_id=sha,
                    parent_id=parents.split()[0] if parents.strip() else None,
                    author=author,
                    timestamp=timestamp,
                    message=message.strip(),
                    paths=tuple(p for p in paths if in_scope(p, path_filter)),
                )
            )
        _logger.debug("git_log", range=revision_range, path_filter=path_filter, revisions=len(revisions))
        return revisions

    def content_at(self, revision_id: str, path: str) -> bytes | None:
        try:
            proc = self._git(["cat-file", "blob", f"{revision_id}:{path}"])
        except HistoryError as exc:
            raise RetrievalError(revision_id, path, str(exc)) from exc
        if proc.returncode == 0:
            return proc.stdout
        err = _stderr(proc)
        if any(marker in err for marker in _MISSING_MARKERS):
            return None
        raise RetrievalError(revision_id, path, err)

    def list_files(self, revision_id: str, path_filter: str | None) -> list[str]:
        args = ["ls-tree", "-r", "--name-only", "--full-tree", revision_id]
        if path_filter:
            args += ["--", path_filter]
        proc = self._git(args)
        if proc.returncode != 0:
            raise HistoryError(f"cannot list files at {revision_id}: {_stderr(proc)}")
        names = proc.stdout.decode("utf-8", errors="replace").splitlines()
        return sorted(name for name in names if name and in_scope(name, path_filter))

    def resolve(self, ref: str) -> str:
        proc = self._git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
        if proc.returncode != 0:
            raise HistoryError(f"unknown revision: {ref}")
        return proc.stdout.decode("utf-8").strip()

    def _git(self, args: list[str]) -> subprocess.CompletedProcess[bytes]:
        return self._run(args, cwd=self.root)

    def _run(self, args: list[str], cwd: Path) -> subprocess.CompletedProcess[bytes]:
        cmd = ["git", "-c", "core.quotepath=off", *args]
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", "LC_ALL": "C"}
        try:
            return subprocess.run(cmd, cwd=cwd, capture_output=True, timeout=self._timeout, env=env, check=False)
        except FileNotFoundError as exc:
            raise HistoryError("git executable not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise HistoryError(f"git {args[0]} timed out after {self._timeout}s") from exc


def _stderr(proc: subprocess.CompletedProcess[bytes]) -> str:
    return proc.stderr.decode("utf-8", errors="replace").strip() or f"exit status {proc.returncode}"
