"""Version-control collaborator interface.

VersionControl -- ABC the history walker reads revisions through.
in_scope       -- Path-prefix filter shared by every implementation.

All paths are relative to the repository root with ``/`` separators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from configtrace.models.changes import RevisionInfo


class VersionControl(ABC):
    """Read-only view of a repository's history."""

    @abstractmethod
    def log(self, revision_range: str | None, path_filter: str | None, limit: int) -> list[RevisionInfo]:
        """Return up to *limit* revisions, newest first.

        *revision_range* is implementation specific (``a..b`` for git);
        ``None`` means the current head.  Only revisions touching
        *path_filter* are returned when it is set.
        """

    @abstractmethod
    def content_at(self, revision_id: str, path: str) -> bytes | None:
        """Return the file content at *revision_id*, or None if absent there.

        Raises RetrievalError when the content exists but cannot be read.
        """

    @abstractmethod
    def list_files(self, revision_id: str, path_filter: str | None) -> list[str]:
        """Return every file present at *revision_id* under *path_filter*."""

    @abstractmethod
    def resolve(self, ref: str) -> str:
        """Resolve a symbolic reference to a revision id.  Raises HistoryError."""


def in_scope(path: str, path_filter: str | None) -> bool:
    """True when *path* equals *path_filter* or lies below it."""
    if not path_filter or path_filter in (".", "./"):
        return True
    prefix = path_filter.strip("/")
    return path == prefix or path.startswith(prefix + "/")
