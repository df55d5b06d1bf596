"""Replays the diff and policy engines over historical revisions.

For every revision the touched config files are fetched at the revision and
at its first parent, normalized, diffed and (optionally) evaluated against
a policy.  Failures are kept per file so one broken document never hides the
rest of a revision.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor

from configtrace.diff.engine import file_changes
from configtrace.errors import ParseError, RetrievalError
from configtrace.history.base import VersionControl, in_scope
from configtrace.models.changes import FileChanges, FileStatus, RevisionChangeSet, RevisionInfo
from configtrace.models.flat import FlattenedMapping
from configtrace.models.policy import Policy
from configtrace.normalizer.convert import DEFAULT_MAX_DEPTH
from configtrace.normalizer.formats import detect_format
from configtrace.normalizer.normalize import normalize
from configtrace.observability.logging import get_logger
from configtrace.observability.metrics import revisions_walked_total
from configtrace.policy.engine import evaluate

_logger = get_logger("history.walker")


class HistoryWalker:
    """Walks revisions newest first, yielding one change set per revision.

    Revisions that touch no config file, or whose config edits are
    semantically empty, are not yielded.
    """

    def __init__(
        self,
        vcs: VersionControl,
        policy: Policy | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        workers: int = 1,
    ) -> None:
        self._vcs = vcs
        self._policy = policy
        self._max_depth = max_depth
        self._workers = max(1, workers)

    def walk(
        self,
        revision_range: str | None = None,
        path_filter: str | None = None,
        limit: int = 10,
    ) -> Iterator[RevisionChangeSet]:
        """Yield change sets in log order for at most *limit* revisions."""
        revisions = self._vcs.log(revision_range, path_filter, limit)
        _logger.info("history_walk_started", range=revision_range, path_filter=path_filter, revisions=len(revisions))

        for change_set in self._map(revisions, path_filter):
            if change_set is not None:
                yield change_set

    def compare(self, ref_a: str, ref_b: str, path_filter: str | None = None) -> RevisionChangeSet:
        """Diff every config file between two refs; policy is evaluated on *ref_b*."""
        rev_a = self._vcs.resolve(ref_a)
        rev_b = self._vcs.resolve(ref_b)
        paths = sorted(
            {
                path
                for rev in (rev_a, rev_b)
                for path in self._vcs.list_files(rev, path_filter)
                if detect_format(path) is not None
            }
        )
        result = RevisionChangeSet(
            revision_id=f"{rev_a}..{rev_b}",
            author="",
            timestamp=None,
            message=f"{ref_a}..{ref_b}",
        )
        for path in paths:
            fc = self._file_changes(path, rev_a, rev_b)
            if fc is not None:
                result.file_changes.append(fc)
        _logger.info("history_compare", ref_a=ref_a, ref_b=ref_b, files=len(paths), changed=len(result.file_changes))
        return result

    def _map(self, revisions: list[RevisionInfo], path_filter: str | None) -> Iterable[RevisionChangeSet | None]:
        if self._workers == 1 or len(revisions) < 2:
            for rev in revisions:
                yield self._process(rev, path_filter)
            return

        pool = ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="configtrace-walk")
        try:
            yield from pool.map(lambda rev: self._process(rev, path_filter), revisions)
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

    def _process(self, rev: RevisionInfo, path_filter: str | None) -> RevisionChangeSet | None:
        change_set = RevisionChangeSet(
            revision_id=rev.revision_id,
            author=rev.author,
            timestamp=rev.timestamp,
            message=rev.message,
        )
        for path in sorted(set(rev.paths)):
            if detect_format(path) is None or not in_scope(path, path_filter):
                continue
            fc = self._file_changes(path, rev.parent_id, rev.revision_id)
            if fc is not None:
                change_set.file_changes.append(fc)

        revisions_walked_total.inc()
        if not change_set.file_changes:
            _logger.debug("revision_skipped", revision=change_set.short_id)
            return None
        return change_set

    def _file_changes(self, path: str, old_rev: str | None, new_rev: str) -> FileChanges | None:
        try:
            old_data = self._vcs.content_at(old_rev, path) if old_rev else None
            new_data = self._vcs.content_at(new_rev, path)
        except RetrievalError as exc:
            _logger.warning("content_retrieval_failed", path=path, revision=exc.revision, reason=exc.reason)
            return FileChanges(path=path, status=FileStatus.ERROR, error=str(exc))
        if old_data is None and new_data is None:
            return None

        try:
            old = self._normalize(old_data, path)
            new = self._normalize(new_data, path)
        except ParseError as exc:
            _logger.warning("historical_parse_failed", path=path, revision=new_rev[:7], error=str(exc))
            return FileChanges(path=path, status=FileStatus.ERROR, error=str(exc))

        fc = file_changes(path, old, new)
        # an empty file that appears or disappears is still reported
        if not fc.changes and fc.status is FileStatus.MODIFIED:
            return None
        if self._policy is not None and new is not None:
            fc.violations = evaluate(self._policy, new, path)
        return fc

    def _normalize(self, data: bytes | None, path: str) -> FlattenedMapping | None:
        if data is None:
            return None
        return normalize(data, detect_format(path), max_depth=self._max_depth)
