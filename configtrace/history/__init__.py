"""History Walker.

Submodules:
    base   -- VersionControl interface and path scoping.
    git    -- GitRepository, the git-executable implementation.
    walker -- HistoryWalker: per-revision diff and policy replay.
"""

from configtrace.history.base import VersionControl, in_scope
from configtrace.history.git import GitRepository
from configtrace.history.walker import HistoryWalker

__all__ = ["GitRepository", "HistoryWalker", "VersionControl", "in_scope"]
