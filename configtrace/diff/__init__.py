"""Diff Engine.

Submodules:
    engine -- Key-path diff of flattened mappings, single-file diffs with an
              absent side, and whole-inventory (snapshot) comparison.
"""

from configtrace.diff.engine import diff, diff_snapshots, file_changes

__all__ = ["diff", "diff_snapshots", "file_changes"]
