"""File glob patterns for rule scoping.

Patterns use :mod:`fnmatch` syntax, so ``*`` and ``?`` also match ``/``.
On top of that ``**/`` may match zero directories (``deploy/**/*.yaml``
matches ``deploy/app.yaml``).  Patterns without a ``/`` match the file name
only; others match the whole relative path.
"""

from __future__ import annotations

import fnmatch
import itertools
import re
from pathlib import PurePosixPath

_GLOBSTAR = "**/"


def _check_classes(pattern: str) -> None:
    # fnmatch treats an unterminated "[" as a literal; reject it instead
    i = pattern.find("[")
    while i != -1:
        j = i + 1
        if pattern.startswith("!", j):
            j += 1
        if pattern.startswith("]", j):
            j += 1
        end = pattern.find("]", j)
        if end == -1:
            raise re.error(f"unterminated character class in {pattern!r}")
        i = pattern.find("[", end + 1)


def _variants(pattern: str) -> list[str]:
    parts = pattern.split(_GLOBSTAR)
    variants: list[str] = []
    for joins in itertools.product((_GLOBSTAR, ""), repeat=len(parts) - 1):
        candidate = parts[0] + "".join(join + part for join, part in zip(joins, parts[1:]))
        if candidate not in variants:
            variants.append(candidate)
    return variants


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile *pattern* to an anchored regex.  Raises ``re.error`` if invalid."""
    _check_classes(pattern)
    return re.compile("|".join(f"(?:{fnmatch.translate(v)})" for v in _variants(pattern)))


def glob_matches(matcher: re.Pattern[str], pattern: str, file_path: str) -> bool:
    posix = file_path.replace("\\", "/")
    if "/" not in pattern:
        return matcher.match(PurePosixPath(posix).name) is not None
    return matcher.match(posix.removeprefix("./")) is not None
