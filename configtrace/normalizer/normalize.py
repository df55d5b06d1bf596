"""Raw bytes -> canonical value tree -> flattened mapping."""

from __future__ import annotations

from pathlib import Path

from configtrace.errors import ParseError
from configtrace.models.flat import DuplicateKeyPathError, FlattenedMapping
from configtrace.models.values import Value
from configtrace.normalizer.convert import DEFAULT_MAX_DEPTH, ConversionError, to_value
from configtrace.normalizer.flatten import flatten
from configtrace.normalizer.formats import ConfigFormat, detect_format
from configtrace.normalizer.parsers import PARSERS
from configtrace.observability.logging import get_logger
from configtrace.observability.metrics import files_normalized_total

_logger = get_logger("normalizer")


def parse_value(data: bytes, fmt: ConfigFormat | str, max_depth: int = DEFAULT_MAX_DEPTH) -> Value:
    """Parse *data* as *fmt* into a canonical value tree.

    Raises ParseError on malformed input, duplicate keys or excessive depth.
    """
    fmt = ConfigFormat(fmt)
    raw = PARSERS[fmt](data)
    try:
        return to_value(raw, max_depth=max_depth)
    except ConversionError as exc:
        raise ParseError(fmt, str(exc)) from exc


def normalize(
    data: bytes,
    fmt: ConfigFormat | str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    path: str | None = None,
) -> FlattenedMapping:
    """Parse and flatten one document.

    *path* is only used to label errors and log lines.
    """
    fmt = ConfigFormat(fmt)
    try:
        value = parse_value(data, fmt, max_depth=max_depth)
        mapping = flatten(value)
    except DuplicateKeyPathError as exc:
        files_normalized_total.labels(format=fmt.value, outcome="error").inc()
        raise ParseError(fmt, str(exc), path=path) from exc
    except ParseError as exc:
        files_normalized_total.labels(format=fmt.value, outcome="error").inc()
        _logger.debug("normalize_failed", path=path, format=fmt.value, reason=exc.reason)
        if path and exc.path is None:
            raise exc.with_path(path) from exc
        raise

    files_normalized_total.labels(format=fmt.value, outcome="ok").inc()
    _logger.debug("normalized", path=path, format=fmt.value, entries=len(mapping))
    return mapping


def normalize_file(
    path: str | Path,
    fmt: ConfigFormat | str | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> FlattenedMapping:
    """Read and normalize a file; the format comes from the extension unless given."""
    path = Path(path)
    resolved = ConfigFormat(fmt) if fmt is not None else detect_format(path)
    if resolved is None:
        raise ParseError("config", f"unsupported file extension '{path.suffix}'", path=str(path))
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ParseError(resolved, f"cannot read file: {exc.strerror or exc}", path=str(path)) from exc
    return normalize(data, resolved, max_depth=max_depth, path=str(path))
