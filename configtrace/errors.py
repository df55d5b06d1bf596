"""Error taxonomy for configtrace.

Every error that can abort a command derives from ``ConfigTraceError`` so the
CLI can map "could not run" to exit code 2 without inspecting messages.
File- and revision-level failures use the same classes but are caught by the
batch drivers and attached to the relevant report section instead.
"""

from __future__ import annotations


class ConfigTraceError(Exception):
    """Base class for operational errors (exit code 2 when uncaught)."""


class ParseError(ConfigTraceError):
    """Raw bytes are not a valid document of the declared format."""

    def __init__(
        self,
        fmt: str,
        reason: str,
        line: int | None = None,
        column: int | None = None,
        path: str | None = None,
    ) -> None:
        self.format = fmt
        self.reason = reason
        self.line = line
        self.column = column
        self.path = path
        super().__init__(self._describe())

    @property
    def location(self) -> str | None:
        if self.line is None:
            return None
        if self.column is None:
            return f"line {self.line}"
        return f"line {self.line}, column {self.column}"

    def with_path(self, path: str) -> ParseError:
        return ParseError(self.format, self.reason, self.line, self.column, path)

    def _describe(self) -> str:
        where = f" at {self.location}" if self.location else ""
        source = f"{self.path}: " if self.path else ""
        return f"{source}invalid {self.format.upper()}{where}: {self.reason}"


class PolicyError(ConfigTraceError):
    """Policy document is malformed, repeats a rule id, or has a bad pattern."""

    def __init__(self, message: str, source: str | None = None, rule_id: str | None = None) -> None:
        self.source = source
        self.rule_id = rule_id
        prefix = f"{source}: " if source else ""
        rule = f"rule '{rule_id}': " if rule_id else ""
        super().__init__(f"{prefix}{rule}{message}")


class HistoryError(ConfigTraceError):
    """Not a version-controlled directory, or a revision does not resolve."""


class RetrievalError(ConfigTraceError):
    """Content for one file at one revision could not be retrieved."""

    def __init__(self, revision: str, path: str, reason: str) -> None:
        self.revision = revision
        self.path = path
        self.reason = reason
        super().__init__(f"could not read {path} at {revision}: {reason}")


class SnapshotError(ConfigTraceError):
    """A snapshot file is unreadable or not in the expected shape."""


class InputError(ConfigTraceError):
    """A top-level path argument is missing or of the wrong kind."""
