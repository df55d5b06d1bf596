"""Line-oriented secret scanner.

Every line is tested against every catalog pattern; one finding per
(line, pattern).  Lines that look like comments, placeholders or templates
are skipped.  Snippets keep ten characters of context on each side of the
match with the match itself cut to its first four characters.
"""

from __future__ import annotations

from pathlib import Path

from configtrace.models.findings import SecretFinding
from configtrace.models.flat import FlattenedMapping
from configtrace.models.values import StringValue, is_container, render_value
from configtrace.observability.logging import get_logger
from configtrace.observability.metrics import secret_findings_total
from configtrace.secrets.patterns import SECRET_PATTERNS

_logger = get_logger("secrets.scanner")

_CONTEXT = 10
_PLACEHOLDERS = (
    "example.com",
    "localhost",
    "127.0.0.1",
    "REPLACE_ME",
    "YOUR_KEY_HERE",
    "XXX",
    "${",
    "{{",
    "%",
)


def should_skip_line(line: str) -> bool:
    trimmed = line.strip()
    if not trimmed or trimmed.startswith(("#", "//")):
        return True
    return any(marker in trimmed for marker in _PLACEHOLDERS)


def redact(secret: str) -> str:
    if len(secret) <= 4:
        return "..."
    return secret[:4] + "..."


def scan_text(
    data: bytes | str,
    file_path: str,
    mapping: FlattenedMapping | None = None,
) -> list[SecretFinding]:
    """Scan one file's content.

    When the parsed *mapping* is supplied, each finding is attributed to the
    first flattened entry whose value holds the secret.
    """
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    findings: list[SecretFinding] = []

    for line_no, line in enumerate(text.splitlines(), start=1):
        if should_skip_line(line):
            continue
        for pattern in SECRET_PATTERNS:
            match = pattern.regex.search(line)
            if match is None:
                continue
            start, end = match.span()
            snippet = line[max(0, start - _CONTEXT) : start] + redact(match.group(0)) + line[end : end + _CONTEXT]
            findings.append(
                SecretFinding(
                    file=file_path,
                    line=line_no,
                    secret_type=pattern.secret_type,
                    severity=pattern.severity,
                    confidence=pattern.confidence,
                    pattern_name=pattern.name,
                    snippet=snippet,
                    key_path=_attribute(line, match.group(pattern.secret_group), mapping),
                )
            )
            secret_findings_total.labels(severity=pattern.severity.value).inc()

    if findings:
        _logger.info("secrets_found", file=file_path, count=len(findings))
    return findings


def scan_file(path: Path, file_path: str, mapping: FlattenedMapping | None = None) -> list[SecretFinding]:
    """Read *path* and scan it, reporting findings under *file_path*."""
    return scan_text(path.read_bytes(), file_path, mapping)


def _attribute(line: str, secret: str, mapping: FlattenedMapping | None) -> str | None:
    if mapping is None:
        return None
    for entry in mapping.entries():
        if isinstance(entry.value, StringValue) and secret in entry.value.value:
            return entry.key_path
    # the match may span key and value, e.g. "type": "service_account"
    for entry in mapping.entries():
        if not entry.segments or is_container(entry.value):
            continue
        name = entry.segments[-1]
        rendered = render_value(entry.value)
        if isinstance(name, str) and name in line and rendered and rendered in line:
            return entry.key_path
    return None
