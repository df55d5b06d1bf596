"""Shared factories for configtrace unit tests."""

from __future__ import annotations

from datetime import UTC, datetime

from hypothesis import strategies as st

from configtrace.models.changes import RevisionInfo
from configtrace.models.findings import SecretFinding, SecretType
from configtrace.models.flat import FlattenedMapping
from configtrace.models.policy import Policy, Violation
from configtrace.models.severity import Severity
from configtrace.policy.loader import parse_policy

_TS = datetime(2026, 3, 2, 9, 30, 0, tzinfo=UTC).isoformat()


# ---------------------------------------------------------------------------
# Mappings and policies
# ---------------------------------------------------------------------------


def make_mapping(data: dict[str, object] | None = None) -> FlattenedMapping:
    """Flat mapping from ``{"a.b": value}`` pairs."""
    return FlattenedMapping.from_dict(data or {})


def make_policy(rules_yaml: str, name: str = "test-policy") -> Policy:
    return parse_policy(f"name: {name}\nrules:\n{rules_yaml}", source="policy.yaml")


def make_rule_policy(check: str, severity: str = "medium", pattern: str | None = None, rule_id: str = "r1") -> Policy:
    """Single-rule policy; *check* is the YAML body of the ``check`` mapping."""
    lines = [f"  - id: {rule_id}", f"    severity: {severity}"]
    if pattern is not None:
        lines.append(f'    pattern: "{pattern}"')
    lines.append("    check:")
    lines += [f"      {line}" for line in check.strip().splitlines()]
    return make_policy("\n".join(lines) + "\n")


# ---------------------------------------------------------------------------
# Findings and violations
# ---------------------------------------------------------------------------


def make_violation(
    severity: Severity = Severity.MEDIUM,
    file: str = "app.yaml",
    rule_id: str = "r1",
    key_path: str | None = "debug",
    message: str = "Forbidden value 'true' found for key 'debug'",
) -> Violation:
    return Violation(rule_id=rule_id, severity=severity, file=file, key_path=key_path, message=message)


def make_finding(
    severity: Severity = Severity.HIGH,
    file: str = "app.yaml",
    line: int = 1,
    secret_type: SecretType = SecretType.GENERIC_API_KEY,
) -> SecretFinding:
    return SecretFinding(
        file=file,
        line=line,
        secret_type=secret_type,
        severity=severity,
        confidence=0.6,
        pattern_name="Generic API Key",
        snippet="api_key: abcd...",
    )


def make_revision(
    revision_id: str = "a" * 40,
    parent_id: str | None = "b" * 40,
    paths: tuple[str, ...] = ("app.yaml",),
    message: str = "update config",
    author: str = "Dana Ops",
) -> RevisionInfo:
    return RevisionInfo(
        revision_id=revision_id,
        parent_id=parent_id,
        author=author,
        timestamp=_TS,
        message=message,
        paths=paths,
    )


# ---------------------------------------------------------------------------
# Hypothesis strategies
# ---------------------------------------------------------------------------

_key = st.text(alphabet="abcdefghijklmnopqrstuvwxyz_-", min_size=1, max_size=6)
_scalar = (
    st.none()
    | st.booleans()
    | st.integers(min_value=-(10**12), max_value=10**12)
    | st.text(max_size=12)
)

plain_documents = st.recursive(
    _scalar,
    lambda children: st.lists(children, max_size=4) | st.dictionaries(_key, children, max_size=4),
    max_leaves=20,
)

map_documents = st.dictionaries(_key, plain_documents, min_size=1, max_size=5)
