"""Audit Aggregator: combines component outputs into one AuditReport.

Pure: no I/O, and the result does not depend on the order of the inputs.
"""

from __future__ import annotations

from collections.abc import Iterable

from configtrace.models.changes import RevisionChangeSet
from configtrace.models.findings import SecretFinding
from configtrace.models.policy import Violation
from configtrace.models.report import AuditReport, InventoryEntry, OverviewSection, RiskLevel
from configtrace.models.severity import Severity

_WARN_VIOLATIONS = frozenset({Severity.MEDIUM, Severity.HIGH})


def compute_risk(secret_findings: Iterable[SecretFinding], violations: Iterable[Violation]) -> RiskLevel:
    """FAIL on any critical item; WARN on a high secret or a medium/high violation."""
    secret_severities = {f.severity for f in secret_findings}
    violation_severities = {v.severity for v in violations}
    if Severity.CRITICAL in secret_severities or Severity.CRITICAL in violation_severities:
        return RiskLevel.FAIL
    if Severity.HIGH in secret_severities or violation_severities & _WARN_VIOLATIONS:
        return RiskLevel.WARN
    return RiskLevel.PASS


def risk_summary(secret_findings: list[SecretFinding], violations: list[Violation], parse_errors: int = 0) -> str:
    parts = []
    if secret_findings:
        parts.append(f"{len(secret_findings)} secret{'s' if len(secret_findings) != 1 else ''} found")
    if violations:
        parts.append(f"{len(violations)} policy violation{'s' if len(violations) != 1 else ''}")
    if parse_errors:
        parts.append(f"{parse_errors} unparseable file{'s' if parse_errors != 1 else ''}")
    return ", ".join(parts) if parts else "No issues found"


def sort_findings(findings: Iterable[SecretFinding]) -> list[SecretFinding]:
    return sorted(findings, key=lambda f: (-f.severity.rank, f.file, f.line, f.pattern_name))


def sort_violations(violations: Iterable[Violation]) -> list[Violation]:
    return sorted(violations, key=lambda v: (-v.severity.rank, v.file, v.rule_id, v.key_path or ""))


def aggregate(
    inventory: Iterable[InventoryEntry],
    secret_findings: Iterable[SecretFinding],
    violations: Iterable[Violation],
    recent_changes: Iterable[RevisionChangeSet],
    *,
    path: str = "",
    generated_at: str = "",
    warnings: Iterable[str] = (),
) -> AuditReport:
    """Build the report and its risk verdict.

    *generated_at* is supplied by the caller so the function stays pure.
    """
    entries = sorted(inventory, key=lambda e: e.path)
    findings = sort_findings(secret_findings)
    ordered_violations = sort_violations(violations)
    parse_errors = [e for e in entries if e.error is not None]

    formats = [e.format for e in entries]
    overview = OverviewSection(
        generated_at=generated_at,
        path=path,
        total_files=len(entries),
        yaml_count=formats.count("yaml"),
        json_count=formats.count("json"),
        toml_count=formats.count("toml"),
    )
    return AuditReport(
        overview=overview,
        risk=compute_risk(findings, ordered_violations),
        risk_summary=risk_summary(findings, ordered_violations, len(parse_errors)),
        inventory=entries,
        secrets=findings,
        violations=ordered_violations,
        recent_changes=list(recent_changes),
        parse_errors=parse_errors,
        warnings=list(warnings),
    )
