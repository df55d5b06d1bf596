"""Text, JSON and Markdown renderings of command results.

Every renderer returns a string; callers decide where it goes.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from enum import StrEnum

from configtrace.models.changes import Change, ChangeKind, FileChanges, RevisionChangeSet, SnapshotDiff
from configtrace.models.findings import SecretFinding
from configtrace.models.policy import Violation
from configtrace.models.report import AuditReport
from configtrace.models.severity import Severity
from configtrace.models.values import render_value

_MARKERS = {ChangeKind.ADDED: "+", ChangeKind.REMOVED: "-", ChangeKind.CHANGED: "~"}


class OutputFormat(StrEnum):
    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"


def to_json(data: object) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _severity_counts(items: Sequence[Violation | SecretFinding]) -> str:
    counts = {severity: 0 for severity in Severity}
    for item in items:
        counts[item.severity] += 1
    return " | ".join(f"{s.label}: {counts[s]}" for s in sorted(Severity, key=lambda s: -s.rank))


def _change_line(change: Change) -> str:
    marker = _MARKERS[change.kind]
    if change.kind is ChangeKind.ADDED:
        return f"{marker} {change.key_path} = {render_value(change.new_value)}"
    if change.kind is ChangeKind.REMOVED:
        return f"{marker} {change.key_path} (was {render_value(change.old_value)})"
    return f"{marker} {change.key_path}: {render_value(change.old_value)} -> {render_value(change.new_value)}"


def _file_changes_lines(fc: FileChanges, indent: str = "  ") -> list[str]:
    if fc.error is not None:
        return [f"{indent}{fc.path}: ERROR {fc.error}"]
    lines = [
        f"{indent}{fc.path} ({fc.status.value}): "
        f"+{fc.keys_added} -{fc.keys_removed} ~{fc.keys_changed}"
    ]
    lines += [f"{indent}  {_change_line(c)}" for c in fc.changes]
    lines += [f"{indent}  [{v.severity.label}] {v.rule_id}: {v.message}" for v in fc.violations]
    return lines


# ---------------------------------------------------------------------------
# Snapshot / file diff
# ---------------------------------------------------------------------------


def render_snapshot_diff(result: SnapshotDiff, fmt: OutputFormat = OutputFormat.TEXT) -> str:
    if fmt is OutputFormat.JSON:
        return to_json(result.to_dict())
    if not result.has_changes and not result.errors:
        return "No changes."
    lines: list[str] = []
    lines += [f"+ {path} (new file)" for path in result.files_added]
    lines += [f"- {path} (deleted)" for path in result.files_removed]
    for fc in result.file_changes:
        lines += _file_changes_lines(fc, indent="")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


def render_revisions(change_sets: Sequence[RevisionChangeSet], fmt: OutputFormat = OutputFormat.TEXT) -> str:
    if fmt is OutputFormat.JSON:
        return to_json(
            {
                "revisions_with_changes": len(change_sets),
                "revisions": [cs.to_dict() for cs in change_sets],
            }
        )
    if not change_sets:
        return "No config changes found."
    lines: list[str] = []
    for cs in change_sets:
        header = f"{cs.short_id} {cs.summary}".rstrip()
        if cs.author:
            header += f" ({cs.author}, {(cs.timestamp or '')[:10]})"
        lines.append(header)
        for fc in cs.file_changes:
            lines += _file_changes_lines(fc)
        lines.append("")
    return "\n".join(lines).rstrip()


# ---------------------------------------------------------------------------
# Policy and secrets
# ---------------------------------------------------------------------------


def render_violations(
    violations: Sequence[Violation],
    fmt: OutputFormat = OutputFormat.TEXT,
    *,
    policy_name: str = "",
    files_checked: int = 0,
) -> str:
    if fmt is OutputFormat.JSON:
        return to_json(
            {
                "policy": policy_name,
                "files_checked": files_checked,
                "total_violations": len(violations),
                "violations": [v.to_dict() for v in violations],
            }
        )
    lines = [f"Policy: {policy_name}", f"Files checked: {files_checked}"]
    if not violations:
        lines.append("All checks passed.")
        return "\n".join(lines)
    lines.append(_severity_counts(violations))
    current = None
    for v in violations:
        if v.file != current:
            current = v.file
            lines.append(f"{v.file}:")
        lines.append(f"  [{v.severity.label}] {v.rule_id}: {v.message}")
    return "\n".join(lines)


def render_findings(
    findings: Sequence[SecretFinding],
    fmt: OutputFormat = OutputFormat.TEXT,
    *,
    files_scanned: int = 0,
) -> str:
    if fmt is OutputFormat.JSON:
        return to_json(
            {
                "files_scanned": files_scanned,
                "total_findings": len(findings),
                "findings": [f.to_dict() for f in findings],
            }
        )
    lines = [f"Files scanned: {files_scanned}"]
    if not findings:
        lines.append("No secrets found.")
        return "\n".join(lines)
    lines.append(_severity_counts(findings))
    current = None
    for f in findings:
        if f.file != current:
            current = f.file
            lines.append(f"{f.file}:")
        where = f" ({f.key_path})" if f.key_path else ""
        lines.append(f"  [{f.severity.label}] Line {f.line}{where}: {f.pattern_name} - {f.snippet}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Audit report
# ---------------------------------------------------------------------------


def render_report(report: AuditReport, fmt: OutputFormat = OutputFormat.TEXT) -> str:
    if fmt is OutputFormat.JSON:
        return to_json(report.to_dict())
    if fmt is OutputFormat.MARKDOWN:
        return _report_markdown(report)
    return _report_text(report)


def _report_text(report: AuditReport) -> str:
    o = report.overview
    lines = [
        "ConfigTrace Audit Report",
        "========================",
        f"Generated: {o.generated_at}",
        f"Path: {o.path}",
        f"Files: {o.total_files} ({o.yaml_count} yaml, {o.json_count} json, {o.toml_count} toml)",
        "",
        "--- Config Inventory ---",
    ]
    lines += [f"  {e.path:<40} {e.sha256[:12]}" for e in report.inventory]

    if report.parse_errors:
        lines += ["", "--- Parse Errors ---"]
        lines += [f"  {e.path}: {e.error}" for e in report.parse_errors]

    lines += ["", "--- Secret Findings ---"]
    if report.secrets:
        lines.append("  " + _severity_counts(report.secrets))
        lines += [
            f"  [{f.severity.label}] {f.file}:{f.line}: {f.pattern_name} - {f.snippet}" for f in report.secrets
        ]
    else:
        lines.append("  No secrets found.")

    lines += ["", "--- Policy Violations ---"]
    if report.violations:
        lines.append("  " + _severity_counts(report.violations))
        lines += [f"  [{v.severity.label}] {v.file}: {v.rule_id}: {v.message}" for v in report.violations]
    else:
        lines.append("  No violations.")

    if report.recent_changes:
        lines += ["", f"--- Recent Changes (last {len(report.recent_changes)} revisions) ---"]
        for cs in report.recent_changes:
            lines.append(f"  {cs.short_id} - {cs.summary} ({cs.author}, {(cs.timestamp or '')[:10]})")
            for fc in cs.file_changes:
                total = fc.keys_added + fc.keys_removed + fc.keys_changed
                lines.append(f"    {fc.path}: ~{total} keys changed" if fc.error is None else f"    {fc.path}: ERROR")

    if report.warnings:
        lines += ["", "--- Warnings ---"]
        lines += [f"  {w}" for w in report.warnings]

    lines += ["", "--- Risk Summary ---", f"  {report.risk.label} -- {report.risk_summary}"]
    return "\n".join(lines)


def _md_cell(text: object) -> str:
    return str(text).replace("|", "\\|").replace("\n", " ")


def _report_markdown(report: AuditReport) -> str:
    o = report.overview
    lines = [
        "# ConfigTrace Audit Report",
        "",
        f"**Risk Level: {report.risk.label}** -- {report.risk_summary}",
        "",
        f"- **Generated:** {o.generated_at}",
        f"- **Path:** `{o.path}`",
        f"- **Files:** {o.total_files} ({o.yaml_count} yaml, {o.json_count} json, {o.toml_count} toml)",
        "",
        "## Config Inventory",
        "",
        "| File | Format | Hash |",
        "|------|--------|------|",
    ]
    lines += [f"| `{_md_cell(e.path)}` | {e.format} | `{e.sha256[:12]}` |" for e in report.inventory]

    if report.parse_errors:
        lines += ["", "## Parse Errors", ""]
        lines += [f"- `{_md_cell(e.path)}`: {_md_cell(e.error)}" for e in report.parse_errors]

    lines += ["", "## Secret Findings", ""]
    if report.secrets:
        lines += ["| Severity | File | Line | Type | Snippet |", "|----------|------|------|------|---------|"]
        lines += [
            f"| {f.severity.label} | `{_md_cell(f.file)}` | {f.line} | {_md_cell(f.pattern_name)} | "
            f"`{_md_cell(f.snippet)}` |"
            for f in report.secrets
        ]
    else:
        lines.append("No secrets found.")

    lines += ["", "## Policy Violations", ""]
    if report.violations:
        lines += ["| Severity | File | Rule | Message |", "|----------|------|------|---------|"]
        lines += [
            f"| {v.severity.label} | `{_md_cell(v.file)}` | {_md_cell(v.rule_id)} | {_md_cell(v.message)} |"
            for v in report.violations
        ]
    else:
        lines.append("No violations.")

    if report.recent_changes:
        lines += ["", "## Recent Changes", ""]
        for cs in report.recent_changes:
            lines.append(f"### `{cs.short_id}` {_md_cell(cs.summary)}")
            lines.append("")
            lines.append(f"*{_md_cell(cs.author)}, {(cs.timestamp or '')[:10]}*")
            lines.append("")
            for fc in cs.file_changes:
                if fc.error is not None:
                    lines.append(f"- `{_md_cell(fc.path)}`: error: {_md_cell(fc.error)}")
                else:
                    lines.append(
                        f"- `{_md_cell(fc.path)}`: +{fc.keys_added} -{fc.keys_removed} ~{fc.keys_changed}"
                    )
            lines.append("")

    if report.warnings:
        lines += ["", "## Warnings", ""]
        lines += [f"- {_md_cell(w)}" for w in report.warnings]

    return "\n".join(lines).rstrip() + "\n"
