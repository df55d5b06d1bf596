"""Unified audit report structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from configtrace.models.changes import RevisionChangeSet
from configtrace.models.findings import SecretFinding
from configtrace.models.policy import Violation


class RiskLevel(StrEnum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"

    @property
    def label(self) -> str:
        return self.value.upper()


@dataclass(frozen=True)
class InventoryEntry:
    """A single file in the config inventory."""

    path: str
    format: str
    sha256: str
    entries: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "path": self.path,
            "format": self.format,
            "sha256": self.sha256,
            "entries": self.entries,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class OverviewSection:
    """Summary statistics for the report header."""

    generated_at: str
    path: str
    total_files: int = 0
    yaml_count: int = 0
    json_count: int = 0
    toml_count: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "generated_at": self.generated_at,
            "path": self.path,
            "total_files": self.total_files,
            "yaml_count": self.yaml_count,
            "json_count": self.json_count,
            "toml_count": self.toml_count,
        }


@dataclass
class AuditReport:
    """Output of the Audit Aggregator; consumed by the renderers."""

    overview: OverviewSection
    risk: RiskLevel
    risk_summary: str
    inventory: list[InventoryEntry] = field(default_factory=list)
    secrets: list[SecretFinding] = field(default_factory=list)
    violations: list[Violation] = field(default_factory=list)
    recent_changes: list[RevisionChangeSet] = field(default_factory=list)
    parse_errors: list[InventoryEntry] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def has_findings(self) -> bool:
        return bool(self.secrets or self.violations)

    def to_dict(self) -> dict[str, object]:
        return {
            "overview": self.overview.to_dict(),
            "risk_level": self.risk.label,
            "risk_summary": self.risk_summary,
            "inventory": [e.to_dict() for e in self.inventory],
            "parse_errors": [e.to_dict() for e in self.parse_errors],
            "secrets": [f.to_dict() for f in self.secrets],
            "violations": [v.to_dict() for v in self.violations],
            "recent_changes": [r.to_dict() for r in self.recent_changes],
            "warnings": list(self.warnings),
        }
