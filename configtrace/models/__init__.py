"""Core data structures for configtrace."""

from configtrace.models.changes import (
    Change,
    ChangeKind,
    FileChanges,
    FileStatus,
    RevisionChangeSet,
    RevisionInfo,
    SnapshotDiff,
)
from configtrace.models.config import ConfigTraceConfig
from configtrace.models.findings import SecretFinding, SecretType
from configtrace.models.flat import FlatEntry, FlattenedMapping
from configtrace.models.policy import (
    Check,
    ForbiddenKey,
    ForbiddenValue,
    Policy,
    RequiredKey,
    Rule,
    ValueEnum,
    ValueMatch,
    Violation,
)
from configtrace.models.report import AuditReport, InventoryEntry, OverviewSection, RiskLevel
from configtrace.models.severity import Severity
from configtrace.models.snapshot import FileSnapshot, Snapshot
from configtrace.models.values import (
    BoolValue,
    ListValue,
    MapValue,
    NullValue,
    NumberValue,
    StringValue,
    Value,
)

__all__ = [
    "AuditReport",
    "BoolValue",
    "Change",
    "ChangeKind",
    "Check",
    "ConfigTraceConfig",
    "FileChanges",
    "FileSnapshot",
    "FileStatus",
    "FlatEntry",
    "FlattenedMapping",
    "ForbiddenKey",
    "ForbiddenValue",
    "InventoryEntry",
    "ListValue",
    "MapValue",
    "NullValue",
    "NumberValue",
    "OverviewSection",
    "Policy",
    "RequiredKey",
    "RevisionChangeSet",
    "RevisionInfo",
    "RiskLevel",
    "Rule",
    "SecretFinding",
    "SecretType",
    "Severity",
    "Snapshot",
    "SnapshotDiff",
    "StringValue",
    "Value",
    "ValueEnum",
    "ValueMatch",
    "Violation",
]
