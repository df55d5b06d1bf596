"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class NormalizerConfig:
    """Config Normalizer configuration."""

    max_depth: int = 64


@dataclass
class ExecutionConfig:
    """Worker pool used for per-file and per-revision passes."""

    workers: int = 1


@dataclass
class GitConfig:
    """Version-control collaborator configuration."""

    timeout_seconds: int = 30
    history_limit: int = 10


@dataclass
class ReportConfig:
    """Audit report configuration."""

    history_limit: int = 5


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "warning"
    renderer: str = "json"


@dataclass
class MetricsConfig:
    """Metrics configuration."""

    textfile: str = ""


@dataclass
class ConfigTraceConfig:
    """Top-level configtrace configuration."""

    normalizer: NormalizerConfig = field(default_factory=NormalizerConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    git: GitConfig = field(default_factory=GitConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    log: LogConfig = field(default_factory=LogConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
