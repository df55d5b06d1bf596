"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from configtrace.models.config import (
    ConfigTraceConfig,
    ExecutionConfig,
    GitConfig,
    LogConfig,
    MetricsConfig,
    NormalizerConfig,
    ReportConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"CONFIGTRACE_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer for CONFIGTRACE_{key}: {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_renderer(value: str) -> str:
    valid = {"json", "console"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log renderer: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> ConfigTraceConfig:
    """Load configuration from CONFIGTRACE_* environment variables."""
    return ConfigTraceConfig(
        normalizer=NormalizerConfig(
            max_depth=_env_int("MAX_DEPTH", 64, min_val=8, max_val=512),
        ),
        execution=ExecutionConfig(
            workers=_env_int("WORKERS", 1, min_val=1, max_val=32),
        ),
        git=GitConfig(
            timeout_seconds=_env_int("GIT_TIMEOUT", 30, min_val=1, max_val=600),
            history_limit=_env_int("HISTORY_LIMIT", 10, min_val=1),
        ),
        report=ReportConfig(
            history_limit=_env_int("REPORT_HISTORY_LIMIT", 5, min_val=0),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "warning")),
            renderer=_validate_renderer(_env("LOG_RENDERER", "json")),
        ),
        metrics=MetricsConfig(
            textfile=_env("METRICS_FILE", ""),
        ),
    )
