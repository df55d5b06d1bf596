"""Tests for environment-driven configuration."""

from __future__ import annotations

import os

import pytest

from configtrace.config import load_config


class TestDefaults:
    def test_defaults_without_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for key in list(os.environ):
            if key.startswith("CONFIGTRACE_"):
                monkeypatch.delenv(key)
        config = load_config()
        assert config.normalizer.max_depth == 64
        assert config.execution.workers == 1
        assert config.git.timeout_seconds == 30
        assert config.git.history_limit == 10
        assert config.report.history_limit == 5
        assert config.log.level == "warning"
        assert config.log.renderer == "json"
        assert config.metrics.textfile == ""


class TestOverrides:
    def test_values_are_read(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONFIGTRACE_WORKERS", "4")
        monkeypatch.setenv("CONFIGTRACE_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("CONFIGTRACE_LOG_RENDERER", "console")
        monkeypatch.setenv("CONFIGTRACE_METRICS_FILE", "/tmp/configtrace.prom")
        config = load_config()
        assert config.execution.workers == 4
        assert config.log.level == "debug"
        assert config.log.renderer == "console"
        assert config.metrics.textfile == "/tmp/configtrace.prom"

    @pytest.mark.parametrize(
        ("key", "raw", "attr", "expected"),
        [
            ("WORKERS", "0", ("execution", "workers"), 1),
            ("WORKERS", "500", ("execution", "workers"), 32),
            ("MAX_DEPTH", "2", ("normalizer", "max_depth"), 8),
            ("MAX_DEPTH", "100000", ("normalizer", "max_depth"), 512),
            ("GIT_TIMEOUT", "9999", ("git", "timeout_seconds"), 600),
            ("REPORT_HISTORY_LIMIT", "-3", ("report", "history_limit"), 0),
        ],
    )
    def test_values_are_clamped(
        self, monkeypatch: pytest.MonkeyPatch, key: str, raw: str, attr: tuple[str, str], expected: int
    ) -> None:
        monkeypatch.setenv(f"CONFIGTRACE_{key}", raw)
        section, name = attr
        assert getattr(getattr(load_config(), section), name) == expected


class TestInvalid:
    def test_non_integer(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONFIGTRACE_WORKERS", "many")
        with pytest.raises(ValueError, match="CONFIGTRACE_WORKERS"):
            load_config()

    def test_unknown_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONFIGTRACE_LOG_LEVEL", "verbose")
        with pytest.raises(ValueError, match="Invalid log level"):
            load_config()

    def test_unknown_renderer(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONFIGTRACE_LOG_RENDERER", "xml")
        with pytest.raises(ValueError, match="Invalid log renderer"):
            load_config()
