"""Supported configuration formats and extension-based detection."""

from __future__ import annotations

from enum import StrEnum
from pathlib import PurePath


class ConfigFormat(StrEnum):
    YAML = "yaml"
    JSON = "json"
    TOML = "toml"


_EXTENSIONS: dict[str, ConfigFormat] = {
    ".yaml": ConfigFormat.YAML,
    ".yml": ConfigFormat.YAML,
    ".json": ConfigFormat.JSON,
    ".toml": ConfigFormat.TOML,
}


def detect_format(path: str | PurePath) -> ConfigFormat | None:
    """Return the format implied by the file extension, or None."""
    return _EXTENSIONS.get(PurePath(path).suffix.lower())


def is_config_path(path: str | PurePath) -> bool:
    return detect_format(path) is not None
