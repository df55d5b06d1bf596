"""Config Normalizer.

Turns raw YAML/JSON/TOML bytes into the canonical value model and flattens
it into a dotted key-path mapping used by the diff and policy engines.

Submodules:
    formats    -- ConfigFormat and extension-based detection.
    parsers    -- Per-format parsing with duplicate-key and location handling.
    convert    -- Parser output -> canonical values (depth-bounded).
    flatten    -- Canonical tree -> FlattenedMapping.
    normalize  -- The public normalize() / normalize_file() entry points.
"""

from configtrace.normalizer.convert import DEFAULT_MAX_DEPTH, to_value
from configtrace.normalizer.flatten import flatten
from configtrace.normalizer.formats import ConfigFormat, detect_format, is_config_path
from configtrace.normalizer.normalize import normalize, normalize_file, parse_value

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "ConfigFormat",
    "detect_format",
    "flatten",
    "is_config_path",
    "normalize",
    "normalize_file",
    "parse_value",
    "to_value",
]
