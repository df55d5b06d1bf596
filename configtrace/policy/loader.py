"""Policy document loading and validation.

A policy is a YAML document::

    name: production-baseline
    description: Guardrails for production configs
    rules:
      - id: no-debug
        description: Debug mode must be off
        severity: critical          # low | medium (default) | high | critical
        pattern: "*.yaml"           # optional file glob
        check:
          type: forbidden_value     # required_key | forbidden_key | value_match
          key: debug                #   | value_enum | forbidden_value
          value: true

Every problem is reported as PolicyError before any file is evaluated.
"""

from __future__ import annotations

import re
from pathlib import Path

from configtrace.errors import ParseError, PolicyError
from configtrace.models.policy import (
    Check,
    CheckType,
    ForbiddenKey,
    ForbiddenValue,
    Policy,
    RequiredKey,
    Rule,
    ValueEnum,
    ValueMatch,
)
from configtrace.models.severity import Severity
from configtrace.models.values import Value
from configtrace.normalizer.convert import ConversionError, to_value
from configtrace.normalizer.parsers import parse_yaml
from configtrace.observability.logging import get_logger
from configtrace.policy.glob import compile_glob

_logger = get_logger("policy.loader")

_SEVERITIES = {s.value for s in Severity}


def load_policy(path: str | Path) -> Policy:
    """Read and validate a policy file."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise PolicyError(f"cannot read policy file: {exc.strerror or exc}", source=str(path)) from exc
    return parse_policy(data, source=str(path))


def parse_policy(data: bytes | str, source: str | None = None) -> Policy:
    """Parse and validate a policy document held in memory."""
    raw_bytes = data.encode("utf-8") if isinstance(data, str) else data
    try:
        doc = parse_yaml(raw_bytes)
    except ParseError as exc:
        raise PolicyError(f"invalid policy document: {exc}", source=source) from exc

    if not isinstance(doc, dict):
        raise PolicyError("policy document must be a mapping", source=source)

    name = doc.get("name")
    if not isinstance(name, str) or not name.strip():
        raise PolicyError("policy 'name' is required and must be a string", source=source)
    description = _optional_str(doc, "description", source)

    raw_rules = doc.get("rules")
    if not isinstance(raw_rules, list):
        raise PolicyError("policy 'rules' must be a list", source=source)
    if not raw_rules:
        raise PolicyError("policy must contain at least one rule", source=source)

    rules: list[Rule] = []
    seen_ids: set[str] = set()
    for index, raw_rule in enumerate(raw_rules):
        rule = _parse_rule(raw_rule, index, source)
        if rule.id in seen_ids:
            raise PolicyError(f"duplicate rule id: '{rule.id}'", source=source)
        seen_ids.add(rule.id)
        rules.append(rule)

    _logger.debug("policy_loaded", source=source, policy=name, rules=len(rules))
    return Policy(name=name, rules=tuple(rules), description=description)


def _parse_rule(raw: object, index: int, source: str | None) -> Rule:
    if not isinstance(raw, dict):
        raise PolicyError(f"rule #{index + 1} must be a mapping", source=source)

    rule_id = raw.get("id")
    if not isinstance(rule_id, str) or not rule_id.strip():
        raise PolicyError(f"rule #{index + 1} needs a non-empty string 'id'", source=source)

    raw_severity = raw.get("severity", Severity.MEDIUM.value)
    if not isinstance(raw_severity, str) or raw_severity.lower() not in _SEVERITIES:
        raise PolicyError(
            f"invalid severity {raw_severity!r}; expected one of {sorted(_SEVERITIES)}",
            source=source,
            rule_id=rule_id,
        )

    pattern = raw.get("pattern")
    matcher = None
    if pattern is not None:
        if not isinstance(pattern, str) or not pattern:
            raise PolicyError("'pattern' must be a non-empty string", source=source, rule_id=rule_id)
        try:
            matcher = compile_glob(pattern)
        except re.error as exc:
            raise PolicyError(f"invalid glob pattern '{pattern}': {exc}", source=source, rule_id=rule_id) from exc

    return Rule(
        id=rule_id,
        check=_parse_check(raw.get("check"), rule_id, source),
        severity=Severity(raw_severity.lower()),
        description=_optional_str(raw, "description", source, rule_id),
        pattern=pattern,
        matcher=matcher,
    )


def _parse_check(raw: object, rule_id: str, source: str | None) -> Check:
    if not isinstance(raw, dict):
        raise PolicyError("'check' must be a mapping with a 'type'", source=source, rule_id=rule_id)

    check_type = raw.get("type")
    key = raw.get("key")
    if not isinstance(key, str) or not key:
        raise PolicyError("check needs a non-empty string 'key'", source=source, rule_id=rule_id)

    if check_type == CheckType.REQUIRED_KEY:
        return RequiredKey(key)
    if check_type == CheckType.FORBIDDEN_KEY:
        return ForbiddenKey(key)
    if check_type == CheckType.VALUE_MATCH:
        pattern = raw.get("regex")
        if not isinstance(pattern, str):
            raise PolicyError("value_match needs a string 'regex'", source=source, rule_id=rule_id)
        try:
            return ValueMatch(key, re.compile(pattern))
        except re.error as exc:
            raise PolicyError(f"invalid regex '{pattern}': {exc}", source=source, rule_id=rule_id) from exc
    if check_type == CheckType.VALUE_ENUM:
        values = raw.get("values")
        if not isinstance(values, list) or not values:
            raise PolicyError("value_enum needs a non-empty 'values' list", source=source, rule_id=rule_id)
        return ValueEnum(key, tuple(_value(v, rule_id, source) for v in values))
    if check_type == CheckType.FORBIDDEN_VALUE:
        if "value" not in raw:
            raise PolicyError("forbidden_value needs a 'value'", source=source, rule_id=rule_id)
        return ForbiddenValue(key, _value(raw["value"], rule_id, source))

    raise PolicyError(f"unknown check type {check_type!r}", source=source, rule_id=rule_id)


def _value(raw: object, rule_id: str, source: str | None) -> Value:
    try:
        return to_value(raw)
    except ConversionError as exc:
        raise PolicyError(f"unsupported value {raw!r}: {exc}", source=source, rule_id=rule_id) from exc


def _optional_str(raw: dict, field: str, source: str | None, rule_id: str | None = None) -> str | None:
    value = raw.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise PolicyError(f"'{field}' must be a string", source=source, rule_id=rule_id)
    return value
