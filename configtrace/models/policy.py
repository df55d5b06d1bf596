"""Policy, rule, check and violation data structures."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TypeAlias

from configtrace.models.severity import Severity
from configtrace.models.values import Value, render_value


class CheckType:
    """Names of the check kinds as written in policy documents."""

    REQUIRED_KEY = "required_key"
    FORBIDDEN_KEY = "forbidden_key"
    VALUE_MATCH = "value_match"
    VALUE_ENUM = "value_enum"
    FORBIDDEN_VALUE = "forbidden_value"


@dataclass(frozen=True)
class RequiredKey:
    key: str
    type = CheckType.REQUIRED_KEY


@dataclass(frozen=True)
class ForbiddenKey:
    key: str
    type = CheckType.FORBIDDEN_KEY


@dataclass(frozen=True)
class ValueMatch:
    key: str
    regex: re.Pattern[str]
    type = CheckType.VALUE_MATCH


@dataclass(frozen=True)
class ValueEnum:
    key: str
    values: tuple[Value, ...]
    type = CheckType.VALUE_ENUM


@dataclass(frozen=True)
class ForbiddenValue:
    key: str
    value: Value
    type = CheckType.FORBIDDEN_VALUE


Check: TypeAlias = RequiredKey | ForbiddenKey | ValueMatch | ValueEnum | ForbiddenValue


@dataclass(frozen=True)
class Rule:
    """One governance rule.

    ``pattern`` is a file glob; a rule without one applies to every file.
    ``matcher`` is the compiled form of ``pattern`` built by the loader.
    """

    id: str
    check: Check
    severity: Severity = Severity.MEDIUM
    description: str | None = None
    pattern: str | None = None
    matcher: re.Pattern[str] | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Policy:
    name: str
    rules: tuple[Rule, ...]
    description: str | None = None


@dataclass(frozen=True)
class Violation:
    """A rule failing against one file.  Rebuilt on every run."""

    rule_id: str
    severity: Severity
    file: str
    key_path: str | None
    message: str
    rule_description: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "rule_id": self.rule_id,
            "rule_description": self.rule_description,
            "severity": self.severity.value,
            "file": self.file,
            "key_path": self.key_path,
            "message": self.message,
        }


def describe_values(values: tuple[Value, ...]) -> str:
    return ", ".join(render_value(value) for value in values)
