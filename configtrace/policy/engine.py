"""Rule evaluation against one flattened document."""

from __future__ import annotations

from configtrace.models.flat import FlattenedMapping
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
    describe_values,
)
from configtrace.models.values import is_container, render_value
from configtrace.observability.logging import get_logger
from configtrace.observability.metrics import policy_violations_total
from configtrace.policy.glob import compile_glob, glob_matches

_logger = get_logger("policy.engine")


def rule_applies(rule: Rule, file_path: str) -> bool:
    """Return True when *rule* is in scope for *file_path*."""
    if rule.pattern is None:
        return True
    matcher = rule.matcher if rule.matcher is not None else compile_glob(rule.pattern)
    return glob_matches(matcher, rule.pattern, file_path)


def evaluate(policy: Policy, mapping: FlattenedMapping, file_path: str) -> list[Violation]:
    """Evaluate every applicable rule, returning violations in rule order."""
    violations: list[Violation] = []
    for rule in policy.rules:
        if not rule_applies(rule, file_path):
            continue
        failure = check_failure(rule.check, mapping)
        if failure is None:
            continue
        violations.append(
            Violation(
                rule_id=rule.id,
                severity=rule.severity,
                file=file_path,
                key_path=rule.check.key,
                message=failure,
                rule_description=rule.description,
            )
        )
        policy_violations_total.labels(severity=rule.severity.value).inc()

    if violations:
        _logger.debug("policy_violations", policy=policy.name, file=file_path, count=len(violations))
    return violations


def check_failure(check: Check, mapping: FlattenedMapping) -> str | None:
    """Run one check; return the violation message, or None when it passes.

    ValueMatch and ValueEnum only look at scalar leaves.  A missing key or an
    empty container at the key is not applicable to them.
    """
    if isinstance(check, RequiredKey):
        if mapping.has_node(check.key):
            return None
        return f"Required key '{check.key}' is missing"

    if isinstance(check, ForbiddenKey):
        if not mapping.has_node(check.key):
            return None
        return f"Forbidden key '{check.key}' is present"

    if isinstance(check, ValueMatch):
        value = mapping.get(check.key)
        if value is None or is_container(value):
            return None
        text = render_value(value)
        if check.regex.search(text):
            return None
        return f"Value '{text}' for key '{check.key}' does not match pattern '{check.regex.pattern}'"

    if isinstance(check, ValueEnum):
        value = mapping.get(check.key)
        if value is None or is_container(value) or value in check.values:
            return None
        return (
            f"Value '{render_value(value)}' for key '{check.key}' is not in allowed set: "
            f"[{describe_values(check.values)}]"
        )

    if isinstance(check, ForbiddenValue):
        value = mapping.get(check.key)
        if value is None or value != check.value:
            return None
        return f"Forbidden value '{render_value(value)}' found for key '{check.key}'"

    raise TypeError(f"unsupported check: {check!r}")
