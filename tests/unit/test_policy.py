"""Tests for policy loading, glob scoping and rule evaluation."""

from __future__ import annotations

import re
from decimal import Decimal
from pathlib import Path

import pytest
from hypothesis import given, settings

from configtrace.errors import PolicyError
from configtrace.models.policy import ForbiddenValue, RequiredKey, ValueEnum, ValueMatch
from configtrace.models.severity import Severity
from configtrace.models.values import BoolValue, NumberValue, StringValue
from configtrace.normalizer import ConfigFormat, flatten, normalize, to_value
from configtrace.policy import check_failure, evaluate, load_policy, parse_policy, rule_applies
from configtrace.policy.glob import compile_glob, glob_matches

from .conftest import make_mapping, make_policy, make_rule_policy, map_documents

# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoader:
    def test_full_document(self) -> None:
        policy = parse_policy(
            """
name: production-baseline
description: Guardrails
rules:
  - id: no-debug
    description: Debug mode must be off
    severity: CRITICAL
    pattern: "*.yaml"
    check:
      type: forbidden_value
      key: debug
      value: true
  - id: has-name
    check:
      type: required_key
      key: app.name
"""
        )
        assert policy.name == "production-baseline"
        assert policy.description == "Guardrails"
        first, second = policy.rules
        assert first.id == "no-debug"
        assert first.severity is Severity.CRITICAL
        assert first.pattern == "*.yaml"
        assert first.check == ForbiddenValue("debug", BoolValue(True))
        assert second.severity is Severity.MEDIUM
        assert second.check == RequiredKey("app.name")

    def test_value_enum_values_are_canonical(self) -> None:
        policy = make_rule_policy("type: value_enum\nkey: replicas\nvalues: [1, 3, five]")
        check = policy.rules[0].check
        assert isinstance(check, ValueEnum)
        assert check.values == (NumberValue(Decimal(1)), NumberValue(Decimal(3)), StringValue("five"))

    def test_load_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "policy.yaml"
        path.write_text("name: p\nrules:\n  - id: r\n    check: {type: required_key, key: a}\n")
        assert load_policy(path).rules[0].id == "r"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PolicyError, match="cannot read policy file"):
            load_policy(tmp_path / "nope.yaml")

    @pytest.mark.parametrize(
        ("document", "message"),
        [
            ("rules: [\n", "invalid policy document"),
            ("- a\n- b\n", "must be a mapping"),
            ("rules: []\n", "'name' is required"),
            ("name: p\n", "'rules' must be a list"),
            ("name: p\nrules: []\n", "at least one rule"),
            ("name: p\nrules: [x]\n", "rule #1 must be a mapping"),
            ("name: p\nrules:\n  - check: {type: required_key, key: a}\n", "non-empty string 'id'"),
            ("name: p\nrules:\n  - id: r\n", "'check' must be a mapping"),
            ("name: p\nrules:\n  - id: r\n    check: {type: required_key}\n", "non-empty string 'key'"),
            ("name: p\nrules:\n  - id: r\n    check: {type: nope, key: a}\n", "unknown check type"),
            ("name: p\nrules:\n  - id: r\n    severity: urgent\n    check: {type: required_key, key: a}\n", "invalid severity"),
            ("name: p\nrules:\n  - id: r\n    check: {type: value_match, key: a, regex: '('}\n", "invalid regex '\\('"),
            ("name: p\nrules:\n  - id: r\n    check: {type: value_match, key: a}\n", "string 'regex'"),
            ("name: p\nrules:\n  - id: r\n    check: {type: value_enum, key: a, values: []}\n", "non-empty 'values'"),
            ("name: p\nrules:\n  - id: r\n    check: {type: forbidden_value, key: a}\n", "needs a 'value'"),
            ("name: p\nrules:\n  - id: r\n    pattern: 'conf/[a'\n    check: {type: required_key, key: a}\n", "invalid glob pattern"),
        ],
    )
    def test_invalid_documents(self, document: str, message: str) -> None:
        with pytest.raises(PolicyError, match=message):
            parse_policy(document)

    def test_duplicate_rule_id(self) -> None:
        rules = (
            "  - id: same\n    check: {type: required_key, key: a}\n"
            "  - id: same\n    check: {type: required_key, key: b}\n"
        )
        with pytest.raises(PolicyError, match="duplicate rule id: 'same'"):
            make_policy(rules)

    def test_error_names_source_and_rule(self) -> None:
        with pytest.raises(PolicyError) as exc_info:
            parse_policy("name: p\nrules:\n  - id: r9\n    check: {type: x, key: a}\n", source="team.yaml")
        assert exc_info.value.rule_id == "r9"
        assert str(exc_info.value).startswith("team.yaml: rule 'r9': ")


# ---------------------------------------------------------------------------
# Glob scoping
# ---------------------------------------------------------------------------


class TestGlob:
    @pytest.mark.parametrize(
        ("pattern", "path", "expected"),
        [
            ("*.yaml", "app.yaml", True),
            ("*.yaml", "deploy/prod/app.yaml", True),
            ("*.yaml", "app.json", False),
            ("app.???", "conf/app.yml", True),
            ("deploy/*.yaml", "deploy/app.yaml", True),
            ("deploy/*.yaml", "deploy/prod/app.yaml", True),
            ("deploy/*.yaml", "other/deploy/app.yaml", False),
            ("conf/?/app.yaml", "conf/a/app.yaml", True),
            ("deploy/**/*.yaml", "deploy/app.yaml", True),
            ("deploy/**/*.yaml", "deploy/prod/eu/app.yaml", True),
            ("**/secrets.json", "secrets.json", True),
            ("deploy/**", "deploy/a/b.toml", True),
            ("[!.]*.toml", "pyproject.toml", True),
            ("[!.]*.toml", ".hidden.toml", False),
            ("conf/[ab].yaml", "conf/b.yaml", True),
            ("conf/[ab].yaml", "conf/c.yaml", False),
            ("deploy/*.yaml", "./deploy/app.yaml", True),
        ],
    )
    def test_matching(self, pattern: str, path: str, expected: bool) -> None:
        assert glob_matches(compile_glob(pattern), pattern, path) is expected

    def test_rule_without_pattern_applies_everywhere(self) -> None:
        rule = make_rule_policy("type: required_key\nkey: a").rules[0]
        assert rule_applies(rule, "anything/at/all.toml")

    def test_scoped_rule_skips_other_files(self) -> None:
        policy = make_rule_policy("type: required_key\nkey: name", pattern="prod/*.yaml")
        assert evaluate(policy, make_mapping({}), "dev/app.yaml") == []
        assert len(evaluate(policy, make_mapping({}), "prod/app.yaml")) == 1


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


class TestChecks:
    def test_required_key(self) -> None:
        check = RequiredKey("database.host")
        assert check_failure(check, make_mapping({"database.host": "db"})) is None
        assert check_failure(check, make_mapping({"database.port": 1})) == "Required key 'database.host' is missing"

    def test_required_key_satisfied_by_container(self) -> None:
        mapping = make_mapping({"database.host": "db"})
        assert check_failure(RequiredKey("database"), mapping) is None

    def test_forbidden_key(self) -> None:
        policy = make_rule_policy("type: forbidden_key\nkey: legacy")
        assert evaluate(policy, make_mapping({"modern": 1}), "a.yaml") == []
        [violation] = evaluate(policy, make_mapping({"legacy.mode": 1}), "a.yaml")
        assert violation.message == "Forbidden key 'legacy' is present"

    def test_value_match_uses_search_on_rendered_value(self) -> None:
        check = ValueMatch("image", re.compile(r":v\d+"))
        assert check_failure(check, make_mapping({"image": "api:v12"})) is None
        assert (
            check_failure(check, make_mapping({"image": "api:latest"}))
            == "Value 'api:latest' for key 'image' does not match pattern ':v\\d+'"
        )

    def test_value_match_renders_numbers(self) -> None:
        policy = make_rule_policy("type: value_match\nkey: port\nregex: '^80[0-9]{2}$'")
        assert evaluate(policy, make_mapping({"port": 8080}), "a.yaml") == []
        assert len(evaluate(policy, make_mapping({"port": 443}), "a.yaml")) == 1

    def test_value_match_on_number_beyond_float_range(self) -> None:
        mapping = normalize(b'{"n": 1e5000}', ConfigFormat.JSON)
        assert evaluate(make_rule_policy("type: value_match\nkey: n\nregex: '^1'"), mapping, "a.json") == []
        [violation] = evaluate(make_rule_policy("type: value_match\nkey: n\nregex: '^2'"), mapping, "a.json")
        assert "1E+5000" in violation.message

    def test_value_match_and_enum_skip_missing_keys(self) -> None:
        policy = make_policy(
            "  - id: m\n    check: {type: value_match, key: x, regex: '^a$'}\n"
            "  - id: e\n    check: {type: value_enum, key: x, values: [a]}\n"
        )
        assert evaluate(policy, make_mapping({"y": "b"}), "a.yaml") == []

    # Empty containers have no string rendering to match and no scalar to
    # compare with an allowed set, so neither check fires on them.
    def test_containers_are_not_applicable_to_value_checks(self) -> None:
        policy = make_policy(
            "  - id: m\n    check: {type: value_match, key: tags, regex: '^a$'}\n"
            "  - id: e\n    check: {type: value_enum, key: tags, values: [a]}\n"
        )
        mapping = normalize(b"tags: []\n", ConfigFormat.YAML)
        assert evaluate(policy, mapping, "a.yaml") == []

    def test_value_enum_is_type_strict(self) -> None:
        policy = make_rule_policy("type: value_enum\nkey: replicas\nvalues: [1, 3]")
        assert evaluate(policy, make_mapping({"replicas": 3}), "a.yaml") == []
        [violation] = evaluate(policy, make_mapping({"replicas": "3"}), "a.yaml")
        assert violation.message == "Value '3' for key 'replicas' is not in allowed set: [1, 3]"

    def test_forbidden_value_is_type_strict(self) -> None:
        policy = make_rule_policy("type: forbidden_value\nkey: debug\nvalue: true")
        assert evaluate(policy, make_mapping({"debug": "true"}), "a.yaml") == []
        assert evaluate(policy, make_mapping({"debug": False}), "a.yaml") == []
        assert len(evaluate(policy, make_mapping({"debug": True}), "a.yaml")) == 1

    def test_forbidden_value_compares_containers(self) -> None:
        policy = make_rule_policy("type: forbidden_value\nkey: hosts\nvalue: []")
        mapping = normalize(b"hosts: []\n", ConfigFormat.YAML)
        [violation] = evaluate(policy, mapping, "a.yaml")
        assert violation.message == "Forbidden value '[]' found for key 'hosts'"


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


class TestEvaluate:
    def test_debug_flag_in_production_config(self) -> None:
        policy = make_rule_policy("type: forbidden_value\nkey: debug\nvalue: true", severity="critical")
        mapping = normalize(b"debug: true\nport: 8080\n", ConfigFormat.YAML)
        [violation] = evaluate(policy, mapping, "config/prod.yaml")
        assert violation.rule_id == "r1"
        assert violation.severity is Severity.CRITICAL
        assert violation.file == "config/prod.yaml"
        assert violation.key_path == "debug"
        assert violation.message == "Forbidden value 'true' found for key 'debug'"

    def test_quoted_true_only_matches_a_string(self) -> None:
        policy = make_rule_policy('type: forbidden_value\nkey: debug\nvalue: "true"', severity="critical")
        quoted = normalize(b'debug: "true"\n', ConfigFormat.YAML)
        [violation] = evaluate(policy, quoted, "config/prod.yaml")
        assert violation.severity is Severity.CRITICAL
        assert violation.message == "Forbidden value 'true' found for key 'debug'"
        assert evaluate(policy, normalize(b"debug: true\n", ConfigFormat.YAML), "config/prod.yaml") == []

    def test_log_level_outside_allowed_set(self) -> None:
        policy = make_rule_policy("type: value_enum\nkey: logging.level\nvalues: [info, warn, error]")
        mapping = normalize(b'{"logging": {"level": "debug"}}', ConfigFormat.JSON)
        [violation] = evaluate(policy, mapping, "app.json")
        assert violation.key_path == "logging.level"
        assert "'debug'" in violation.message
        assert violation.message.endswith("[info, warn, error]")

    def test_violations_follow_rule_order(self) -> None:
        policy = make_policy(
            "  - id: z-last\n    check: {type: required_key, key: a}\n"
            "  - id: a-first\n    check: {type: required_key, key: b}\n"
        )
        violations = evaluate(policy, make_mapping({}), "x.yaml")
        assert [v.rule_id for v in violations] == ["z-last", "a-first"]

    def test_rule_description_is_carried(self) -> None:
        policy = make_policy("  - id: r\n    description: needs a\n    check: {type: required_key, key: a}\n")
        [violation] = evaluate(policy, make_mapping({}), "x.yaml")
        assert violation.rule_description == "needs a"

    def test_evaluation_is_deterministic(self) -> None:
        policy = make_policy(
            "  - id: r1\n    check: {type: required_key, key: a}\n"
            "  - id: r2\n    check: {type: forbidden_key, key: b}\n"
        )
        mapping = make_mapping({"b": 1})
        assert evaluate(policy, mapping, "x.yaml") == evaluate(policy, mapping, "x.yaml")


class TestProperties:
    _POLICY = make_policy(
        "  - id: r1\n    check: {type: required_key, key: a}\n"
        "  - id: r2\n    check: {type: forbidden_key, key: b}\n"
        "  - id: r3\n    check: {type: value_match, key: c, regex: '^x'}\n"
        "  - id: r4\n    check: {type: value_enum, key: d, values: [x, y]}\n"
    )

    @given(doc=map_documents)
    @settings(max_examples=100)
    def test_determinism_and_rule_order(self, doc: dict) -> None:
        mapping = flatten(to_value(doc))
        first = evaluate(self._POLICY, mapping, "app.yaml")
        assert first == evaluate(self._POLICY, mapping, "app.yaml")
        ids = [v.rule_id for v in first]
        assert ids == sorted(ids)
        assert len(ids) == len(set(ids))
