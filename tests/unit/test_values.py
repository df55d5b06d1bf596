"""Tests for the canonical value model and its encodings."""

from __future__ import annotations

from decimal import Decimal

import pytest

from configtrace.models.values import (
    NULL,
    BoolValue,
    ListValue,
    MapValue,
    NumberValue,
    StringValue,
    from_typed,
    render_number,
    render_value,
    to_plain,
    to_typed,
)


class TestEquality:
    def test_numbers_compare_by_value(self) -> None:
        assert NumberValue(Decimal("1.0")) == NumberValue(Decimal("1"))
        assert hash(NumberValue(Decimal("1.0"))) == hash(NumberValue(Decimal("1")))

    def test_nan_equals_nan(self) -> None:
        assert NumberValue(Decimal("NaN")) == NumberValue(Decimal("NaN"))
        assert NumberValue(Decimal("NaN")) != NumberValue(Decimal("0"))

    def test_string_never_equals_number(self) -> None:
        assert StringValue("20") != NumberValue(Decimal(20))

    def test_bool_never_equals_number(self) -> None:
        assert BoolValue(True) != NumberValue(Decimal(1))

    def test_map_equality_ignores_order(self) -> None:
        a = MapValue((("x", NumberValue(Decimal(1))), ("y", NULL)))
        b = MapValue((("y", NULL), ("x", NumberValue(Decimal(1)))))
        assert a == b
        assert a.keys() == ["x", "y"]

    def test_list_equality_is_positional(self) -> None:
        a = ListValue((StringValue("a"), StringValue("b")))
        b = ListValue((StringValue("b"), StringValue("a")))
        assert a != b


class TestRendering:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1.50", "1.5"),
            ("1E+2", "100"),
            ("42", "42"),
            ("-0.000", "0"),
            ("0.0001", "0.0001"),
            ("Infinity", "inf"),
            ("-Infinity", "-inf"),
            ("NaN", "nan"),
            ("1E+5000", "1E+5000"),
            ("1.50E+5000", "1.5E+5000"),
            ("-2.5E-3000", "-2.5E-3000"),
            ("1E+999", "1" + "0" * 999),
        ],
    )
    def test_render_number(self, raw: str, expected: str) -> None:
        assert render_number(Decimal(raw)) == expected

    def test_render_scalars(self) -> None:
        assert render_value(BoolValue(True)) == "true"
        assert render_value(NULL) == "null"
        assert render_value(StringValue("debug")) == "debug"

    def test_render_containers(self) -> None:
        value = MapValue((("a", ListValue((NumberValue(Decimal(1)), BoolValue(False)))),))
        assert render_value(value) == "{a: [1, false]}"

    def test_to_plain(self) -> None:
        value = MapValue(
            (
                ("port", NumberValue(Decimal("5432"))),
                ("ratio", NumberValue(Decimal("0.5"))),
                ("tags", ListValue((StringValue("a"),))),
                ("off", NULL),
            )
        )
        assert to_plain(value) == {"port": 5432, "ratio": 0.5, "tags": ["a"], "off": None}

    def test_to_plain_keeps_huge_numbers_as_text(self) -> None:
        assert to_plain(NumberValue(Decimal("1E+5000"))) == "1E+5000"
        assert to_plain(NumberValue(Decimal("1E+20"))) == 10**20


class TestTypedEncoding:
    def test_round_trip_preserves_kinds(self) -> None:
        value = MapValue(
            (
                ("s", StringValue("20")),
                ("n", NumberValue(Decimal("20"))),
                ("b", BoolValue(False)),
                ("z", NULL),
                ("l", ListValue((NumberValue(Decimal("1.25")), MapValue()))),
            )
        )
        assert from_typed(to_typed(value)) == value

    def test_number_keeps_exact_text(self) -> None:
        assert to_typed(NumberValue(Decimal("0.10"))) == {"kind": "number", "value": "0.10"}

    @pytest.mark.parametrize(
        "raw",
        [
            "not-a-dict",
            {"kind": "bogus"},
            {"kind": "bool", "value": "yes"},
            {"kind": "string", "value": 3},
            {"kind": "number", "value": "abc"},
            {"kind": "map", "entries": [["k"]]},
        ],
    )
    def test_malformed_input_raises(self, raw: object) -> None:
        with pytest.raises(ValueError):
            from_typed(raw)
