"""Format parsers: raw bytes -> plain Python data, with located errors.

Each parser rejects duplicate map keys and reports the line/column of the
problem when the underlying library exposes it.  ``Decimal`` is used for
floating-point literals so numbers keep their exact source value.
"""

from __future__ import annotations

import json
import re
import tomllib
from decimal import Decimal, InvalidOperation

import yaml
from yaml.constructor import ConstructorError, SafeConstructor

from configtrace.errors import ParseError
from configtrace.normalizer.convert import ConversionError, key_text
from configtrace.normalizer.formats import ConfigFormat

_MERGE_TAG = "tag:yaml.org,2002:merge"
_TOML_LOCATION = re.compile(r"\(at line (\d+), column (\d+)\)")


class StrictYAMLLoader(yaml.SafeLoader):
    """SafeLoader that rejects duplicate keys and reads floats as Decimal.

    Map keys are stringified while the mapping is built, so ``1`` and
    ``true`` stay distinct keys and ``1`` and ``1.0`` collide.
    """

    def _key(self, key_node: yaml.Node) -> str:
        try:
            return key_text(self.construct_object(key_node, deep=True))
        except ConversionError as exc:
            raise ConstructorError(None, None, str(exc), key_node.start_mark) from exc

    def construct_mapping(self, node: yaml.Node, deep: bool = False) -> dict:  # type: ignore[override]
        if not isinstance(node, yaml.MappingNode):
            return super().construct_mapping(node, deep=deep)
        seen: set[str] = set()
        for key_node, _ in node.value:
            if key_node.tag == _MERGE_TAG:
                continue
            key = self._key(key_node)
            if key in seen:
                raise ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key '{key}'",
                    key_node.start_mark,
                )
            seen.add(key)
        # merged entries come first so the mapping's own keys override them
        self.flatten_mapping(node)
        return {
            self._key(key_node): self.construct_object(value_node, deep=deep)
            for key_node, value_node in node.value
        }


def _construct_decimal(loader: SafeConstructor, node: yaml.ScalarNode) -> Decimal:
    text = str(loader.construct_scalar(node)).replace("_", "").lower()
    if text in (".inf", "+.inf"):
        return Decimal("Infinity")
    if text == "-.inf":
        return Decimal("-Infinity")
    if text == ".nan":
        return Decimal("NaN")
    try:
        return Decimal(text)
    except InvalidOperation:
        # YAML 1.1 sexagesimal floats ("190:20:30.15")
        return Decimal(repr(SafeConstructor.construct_yaml_float(loader, node)))


StrictYAMLLoader.add_constructor("tag:yaml.org,2002:float", _construct_decimal)


def parse_yaml(data: bytes) -> object:
    """Parse a YAML stream.  Several documents become a list of documents."""
    try:
        documents = list(yaml.load_all(data, Loader=StrictYAMLLoader))
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark or exc.context_mark
        reason = exc.problem or exc.context or "invalid YAML"
        if mark is None:
            raise ParseError(ConfigFormat.YAML, reason) from exc
        raise ParseError(ConfigFormat.YAML, reason, mark.line + 1, mark.column + 1) from exc
    except yaml.YAMLError as exc:
        raise ParseError(ConfigFormat.YAML, str(exc)) from exc
    except RecursionError as exc:
        raise ParseError(ConfigFormat.YAML, "document nesting is too deep") from exc
    except ValueError as exc:
        raise ParseError(ConfigFormat.YAML, str(exc)) from exc

    if not documents:
        return None
    if len(documents) == 1:
        return documents[0]
    return documents


def _unique_pairs(pairs: list[tuple[str, object]]) -> dict[str, object]:
    result: dict[str, object] = {}
    for key, value in pairs:
        if key in result:
            raise ParseError(ConfigFormat.JSON, f"duplicate key '{key}'")
        result[key] = value
    return result


def parse_json(data: bytes) -> object:
    text = _decode(data, ConfigFormat.JSON)
    try:
        return json.loads(
            text,
            parse_float=Decimal,
            parse_constant=Decimal,
            object_pairs_hook=_unique_pairs,
        )
    except json.JSONDecodeError as exc:
        raise ParseError(ConfigFormat.JSON, exc.msg, exc.lineno, exc.colno) from exc
    except RecursionError as exc:
        raise ParseError(ConfigFormat.JSON, "document nesting is too deep") from exc
    except ValueError as exc:
        raise ParseError(ConfigFormat.JSON, str(exc)) from exc


def parse_toml(data: bytes) -> object:
    text = _decode(data, ConfigFormat.TOML)
    try:
        return tomllib.loads(text, parse_float=Decimal)
    except tomllib.TOMLDecodeError as exc:
        message = str(exc)
        line = getattr(exc, "lineno", None)
        column = getattr(exc, "colno", None)
        match = _TOML_LOCATION.search(message)
        if line is None and match:
            line, column = int(match.group(1)), int(match.group(2))
        reason = _TOML_LOCATION.sub("", getattr(exc, "msg", message)).strip()
        raise ParseError(ConfigFormat.TOML, reason, line, column) from exc
    except RecursionError as exc:
        raise ParseError(ConfigFormat.TOML, "document nesting is too deep") from exc
    except ValueError as exc:
        raise ParseError(ConfigFormat.TOML, str(exc)) from exc


def _decode(data: bytes, fmt: ConfigFormat) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(fmt, f"not valid UTF-8 (byte offset {exc.start})") from exc


PARSERS = {
    ConfigFormat.YAML: parse_yaml,
    ConfigFormat.JSON: parse_json,
    ConfigFormat.TOML: parse_toml,
}
