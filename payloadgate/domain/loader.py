"""
Schema loader - Compiles declarative request documents into the schema model.

Documents look like:

    request:
      method: POST
      headers:
        Content-Type: application/json
      properties:
        username:
          required: true
          type: string
          minLength: 3

The loader checks the structural contract up front so that a schema which
compiles can always be evaluated; any breach raises SchemaError naming the
offending node. Declaration order is preserved because it drives both
validation order and violation order.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional, Union

import yaml

from .constraints import FORMAT_CHECKERS
from .exceptions import SchemaError
from .schema import (
    CONSTRAINT_NAMES,
    NUMERIC_CONSTRAINTS,
    STRING_CONSTRAINTS,
    HttpMethod,
    PropertySchema,
    PropertyType,
    RequestSchema,
)

logger = logging.getLogger(__name__)

Document = Union[Mapping[str, Any], str, bytes]

# Delimited patterns as written in PCRE style, e.g. '/^\d{4}$/i'.
_DELIMITED_PATTERN = re.compile(r"^/(?P<body>.*)/(?P<flags>[imsxu]*)$", re.DOTALL)
_PATTERN_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": 0,
}


def load(document: Document, name: str = "request") -> RequestSchema:
    """
    Compile a request schema document.

    Args:
        document: Parsed mapping, or YAML/JSON source text
        name: Schema name reported in violations and logs

    Returns:
        Immutable RequestSchema

    Raises:
        SchemaError: If the document breaks the schema contract
    """
    data = _parse(document) if isinstance(document, (str, bytes)) else document

    if not isinstance(data, Mapping):
        raise SchemaError(f"{name}: schema document must be a mapping")

    request = data.get("request")
    if not isinstance(request, Mapping):
        raise SchemaError(f"{name}: missing 'request' section")

    method = _load_method(name, request.get("method"))
    headers = _load_headers(name, request.get("headers"))

    properties = request.get("properties")
    if not isinstance(properties, Mapping) or not properties:
        raise SchemaError(f"{name}: 'request.properties' must be a non-empty mapping")

    body = PropertySchema(
        name="",
        type=PropertyType.OBJECT,
        path="",
        required=True,
        properties=_load_properties(name, properties, parent_path=""),
    )

    schema = RequestSchema(name=name, method=method, headers=headers, body=body)
    logger.debug("Compiled request schema %s (%d top-level properties)", name, len(body.properties))
    return schema


def load_file(path: Union[str, Path]) -> RequestSchema:
    """
    Compile the schema stored at `path`, named after the file stem.

    Raises:
        SchemaError: If the file cannot be read or is malformed
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaError(f"Failed to read schema file {path}: {exc}") from exc
    return load(content, name=path.stem)


def compile_pattern(name: str, path: str, pattern: Any) -> re.Pattern[str]:
    """Compile a schema pattern, accepting both plain and '/.../flags' forms."""
    if not isinstance(pattern, str):
        raise SchemaError(f"{name}: '{path}' pattern must be a string")

    flags = 0
    source = pattern
    delimited = _DELIMITED_PATTERN.match(pattern)
    if delimited:
        source = delimited.group("body")
        for flag in delimited.group("flags"):
            flags |= _PATTERN_FLAGS[flag]

    try:
        return re.compile(source, flags)
    except re.error as exc:
        raise SchemaError(f"{name}: '{path}' has an invalid pattern {pattern!r}: {exc}") from exc


def _parse(source: Union[str, bytes]) -> Any:
    try:
        return yaml.safe_load(source)
    except yaml.YAMLError as exc:
        raise SchemaError(f"Failed to parse schema document: {exc}") from exc


def _load_method(name: str, value: Any) -> HttpMethod:
    if not isinstance(value, str):
        raise SchemaError(f"{name}: 'request.method' must be an HTTP verb")
    try:
        return HttpMethod(value.strip().upper())
    except ValueError:
        raise SchemaError(f"{name}: unknown request method {value!r}") from None


def _load_headers(name: str, value: Any) -> Mapping[str, Optional[str]]:
    if value is None:
        return MappingProxyType({})
    if not isinstance(value, Mapping):
        raise SchemaError(f"{name}: 'request.headers' must be a mapping")

    headers: dict[str, Optional[str]] = {}
    for header, expected in value.items():
        if not isinstance(header, str) or not header:
            raise SchemaError(f"{name}: header names must be non-empty strings")
        if isinstance(expected, (Mapping, list)):
            raise SchemaError(f"{name}: header '{header}' must map to a literal value")
        # null or "" only require presence
        if expected is None or expected == "":
            headers[header] = None
        elif isinstance(expected, bool):
            headers[header] = "true" if expected else "false"
        else:
            headers[header] = str(expected)
    return MappingProxyType(headers)


def _join(parent_path: str, key: str) -> str:
    return f"{parent_path}.{key}" if parent_path else key


def _load_properties(
    name: str, definitions: Mapping[Any, Any], parent_path: str
) -> Mapping[str, PropertySchema]:
    properties: dict[str, PropertySchema] = {}
    for key, definition in definitions.items():
        if not isinstance(key, str) or not key:
            raise SchemaError(f"{name}: property names must be non-empty strings, got {key!r}")
        properties[key] = _load_property(name, key, definition, _join(parent_path, key))
    return MappingProxyType(properties)


def _load_property(name: str, key: str, definition: Any, path: str) -> PropertySchema:
    if not isinstance(definition, Mapping):
        raise SchemaError(f"{name}: property '{path}' must be a mapping")

    declared_type = definition.get("type")
    try:
        prop_type = PropertyType(declared_type)
    except ValueError:
        raise SchemaError(
            f"{name}: property '{path}' has unknown type {declared_type!r}; "
            f"expected one of {PropertyType.values()}"
        ) from None

    required = definition.get("required", False)
    if not isinstance(required, bool):
        raise SchemaError(f"{name}: property '{path}' 'required' must be a boolean")

    nested = definition.get("properties")
    if prop_type is PropertyType.OBJECT:
        if not isinstance(nested, Mapping) or not nested:
            raise SchemaError(f"{name}: object property '{path}' must declare non-empty 'properties'")
        children = _load_properties(name, nested, parent_path=path)
    else:
        if nested is not None:
            raise SchemaError(f"{name}: {prop_type.value} property '{path}' cannot declare 'properties'")
        children = MappingProxyType({})

    return PropertySchema(
        name=key,
        type=prop_type,
        path=path,
        required=required,
        constraints=_load_constraints(name, path, prop_type, definition),
        properties=children,
    )


def _load_constraints(
    name: str, path: str, prop_type: PropertyType, definition: Mapping[str, Any]
) -> Mapping[str, Any]:
    constraints: dict[str, Any] = {}

    for rule in CONSTRAINT_NAMES:
        if rule not in definition:
            continue
        value = definition[rule]

        if rule in STRING_CONSTRAINTS and prop_type is not PropertyType.STRING:
            raise SchemaError(f"{name}: '{rule}' only applies to string properties ('{path}')")
        if rule in NUMERIC_CONSTRAINTS and prop_type not in (PropertyType.INTEGER, PropertyType.NUMBER):
            raise SchemaError(f"{name}: '{rule}' only applies to numeric properties ('{path}')")

        if rule in ("minLength", "maxLength"):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise SchemaError(f"{name}: '{path}' {rule} must be a non-negative integer")
        elif rule in NUMERIC_CONSTRAINTS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise SchemaError(f"{name}: '{path}' {rule} must be a number")
        elif rule == "pattern":
            value = compile_pattern(name, path, value)
        elif rule == "format":
            if not isinstance(value, str) or value not in FORMAT_CHECKERS:
                raise SchemaError(
                    f"{name}: '{path}' has unknown format {value!r}; "
                    f"expected one of {sorted(FORMAT_CHECKERS)}"
                )

        constraints[rule] = value

    _check_bounds(name, path, constraints, "minLength", "maxLength")
    _check_bounds(name, path, constraints, "minimum", "maximum")
    return MappingProxyType(constraints)


def _check_bounds(name: str, path: str, constraints: Mapping[str, Any], low: str, high: str) -> None:
    if low in constraints and high in constraints and constraints[low] > constraints[high]:
        raise SchemaError(f"{name}: '{path}' {low} is greater than {high}")
