"""
Schema model - Immutable tree of declared request fields.

A RequestSchema is compiled once per schema document by the loader and
shared read-only by every request validated against it. Nodes are frozen
dataclasses whose mappings are wrapped in read-only proxies, so no
request can mutate state another request depends on.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional


class PropertyType(str, Enum):
    """Declared type of a schema node."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class HttpMethod(str, Enum):
    """HTTP verbs a request schema may declare."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


# Constraint names recognised in schema documents, keyed by the types they apply to.
STRING_CONSTRAINTS = ("minLength", "maxLength", "pattern", "format")
NUMERIC_CONSTRAINTS = ("minimum", "maximum")
CONSTRAINT_NAMES = STRING_CONSTRAINTS + NUMERIC_CONSTRAINTS


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class PropertySchema:
    """
    One declared field.

    `path` is the dotted address of the node from the body root
    (e.g. "address.zip") and is what violations are reported against.
    `properties` is only populated for object nodes and keeps
    declaration order.
    """

    name: str
    type: PropertyType
    path: str
    required: bool = False
    constraints: Mapping[str, Any] = field(default_factory=_empty)
    properties: Mapping[str, "PropertySchema"] = field(default_factory=_empty)

    @property
    def is_object(self) -> bool:
        return self.type is PropertyType.OBJECT


@dataclass(frozen=True)
class RequestSchema:
    """
    Top-level schema for one request kind.

    `headers` maps a required header name to the literal value it must
    carry, or to None when the header only has to be present.
    `body` is the root object node describing the JSON body.
    """

    name: str
    method: HttpMethod
    headers: Mapping[str, Optional[str]]
    body: PropertySchema

    @property
    def properties(self) -> Mapping[str, PropertySchema]:
        return self.body.properties


@dataclass(frozen=True)
class Violation:
    """A single rule failure tied to a field path."""

    path: str
    rule: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "rule": self.rule, "message": self.message}
