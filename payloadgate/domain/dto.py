"""
Data transfer objects - Navigable views over validated request data.

A Dto mirrors one object node of a schema. Every declared property has a
slot from the moment the Dto is built: scalar slots start unset and
object slots hold a nested Dto. The validator fills the slots in place,
so a Dto handed out before validation is the same object afterwards.

Fields are reachable as attributes (`dto.username`) or items
(`dto["username"]`). Item access always works; attribute access yields to
the Dto's own methods when a field shares a method name.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, Optional, Union

from .schema import PropertySchema, RequestSchema


class _Unset:
    """Marker for a declared scalar that holds no validated value."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


class Dto:
    """Ordered property bag shaped by a schema object node."""

    __slots__ = ("_node", "_values")

    def __init__(self, node: PropertySchema, values: dict[str, Any]) -> None:
        object.__setattr__(self, "_node", node)
        object.__setattr__(self, "_values", values)

    @property
    def properties(self) -> Mapping[str, PropertySchema]:
        """Declared properties of this object node, in declaration order."""
        return self._node.properties

    @property
    def path(self) -> str:
        return self._node.path

    def fields(self) -> list[str]:
        return list(self._node.properties)

    def schema_of(self, name: str) -> PropertySchema:
        try:
            return self._node.properties[name]
        except KeyError:
            raise KeyError(f"Undeclared property: {name}") from None

    def is_set(self, name: str) -> bool:
        """True for a populated scalar or any nested Dto."""
        self.schema_of(name)
        return self._values[name] is not UNSET

    def get(self, name: str, default: Any = None) -> Any:
        if name not in self._values:
            return default
        value = self._values[name]
        return default if value is UNSET else value

    def set(self, name: str, value: Any) -> None:
        node = self.schema_of(name)
        if node.is_object:
            raise TypeError(f"'{node.path}' holds a nested Dto and cannot be reassigned")
        self._values[name] = value

    def unset(self, name: str) -> None:
        node = self.schema_of(name)
        if node.is_object:
            raise TypeError(f"'{node.path}' holds a nested Dto and cannot be unset")
        self._values[name] = UNSET

    def clear(self) -> None:
        """Unset every scalar leaf in this tree, keeping nested Dto identities."""
        for name, value in self._values.items():
            if isinstance(value, Dto):
                value.clear()
            else:
                self._values[name] = UNSET

    def to_dict(self) -> dict[str, Any]:
        """Plain dict of populated values; nested Dtos are always included."""
        result: dict[str, Any] = {}
        for name, value in self._values.items():
            if isinstance(value, Dto):
                result[name] = value.to_dict()
            elif value is not UNSET:
                result[name] = value
        return result

    def shape(self) -> list[dict[str, Any]]:
        """Describe the declared fields, recursively, without any values."""
        return [_describe(node) for node in self._node.properties.values()]

    def __getattr__(self, name: str) -> Any:
        # only reached when normal attribute lookup fails
        values = object.__getattribute__(self, "_values")
        if name in values:
            value = values[name]
            return None if value is UNSET else value
        raise AttributeError(f"{type(self).__name__} has no property '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            raise AttributeError(f"Cannot assign private attribute '{name}'")
        self.set(name, value)

    def __getitem__(self, name: str) -> Any:
        self.schema_of(name)
        value = self._values[name]
        return None if value is UNSET else value

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        items = ", ".join(f"{name}={value!r}" for name, value in self._values.items())
        return f"Dto({items})"


def _describe(node: PropertySchema) -> dict[str, Any]:
    description: dict[str, Any] = {
        "name": node.name,
        "type": node.type.value,
        "required": node.required,
    }
    constraints = {
        name: getattr(value, "pattern", value) for name, value in node.constraints.items()
    }
    if constraints:
        description["constraints"] = constraints
    if node.is_object:
        description["properties"] = [_describe(child) for child in node.properties.values()]
    return description


def build_dto(schema: Union[RequestSchema, PropertySchema]) -> Dto:
    """
    Allocate an empty Dto tree for a schema.

    Scalar leaves are left unset and object leaves get empty nested Dtos,
    so collaborators can enumerate the expected shape before any payload
    has been seen.

    Raises:
        TypeError: If given a non-object property node
    """
    node = schema.body if isinstance(schema, RequestSchema) else schema
    if not node.is_object:
        raise TypeError(f"Cannot build a Dto from {node.type.value} property '{node.path}'")

    values: dict[str, Any] = {}
    for name, child in node.properties.items():
        values[name] = build_dto(child) if child.is_object else UNSET
    return Dto(node, values)
