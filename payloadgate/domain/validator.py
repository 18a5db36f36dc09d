"""
Validator - Recursive descent of a schema over a decoded payload.

The walk visits declared properties depth-first in declaration order and
looks each one up in the matching payload node:

- absent and required      -> one `required` violation, nothing below it
- absent and optional      -> skipped, the Dto slot stays unset
- present, wrong type      -> one `type` violation, no further checks
- present scalar           -> every applicable constraint runs; the value
                              is stored only when all of them pass
- present object           -> recurse into the nested Dto, which stays
                              attached even if its children fail

Keys the schema does not declare are ignored. Data problems are returned
as Violation records; the validator never raises for bad input.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Union

from .constraints import check_required, check_type, coerce, evaluate_constraints
from .dto import Dto, build_dto
from .schema import PropertySchema, RequestSchema, Violation


def validate(
    schema: Union[RequestSchema, PropertySchema],
    payload: Any,
    dto: Optional[Dto] = None,
) -> tuple[Dto, list[Violation]]:
    """
    Validate a payload against a request schema or object node.

    Args:
        schema: RequestSchema, or an object PropertySchema to validate against
        payload: Decoded payload; expected to be a mapping
        dto: Empty Dto to populate in place; built from `schema` when omitted

    Returns:
        The (possibly partially) populated Dto and every violation found,
        in discovery order
    """
    node = schema.body if isinstance(schema, RequestSchema) else schema

    if dto is None:
        dto = build_dto(node)
    else:
        dto.clear()

    violations: list[Violation] = []

    if not isinstance(payload, Mapping):
        violations.append(check_type(payload, node.type, node.path))
        return dto, violations

    _validate_object(node, payload, dto, violations)
    return dto, violations


def _validate_object(
    node: PropertySchema,
    payload: Mapping[str, Any],
    dto: Dto,
    violations: list[Violation],
) -> None:
    for name, child in node.properties.items():
        if name not in payload:
            if child.required:
                violations.append(check_required(False, child.path))
            continue

        value = payload[name]

        mismatch = check_type(value, child.type, child.path)
        if mismatch is not None:
            violations.append(mismatch)
            continue

        if child.is_object:
            _validate_object(child, value, dto[name], violations)
            continue

        failures = evaluate_constraints(value, child)
        if failures:
            violations.extend(failures)
        else:
            dto.set(name, coerce(value, child.type))
