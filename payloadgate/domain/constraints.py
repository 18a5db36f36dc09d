"""
Constraint evaluator - One pure check per schema rule.

Every check returns None when the value passes and a Violation tagged with
its rule otherwise. Checks are independent of each other; the validator
runs all that apply to a field so a value breaking several rules reports
each of them.
"""

from __future__ import annotations

import ipaddress
import math
import re
import uuid
from collections.abc import Callable, Mapping
from datetime import date, time
from typing import Any, Optional, Union
from urllib.parse import urlsplit

from email_validator import EmailNotValidError, validate_email

from .schema import PropertySchema, PropertyType, Violation

_DATE = re.compile(r"(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})")
_TIME = re.compile(r"(?P<hour>[0-9]{2}):(?P<minute>[0-9]{2}):(?P<second>[0-9]{2})(?:\.[0-9]+)?")
_OFFSET = re.compile(r"(?:[Zz]|[+-](?P<hours>[0-9]{2}):(?P<minutes>[0-9]{2}))")
_UUID = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")
_URI_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")


def json_type_name(value: Any) -> str:
    """Name a decoded JSON value the way a client would recognise it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def matches_type(value: Any, declared: PropertyType) -> bool:
    """Strict type test; values are never coerced across types."""
    if value is None:
        return False
    if declared is PropertyType.STRING:
        return isinstance(value, str)
    if declared is PropertyType.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if declared is PropertyType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        try:
            return math.isfinite(value)
        except OverflowError:
            # integers beyond float range
            return False
    if declared is PropertyType.BOOLEAN:
        return isinstance(value, bool)
    if declared is PropertyType.OBJECT:
        return isinstance(value, Mapping)
    return False


def coerce(value: Any, declared: PropertyType) -> Any:
    """Return the typed value stored on a DTO for an already type-checked scalar."""
    if declared is PropertyType.INTEGER:
        return int(value)
    if declared is PropertyType.NUMBER:
        return float(value)
    if declared is PropertyType.BOOLEAN:
        return bool(value)
    if declared is PropertyType.STRING:
        return str(value)
    return value


def check_required(present: bool, path: str) -> Optional[Violation]:
    if present:
        return None
    return Violation(path, "required", f"Missing required parameter: {path}")


def check_type(value: Any, declared: PropertyType, path: str) -> Optional[Violation]:
    if matches_type(value, declared):
        return None
    return Violation(
        path,
        "type",
        f"{path or 'body'}: expected {declared.value}, got {json_type_name(value)}",
    )


def check_length(
    value: str,
    path: str,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> Optional[Violation]:
    """Inclusive bounds on the number of code points."""
    length = len(value)
    if minimum is not None and length < minimum:
        return Violation(
            path, "minLength", f"{path}: must be at least {minimum} characters, got {length}"
        )
    if maximum is not None and length > maximum:
        return Violation(
            path, "maxLength", f"{path}: must be at most {maximum} characters, got {length}"
        )
    return None


def check_range(
    value: Union[int, float],
    path: str,
    minimum: Optional[Union[int, float]] = None,
    maximum: Optional[Union[int, float]] = None,
) -> Optional[Violation]:
    """Inclusive bounds on a numeric value."""
    if minimum is not None and value < minimum:
        return Violation(path, "minimum", f"{path}: must be at least {minimum}, got {value}")
    if maximum is not None and value > maximum:
        return Violation(path, "maximum", f"{path}: must be at most {maximum}, got {value}")
    return None


def check_pattern(value: str, pattern: Union[str, re.Pattern[str]], path: str) -> Optional[Violation]:
    """The whole value has to match; a partial match is a failure."""
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    if compiled.fullmatch(value):
        return None
    return Violation(path, "pattern", f"{path}: does not match pattern {compiled.pattern}")


def _is_date(value: str) -> bool:
    match = _DATE.fullmatch(value)
    if not match:
        return False
    try:
        date(int(match["year"]), int(match["month"]), int(match["day"]))
    except ValueError:
        return False
    return True


def _is_time(value: str) -> bool:
    match = _TIME.fullmatch(value)
    if not match:
        return False
    try:
        time(int(match["hour"]), int(match["minute"]), int(match["second"]))
    except ValueError:
        return False
    return True


def _is_date_time(value: str) -> bool:
    if len(value) < 20 or value[10] not in "Tt":
        return False
    date_part, rest = value[:10], value[11:]
    time_match = _TIME.match(rest)
    if not _is_date(date_part) or not time_match or not _is_time(time_match.group(0)):
        return False
    offset = _OFFSET.fullmatch(rest[time_match.end():])
    if not offset:
        return False
    if offset["hours"] is not None:
        if int(offset["hours"]) > 23 or int(offset["minutes"]) > 59:
            return False
    return True


def _is_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _is_uuid(value: str) -> bool:
    if not _UUID.fullmatch(value):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _is_ipv4(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def _is_ipv6(value: str) -> bool:
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


def _is_uri(value: str) -> bool:
    if any(ch.isspace() for ch in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme or not _URI_SCHEME.fullmatch(parts.scheme):
        return False
    return bool(parts.netloc or parts.path)


FORMAT_CHECKERS: dict[str, Callable[[str], bool]] = {
    "date": _is_date,
    "date-time": _is_date_time,
    "time": _is_time,
    "email": _is_email,
    "uuid": _is_uuid,
    "ipv4": _is_ipv4,
    "ipv6": _is_ipv6,
    "uri": _is_uri,
}


def check_format(value: str, name: str, path: str) -> Optional[Violation]:
    checker = FORMAT_CHECKERS.get(name)
    if checker is None:
        return Violation(path, "format", f"{path}: unknown format {name}")
    if checker(value):
        return None
    return Violation(path, "format", f"{path}: is not a valid {name}")


def evaluate_constraints(value: Any, node: PropertySchema) -> list[Violation]:
    """
    Run every declared constraint that applies to the node's type.

    `value` must already have passed check_type for `node.type`.
    """
    violations: list[Optional[Violation]] = []
    constraints = node.constraints

    if node.type is PropertyType.STRING:
        if "minLength" in constraints or "maxLength" in constraints:
            violations.append(
                check_length(
                    value,
                    node.path,
                    constraints.get("minLength"),
                    constraints.get("maxLength"),
                )
            )
        if "pattern" in constraints:
            violations.append(check_pattern(value, constraints["pattern"], node.path))
        if "format" in constraints:
            violations.append(check_format(value, constraints["format"], node.path))

    elif node.type in (PropertyType.INTEGER, PropertyType.NUMBER):
        if "minimum" in constraints or "maximum" in constraints:
            violations.append(
                check_range(
                    value,
                    node.path,
                    constraints.get("minimum"),
                    constraints.get("maximum"),
                )
            )

    return [violation for violation in violations if violation is not None]
