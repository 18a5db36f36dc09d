"""
Domain exceptions - Semantic error types for request validation.

This module defines the failures the engine can surface to collaborators.
Field-level rule failures are never raised individually; they travel as
Violation records and are only escalated by the request context as a
single ValidationFailed carrying the complete list.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schema import Violation


class RequestError(Exception):
    """Base class for request validation domain errors."""

    pass


class SchemaError(RequestError):
    """Schema document is malformed or violates the structural contract."""

    pass


class SchemaNotFound(RequestError):
    """No schema is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Request schema not found: {name}")
        self.name = name


class PayloadError(RequestError):
    """Request body could not be decoded into a JSON object."""

    pass


class RequestStateError(RequestError):
    """Request context used outside the lifecycle state it requires."""

    pass


class ValidationFailed(RequestError):
    """
    Aggregate failure for one request.

    Carries every header and body violation discovered, in discovery
    order. Deterministic for a given schema and input, so callers never
    need to retry.
    """

    def __init__(self, schema_name: str, violations: Iterable[Violation]) -> None:
        self.schema_name = schema_name
        self.violations = list(violations)
        super().__init__(
            f"Validation failed for {schema_name}: {len(self.violations)} violation(s)"
        )

    def by_path(self) -> dict[str, list[str]]:
        """Group violation messages by field path, preserving discovery order."""
        grouped: dict[str, list[str]] = {}
        for violation in self.violations:
            grouped.setdefault(violation.path, []).append(violation.message)
        return grouped
