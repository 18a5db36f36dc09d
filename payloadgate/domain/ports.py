"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure, plus the request lifecycle states. Adapters
implement these protocols.
"""

from enum import Enum
from typing import Protocol

from .schema import RequestSchema


class RequestState(str, Enum):
    """
    Request context lifecycle states.

    State Transitions (forward-only):
    - IDLE -> SCHEMA_LOADED (schema attached, empty Dto built)
    - SCHEMA_LOADED -> PROCESSING (headers and payload received)
    - PROCESSING -> VALIDATED (no violations)
    - PROCESSING -> FAILED (undecodable payload or any violation)

    Terminal States:
    - VALIDATED: Dto is complete and handed to the caller
    - FAILED: No retries; callers build a new context per request
    """

    IDLE = "IDLE"
    SCHEMA_LOADED = "SCHEMA_LOADED"
    PROCESSING = "PROCESSING"
    VALIDATED = "VALIDATED"
    FAILED = "FAILED"


class SchemaRepository(Protocol):
    """Port interface for looking up compiled request schemas by name."""

    def get(self, name: str) -> RequestSchema:
        """
        Return the compiled schema registered under `name`.

        Compilation happens at most once per name; the returned schema is
        immutable and may be shared across concurrent requests.

        Args:
            name: Schema name (the schema file stem, e.g. "login")

        Returns:
            Compiled RequestSchema

        Raises:
            SchemaNotFound: If no schema exists under that name
            SchemaError: If the schema document is malformed
        """
        ...

    def names(self) -> list[str]:
        """
        List the names of every schema the repository can serve.

        Returns:
            Sorted schema names
        """
        ...
