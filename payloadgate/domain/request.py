"""
Request context - Per-request orchestration of header and body validation.

Request Lifecycle (forward-only, see RequestState)
==================================================

    IDLE -> SCHEMA_LOADED -> PROCESSING -> VALIDATED
                                       -> FAILED

1. load_schema() attaches an immutable RequestSchema and pre-builds the
   empty Dto so callers can introspect the expected shape.
2. process() checks declared headers, decodes the body when given raw,
   and runs the validator into the pre-built Dto.
3. Header and body violations are reported together: an empty list
   returns the populated Dto, anything else raises ValidationFailed with
   the full list. An undecodable body raises PayloadError before any
   body validation runs.

A context serves exactly one request. There are no internal retries;
callers build a new context for the next request.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Optional, Union

from .dto import Dto, build_dto
from .exceptions import PayloadError, RequestStateError, ValidationFailed
from .ports import RequestState
from .schema import RequestSchema, Violation
from .validator import validate

logger = logging.getLogger(__name__)


def decode_json(body: Union[bytes, bytearray, str]) -> dict[str, Any]:
    """
    Decode a raw request body into a JSON object.

    An empty or whitespace-only body decodes to an empty object.

    Raises:
        PayloadError: If the body is not valid JSON or not a JSON object
    """
    if not body.strip():
        return {}
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise PayloadError(f"Malformed JSON payload: {exc}") from exc
    if not isinstance(data, dict):
        raise PayloadError("JSON payload must be an object")
    return data


def check_headers(
    expected: Mapping[str, Optional[str]], supplied: Mapping[str, str]
) -> list[Violation]:
    """
    Compare declared header requirements with the headers a request carries.

    Header names match case-insensitively; declared values must match
    exactly.
    """
    lookup = {name.lower(): value for name, value in supplied.items()}
    violations: list[Violation] = []

    for name, value in expected.items():
        path = f"headers.{name}"
        actual = lookup.get(name.lower())
        if actual is None:
            violations.append(Violation(path, "required", f"Missing header: {name}"))
        elif value is not None and actual != value:
            violations.append(
                Violation(
                    path,
                    "header",
                    f"Invalid header value: {name}, expected: {value}, got: {actual}",
                )
            )
    return violations


class RequestContext:
    """
    Validates one inbound request against one request schema.

    Owns the Dto it builds and the violations it collects; neither is
    shared with other requests.
    """

    def __init__(
        self,
        schema: Optional[RequestSchema] = None,
        route_parameters: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._state = RequestState.IDLE
        self._schema: Optional[RequestSchema] = None
        self._dto: Optional[Dto] = None
        self._violations: list[Violation] = []
        self._route_parameters: Mapping[str, Any] = MappingProxyType(dict(route_parameters or {}))

        if schema is not None:
            self.load_schema(schema)

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def schema(self) -> Optional[RequestSchema]:
        return self._schema

    @property
    def dto(self) -> Optional[Dto]:
        """The request's Dto: empty after load_schema(), populated by process()."""
        return self._dto

    @property
    def violations(self) -> list[Violation]:
        return list(self._violations)

    @property
    def route_parameters(self) -> Mapping[str, Any]:
        return self._route_parameters

    def route_parameter(self, name: str, default: Any = None) -> Any:
        return self._route_parameters.get(name, default)

    def set_route_parameters(self, parameters: Mapping[str, Any]) -> None:
        self._route_parameters = MappingProxyType(dict(parameters))

    def load_schema(self, schema: RequestSchema) -> Dto:
        """
        Attach a schema and pre-build the empty Dto.

        Raises:
            RequestStateError: If a schema is already loaded
        """
        self._require(RequestState.IDLE, "load a schema")
        self._schema = schema
        self._dto = build_dto(schema)
        self._transition(RequestState.SCHEMA_LOADED)
        return self._dto

    def process(
        self,
        headers: Optional[Mapping[str, str]] = None,
        payload: Optional[Mapping[str, Any]] = None,
        *,
        body: Union[bytes, bytearray, str, None] = None,
    ) -> Dto:
        """
        Validate headers and payload, returning the populated Dto.

        Args:
            headers: Request headers (name -> value)
            payload: Already decoded body mapping
            body: Raw JSON body, decoded here when `payload` is not given

        Returns:
            The Dto built by load_schema(), now populated

        Raises:
            PayloadError: If `body` is not a JSON object
            ValidationFailed: If any header or body violation was found
            RequestStateError: If no schema is loaded or the context was used
        """
        self._require(RequestState.SCHEMA_LOADED, "process a payload")
        if payload is not None and body is not None:
            raise TypeError("Pass either a decoded payload or a raw body, not both")

        schema = self._schema
        self._transition(RequestState.PROCESSING)

        violations = check_headers(schema.headers, headers or {})

        if payload is None:
            try:
                payload = decode_json(body) if body is not None else {}
            except PayloadError as exc:
                logger.warning("%s: %s", schema.name, exc)
                self._transition(RequestState.FAILED)
                raise

        _, body_violations = validate(schema, payload, self._dto)
        violations.extend(body_violations)
        self._violations = violations

        if violations:
            for violation in violations:
                logger.warning("%s: %s", schema.name, violation.message)
            self._transition(RequestState.FAILED)
            raise ValidationFailed(schema.name, violations)

        self._transition(RequestState.VALIDATED)
        return self._dto

    def _require(self, state: RequestState, action: str) -> None:
        if self._state is not state:
            raise RequestStateError(
                f"Cannot {action} while request is {self._state.value}; "
                f"expected {state.value}"
            )

    def _transition(self, state: RequestState) -> None:
        logger.debug(
            "Request %s: %s -> %s",
            self._schema.name if self._schema else "<unloaded>",
            self._state.value,
            state.value,
        )
        self._state = state
