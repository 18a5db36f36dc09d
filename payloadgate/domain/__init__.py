"""
Domain layer - Schema-driven request validation with zero framework imports.

This package compiles declarative request schemas, validates headers and
payloads against them while collecting every violation, and materializes
the validated values as navigable Dto objects. It defines its own port
interfaces for infrastructure abstraction.
"""

from .dto import UNSET, Dto, build_dto
from .exceptions import (
    PayloadError,
    RequestError,
    RequestStateError,
    SchemaError,
    SchemaNotFound,
    ValidationFailed,
)
from .loader import load, load_file
from .ports import RequestState, SchemaRepository
from .request import RequestContext, check_headers, decode_json
from .schema import HttpMethod, PropertySchema, PropertyType, RequestSchema, Violation
from .validator import validate

__all__ = [
    "UNSET",
    "Dto",
    "HttpMethod",
    "PayloadError",
    "PropertySchema",
    "PropertyType",
    "RequestContext",
    "RequestError",
    "RequestSchema",
    "RequestState",
    "RequestStateError",
    "SchemaError",
    "SchemaNotFound",
    "SchemaRepository",
    "ValidationFailed",
    "Violation",
    "build_dto",
    "check_headers",
    "decode_json",
    "load",
    "load_file",
    "validate",
]
