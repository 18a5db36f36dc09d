"""
API request and response models.

Pydantic models for FastAPI endpoint serialization and OpenAPI schema generation.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ViolationModel(BaseModel):
    """One rule failure tied to a field path."""

    path: str = Field(..., description="Dotted field path, or headers.<Name> for headers")
    rule: str = Field(..., description="Rule that failed, e.g. required, type, minLength")
    message: str


class ProblemDetails(BaseModel):
    """RFC 9457 problem details body."""

    type: str = "about:blank"
    title: str
    status: int
    detail: Optional[str] = None
    instance: Optional[str] = None


class ValidationProblem(ProblemDetails):
    """Problem details for a request that failed validation."""

    errors: list[ViolationModel] = Field(default_factory=list)
    fields: dict[str, list[str]] = Field(
        default_factory=dict, description="Violation messages keyed by field path"
    )


class FieldDescription(BaseModel):
    """Declared field of a request schema."""

    name: str
    type: str
    required: bool
    constraints: Optional[dict[str, Any]] = None
    properties: Optional[list["FieldDescription"]] = None


class SchemaSummary(BaseModel):
    """Request schema listing entry."""

    name: str
    method: str
    headers: dict[str, Optional[str]]


class SchemaDetail(SchemaSummary):
    """Request schema with its declared body fields."""

    fields: list[FieldDescription]


class ValidationResponse(BaseModel):
    """Response model for a payload that passed validation."""

    name: str
    data: dict[str, Any]
