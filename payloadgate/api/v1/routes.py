"""
API v1 routes.

Defines REST endpoints for inspecting request schemas and dry-running
payloads against them.
"""

import logging

from fastapi import APIRouter, Depends, Request

from payloadgate.api.dependencies import build_request_context, get_schema_repository
from payloadgate.api.models import (
    FieldDescription,
    ProblemDetails,
    SchemaDetail,
    SchemaSummary,
    ValidationProblem,
    ValidationResponse,
)
from payloadgate.domain.dto import build_dto
from payloadgate.domain.exceptions import SchemaError
from payloadgate.domain.ports import SchemaRepository
from payloadgate.domain.schema import RequestSchema

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])


def _summary(schema: RequestSchema) -> SchemaSummary:
    return SchemaSummary(
        name=schema.name,
        method=schema.method.value,
        headers=dict(schema.headers),
    )


@router.get(
    "/requests",
    response_model=list[SchemaSummary],
    summary="List request schemas",
    description="List every request schema the service can validate against.",
)
async def list_requests(
    repository: SchemaRepository = Depends(get_schema_repository),
) -> list[SchemaSummary]:
    """
    List request schemas with their method and required headers.

    Schemas that fail to compile are left out of the listing.
    """
    summaries = []
    for name in repository.names():
        try:
            summaries.append(_summary(repository.get(name)))
        except SchemaError as exc:
            logger.warning("Skipping request schema %s: %s", name, exc)
    return summaries


@router.get(
    "/requests/{name}",
    response_model=SchemaDetail,
    responses={404: {"model": ProblemDetails, "description": "Unknown request schema"}},
    summary="Describe a request schema",
    description="Return the declared body fields of a request schema, "
    "as seen on an empty DTO before any payload is processed.",
)
async def describe_request(
    name: str,
    repository: SchemaRepository = Depends(get_schema_repository),
) -> SchemaDetail:
    """Describe the fields a request schema declares."""
    schema = repository.get(name)
    summary = _summary(schema)
    return SchemaDetail(
        **summary.model_dump(),
        fields=[FieldDescription(**field) for field in build_dto(schema).shape()],
    )


@router.post(
    "/requests/{name}/validate",
    response_model=ValidationResponse,
    responses={
        400: {"model": ProblemDetails, "description": "Malformed JSON payload"},
        404: {"model": ProblemDetails, "description": "Unknown request schema"},
        422: {"model": ValidationProblem, "description": "Validation error"},
    },
    summary="Validate a payload against a request schema",
    description="Check the request headers and JSON body against the named schema "
    "and return the validated DTO, or every violation found.",
)
async def validate_request(
    name: str,
    request: Request,
    repository: SchemaRepository = Depends(get_schema_repository),
) -> ValidationResponse:
    """
    Dry-run validation of headers and body.

    - **name**: Request schema name, e.g. `login`

    Returns only the values that passed validation.
    """
    context = await build_request_context(request, name, repository)
    return ValidationResponse(name=name, data=context.dto.to_dict())
