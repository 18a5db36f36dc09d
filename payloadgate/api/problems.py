"""
Problem details - RFC 9457 error responses for engine failures.

Errors are returned with the application/problem+json content type so
clients can tell them apart from regular JSON responses. Validation
failures list every violation, both in discovery order and keyed by
field path.
"""

import logging
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from payloadgate.api.models import ProblemDetails, ValidationProblem, ViolationModel
from payloadgate.config.settings import get_settings
from payloadgate.domain.exceptions import PayloadError, SchemaError, SchemaNotFound, ValidationFailed

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

_NO_CACHE_HEADERS = {"Cache-Control": "no-cache, no-store, must-revalidate"}


def problem_type(slug: str) -> str:
    """Build the problem "type" URI for a failure kind."""
    base = get_settings().problem_type_base
    if base == "about:blank":
        return base
    return f"{base.rstrip('/')}/{slug}"


def problem_response(problem: ProblemDetails, headers: Optional[dict[str, str]] = None) -> JSONResponse:
    """Render a problem details model as an HTTP response."""
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
        headers={**_NO_CACHE_HEADERS, **(headers or {})},
    )


async def validation_failed_handler(request: Request, exc: ValidationFailed) -> JSONResponse:
    """Map ValidationFailed to 422 with the complete violation list."""
    problem = ValidationProblem(
        type=problem_type("validation"),
        title="Validation Failed",
        status=HTTPStatus.UNPROCESSABLE_ENTITY.value,
        detail=f"Request '{exc.schema_name}' has {len(exc.violations)} invalid field(s)",
        instance=request.url.path,
        errors=[ViolationModel(**violation.as_dict()) for violation in exc.violations],
        fields=exc.by_path(),
    )
    return problem_response(problem)


async def payload_error_handler(request: Request, exc: PayloadError) -> JSONResponse:
    """Map PayloadError to 400 Bad Request."""
    problem = ProblemDetails(
        type=problem_type("malformed-payload"),
        title=HTTPStatus.BAD_REQUEST.phrase,
        status=HTTPStatus.BAD_REQUEST.value,
        detail=str(exc),
        instance=request.url.path,
    )
    return problem_response(problem)


async def schema_not_found_handler(request: Request, exc: SchemaNotFound) -> JSONResponse:
    """Map SchemaNotFound to 404 Not Found."""
    logger.info("Unknown request schema requested: %s", exc.name)
    problem = ProblemDetails(
        type=problem_type("unknown-request"),
        title=HTTPStatus.NOT_FOUND.phrase,
        status=HTTPStatus.NOT_FOUND.value,
        detail=str(exc),
        instance=request.url.path,
    )
    return problem_response(problem)


async def schema_error_handler(request: Request, exc: SchemaError) -> JSONResponse:
    """Map a schema that fails to compile to 500 Internal Server Error."""
    logger.error("Request schema failed to compile: %s", exc)
    problem = ProblemDetails(
        type=problem_type("invalid-schema"),
        title=HTTPStatus.INTERNAL_SERVER_ERROR.phrase,
        status=HTTPStatus.INTERNAL_SERVER_ERROR.value,
        detail="Request schema could not be compiled",
        instance=request.url.path,
    )
    return problem_response(problem)


def register_exception_handlers(app: FastAPI) -> None:
    """Install problem details handlers for engine errors on an app."""
    app.add_exception_handler(ValidationFailed, validation_failed_handler)
    app.add_exception_handler(PayloadError, payload_error_handler)
    app.add_exception_handler(SchemaNotFound, schema_not_found_handler)
    app.add_exception_handler(SchemaError, schema_error_handler)
