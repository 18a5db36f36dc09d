"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the schema
repository and validated request Dtos into routes.
"""

import logging
from collections.abc import Awaitable, Callable

from fastapi import Depends, Request

from payloadgate.domain.dto import Dto
from payloadgate.domain.ports import SchemaRepository
from payloadgate.domain.request import RequestContext

logger = logging.getLogger(__name__)


def get_schema_repository(request: Request) -> SchemaRepository:
    """
    Get schema repository from app state.

    The repository is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.schemas


async def build_request_context(request: Request, schema_name: str, repository: SchemaRepository) -> RequestContext:
    """
    Run one inbound HTTP request through a fresh RequestContext.

    Headers and the raw body are taken from the incoming request; route
    path parameters are passed through to the context.

    Raises:
        SchemaNotFound: If the schema is unknown
        PayloadError: If the body is not a JSON object
        ValidationFailed: If any header or body rule is violated
    """
    schema = repository.get(schema_name)
    context = RequestContext(schema, route_parameters=request.path_params)
    body = await request.body()
    context.process(dict(request.headers), body=body)
    return context


def validated_request(schema_name: str) -> Callable[..., Awaitable[Dto]]:
    """
    Create a dependency that yields the validated Dto for `schema_name`.

    Usage in a controller route:

        @router.post("/login")
        async def login(credentials: Dto = Depends(validated_request("login"))):
            ...

    Failures propagate as engine errors and are rendered by the problem
    details handlers.
    """

    async def dependency(
        request: Request,
        repository: SchemaRepository = Depends(get_schema_repository),
    ) -> Dto:
        context = await build_request_context(request, schema_name, repository)
        logger.debug("Request %s validated for %s", schema_name, request.url.path)
        return context.dto

    return dependency
