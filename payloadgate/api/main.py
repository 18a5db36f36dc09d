"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from payloadgate import __version__
from payloadgate.adapters.schemas import FileSchemaRepository
from payloadgate.api.problems import register_exception_handlers
from payloadgate.api.v1 import router as v1_router
from payloadgate.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Request schema API v1 - Inspect request schemas and validate payloads",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Configures logging from settings
    - Creates the schema repository on startup
    - Compiles every request schema when preloading is enabled,
      so a malformed schema stops the service from starting
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Starting application...")
    repository = FileSchemaRepository(settings.requests_path)

    if settings.preload_schemas:
        logger.info("Loading request schemas from %s...", settings.requests_path)
        repository.load_all()

    # Store repository in app state for dependency injection
    app.state.schemas = repository

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")


app = FastAPI(
    title="payloadgate",
    description="Schema-driven request validation - Validates headers and JSON payloads "
    "against declarative schemas and reports every violation",
    version=__version__,
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with schema repository validation.

    Returns 200 OK with the number of available request schemas.
    """
    repository = request.app.state.schemas
    return {"status": "healthy", "schemas": str(len(repository.names()))}
