"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Sample request schemas compiled from tests/fixtures/requests
- Conforming payloads and headers for the login schema
"""

from pathlib import Path

import pytest

from payloadgate.domain.loader import load_file
from payloadgate.domain.schema import RequestSchema

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "requests"

JSON_HEADERS = {"Content-Type": "application/json"}


@pytest.fixture
def requests_dir() -> Path:
    """Directory holding the sample request schemas."""
    return FIXTURES_DIR


@pytest.fixture
def login_schema() -> RequestSchema:
    """Compiled login schema (headers, scalars, nested address)."""
    return load_file(FIXTURES_DIR / "login.yaml")


@pytest.fixture
def profile_schema() -> RequestSchema:
    """Compiled profile schema (formats, numbers, booleans, two nesting levels)."""
    return load_file(FIXTURES_DIR / "profile.json")


@pytest.fixture
def login_payload() -> dict:
    """Payload that satisfies every rule of the login schema."""
    return {
        "username": "test",
        "password": "testtest",
        "age": 40,
        "birthdate": "1978-01-01",
        "address": {
            "street": "13 Mocking",
            "city": "Mockingbird Heights",
            "state": "CA",
            "zip": "90210",
        },
    }


@pytest.fixture
def json_headers() -> dict:
    """Headers required by the login schema."""
    return dict(JSON_HEADERS)
