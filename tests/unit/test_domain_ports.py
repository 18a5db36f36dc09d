"""
Unit tests for domain ports and exceptions.

Tests verify:
- Port interfaces are properly defined
- Exceptions are properly structured
- Domain purity (zero framework imports)
"""

import json
import subprocess
from enum import Enum
from pathlib import Path

import pytest

import payloadgate.domain
from payloadgate.domain.exceptions import (
    PayloadError,
    RequestError,
    RequestStateError,
    SchemaError,
    SchemaNotFound,
    ValidationFailed,
)
from payloadgate.domain.ports import RequestState, SchemaRepository
from payloadgate.domain.schema import RequestSchema, Violation

DOMAIN_DIR = str(Path(payloadgate.domain.__file__).parent)


class TestRequestStateEnum:
    """Tests for RequestState enum."""

    def test_request_state_is_str_enum(self) -> None:
        """RequestState uses str mixin for JSON serialization."""
        assert issubclass(RequestState, Enum)
        assert issubclass(RequestState, str)

    def test_request_state_values(self) -> None:
        """RequestState lists the full lifecycle in order."""
        assert [state.value for state in RequestState] == [
            "IDLE",
            "SCHEMA_LOADED",
            "PROCESSING",
            "VALIDATED",
            "FAILED",
        ]

    def test_request_state_json_serializable(self) -> None:
        """RequestState values serialize to JSON as strings."""
        assert json.dumps(RequestState.VALIDATED) == '"VALIDATED"'
        assert RequestState.FAILED == "FAILED"


class TestSchemaRepositoryProtocol:
    """Tests for SchemaRepository protocol."""

    def test_schema_repository_methods(self) -> None:
        """SchemaRepository defines get and names."""
        assert hasattr(SchemaRepository, "get")
        assert hasattr(SchemaRepository, "names")

    def test_structural_implementation(self, login_schema) -> None:
        """Any object with get and names satisfies the port."""

        class MockRepo:
            def get(self, name: str) -> RequestSchema:
                if name != "login":
                    raise SchemaNotFound(name)
                return login_schema

            def names(self) -> list[str]:
                return ["login"]

        repo: SchemaRepository = MockRepo()
        assert repo.get("login") is login_schema
        with pytest.raises(SchemaNotFound):
            repo.get("signup")


class TestDomainExceptions:
    """Tests for domain exceptions."""

    @pytest.mark.parametrize(
        "exc_type",
        [SchemaError, SchemaNotFound, PayloadError, RequestStateError, ValidationFailed],
    )
    def test_inherits_request_error(self, exc_type) -> None:
        """Every domain failure derives from RequestError."""
        assert issubclass(exc_type, RequestError)
        assert issubclass(RequestError, Exception)

    def test_schema_not_found_carries_name(self) -> None:
        """SchemaNotFound keeps the name that was asked for."""
        exc = SchemaNotFound("signup")
        assert exc.name == "signup"
        assert str(exc) == "Request schema not found: signup"

    def test_validation_failed_copies_violations(self) -> None:
        """ValidationFailed holds its own list of violations."""
        violations = [Violation("username", "required", "Missing required parameter: username")]
        exc = ValidationFailed("login", iter(violations))
        assert exc.violations == violations
        assert exc.violations is not violations
        assert exc.by_path() == {"username": ["Missing required parameter: username"]}

    def test_violation_as_dict(self) -> None:
        """Violations export their three fields."""
        violation = Violation("address.zip", "required", "Missing required parameter: address.zip")
        assert violation.as_dict() == {
            "path": "address.zip",
            "rule": "required",
            "message": "Missing required parameter: address.zip",
        }


class TestDomainPurity:
    """Tests for domain purity - zero framework imports."""

    @pytest.mark.parametrize(
        "statement",
        ["from fastapi", "import fastapi", "from pydantic", "import pydantic", "from starlette"],
    )
    def test_no_framework_imports_in_domain(self, statement: str) -> None:
        """Domain layer has no web framework or model library imports."""
        result = subprocess.run(
            ["grep", "-r", statement, DOMAIN_DIR],
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0, f"Framework import found: {result.stdout}"
