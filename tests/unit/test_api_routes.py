"""
Unit tests for API v1 routes.

Tests endpoint responses against the sample schema directory, with
problem details handlers installed on a bare test application.
"""

import json
import shutil
from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from payloadgate.adapters.schemas import FileSchemaRepository
from payloadgate.api.dependencies import get_schema_repository, validated_request
from payloadgate.api.problems import PROBLEM_MEDIA_TYPE, register_exception_handlers
from payloadgate.api.v1.routes import router
from payloadgate.domain.dto import Dto
from payloadgate.domain.exceptions import SchemaNotFound


@pytest.fixture
def app(requests_dir) -> FastAPI:
    """Create test FastAPI application."""
    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(router, prefix="/v1")

    @test_app.post("/login")
    async def login(credentials: Dto = Depends(validated_request("login"))) -> dict:
        return {"username": credentials.username, "city": credentials.address.city}

    test_app.state.schemas = FileSchemaRepository(requests_dir)
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


class TestListEndpoint:
    """Tests for GET /v1/requests endpoint."""

    def test_lists_schemas(self, client: TestClient) -> None:
        """Every schema is listed with method and headers."""
        response = client.get("/v1/requests")

        assert response.status_code == 200
        assert response.json() == [
            {"name": "login", "method": "POST", "headers": {"Content-Type": "application/json"}},
            {
                "name": "profile",
                "method": "PUT",
                "headers": {"Content-Type": "application/json", "X-Api-Key": None},
            },
        ]


class TestDescribeEndpoint:
    """Tests for GET /v1/requests/{name} endpoint."""

    def test_describes_fields(self, client: TestClient) -> None:
        """Declared fields are returned in declaration order."""
        response = client.get("/v1/requests/login")

        assert response.status_code == 200
        body = response.json()
        assert body["method"] == "POST"
        assert [field["name"] for field in body["fields"]] == [
            "username",
            "password",
            "age",
            "birthdate",
            "address",
        ]
        assert body["fields"][2]["constraints"] == {"minimum": 18, "maximum": 40}
        assert body["fields"][4]["properties"][0]["name"] == "street"

    def test_unknown_schema_returns_404(self, client: TestClient) -> None:
        """Unknown schema names return a 404 problem."""
        response = client.get("/v1/requests/signup")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
        assert response.json() == {
            "type": "about:blank",
            "title": "Not Found",
            "status": 404,
            "detail": "Request schema not found: signup",
            "instance": "/v1/requests/signup",
        }


class TestValidateEndpoint:
    """Tests for POST /v1/requests/{name}/validate endpoint."""

    def test_valid_payload_returns_200(self, client: TestClient, login_payload: dict) -> None:
        """A conforming request returns the validated values."""
        response = client.post("/v1/requests/login/validate", json=login_payload)

        assert response.status_code == 200
        assert response.json() == {"name": "login", "data": login_payload}

    def test_violations_return_422(self, client: TestClient, login_payload: dict) -> None:
        """Violations are reported as a validation problem."""
        del login_payload["password"]
        login_payload["address"]["street"] = "13 Mockingbird Lane."

        response = client.post("/v1/requests/login/validate", json=login_payload)

        assert response.status_code == 422
        assert response.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
        assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
        body = response.json()
        assert body["title"] == "Validation Failed"
        assert body["detail"] == "Request 'login' has 2 invalid field(s)"
        assert body["instance"] == "/v1/requests/login/validate"
        assert [(error["path"], error["rule"]) for error in body["errors"]] == [
            ("password", "required"),
            ("address.street", "maxLength"),
        ]
        assert body["fields"]["password"] == ["Missing required parameter: password"]

    def test_missing_header_returns_422(self, client: TestClient, login_payload: dict) -> None:
        """A missing declared header is a violation."""
        response = client.post("/v1/requests/login/validate", content=json.dumps(login_payload))

        assert response.status_code == 422
        assert response.json()["errors"] == [
            {
                "path": "headers.Content-Type",
                "rule": "required",
                "message": "Missing header: Content-Type",
            }
        ]

    def test_wrong_header_returns_422(self, client: TestClient, login_payload: dict) -> None:
        """A mismatched header value is a violation."""
        response = client.post(
            "/v1/requests/login/validate",
            content=json.dumps(login_payload),
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["rule"] == "header"

    def test_malformed_json_returns_400(self, client: TestClient) -> None:
        """An undecodable body returns a 400 problem."""
        response = client.post(
            "/v1/requests/login/validate",
            content=b'{"username": ',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
        assert response.json()["title"] == "Bad Request"
        assert response.json()["detail"].startswith("Malformed JSON payload")

    def test_unknown_schema_returns_404(self, client: TestClient) -> None:
        """Validating against an unknown schema returns 404."""
        response = client.post("/v1/requests/signup/validate", json={})
        assert response.status_code == 404


class TestRepositoryOverride:
    """Tests for injecting the schema repository."""

    def test_repository_dependency_override(self, app: FastAPI, login_schema, login_payload) -> None:
        """Routes look schemas up through the injected repository."""
        mock_repository = MagicMock()
        mock_repository.get.return_value = login_schema

        app.dependency_overrides[get_schema_repository] = lambda: mock_repository
        client = TestClient(app)

        try:
            response = client.post("/v1/requests/anything/validate", json=login_payload)

            assert response.status_code == 200
            mock_repository.get.assert_called_once_with("anything")
        finally:
            app.dependency_overrides.clear()

    def test_repository_errors_propagate(self, app: FastAPI) -> None:
        """SchemaNotFound raised by a repository maps to 404."""
        mock_repository = MagicMock()
        mock_repository.get.side_effect = SchemaNotFound("login")

        app.dependency_overrides[get_schema_repository] = lambda: mock_repository
        client = TestClient(app)

        try:
            response = client.get("/v1/requests/login")
            assert response.status_code == 404
        finally:
            app.dependency_overrides.clear()


class TestValidatedRequestDependency:
    """Tests for validated_request() in controller routes."""

    def test_controller_receives_dto(self, client: TestClient, login_payload: dict) -> None:
        """A controller receives the populated Dto."""
        response = client.post("/login", json=login_payload)

        assert response.status_code == 200
        assert response.json() == {"username": "test", "city": "Mockingbird Heights"}

    def test_controller_not_called_on_violation(self, client: TestClient) -> None:
        """Violations short-circuit before the controller runs."""
        response = client.post("/login", json={"username": "ab"})

        assert response.status_code == 422
        assert response.json()["detail"] == "Request 'login' has 3 invalid field(s)"


class TestMalformedSchema:
    """Tests for schema files that fail to compile."""

    @pytest.fixture
    def broken_client(self, app: FastAPI, requests_dir, tmp_path) -> TestClient:
        """Client whose schema directory also holds a malformed file."""
        schema_dir = tmp_path / "requests"
        shutil.copytree(requests_dir, schema_dir)
        (schema_dir / "broken.yaml").write_text("request:\n  method: POST\n  properties: {}\n")
        app.state.schemas = FileSchemaRepository(schema_dir)
        return TestClient(app)

    def test_listing_skips_broken_schema(self, broken_client: TestClient) -> None:
        """A malformed file is left out of the listing."""
        response = broken_client.get("/v1/requests")

        assert response.status_code == 200
        assert [entry["name"] for entry in response.json()] == ["login", "profile"]

    def test_describe_returns_500_problem(self, broken_client: TestClient) -> None:
        """Using a malformed schema returns a 500 problem."""
        response = broken_client.get("/v1/requests/broken")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
        assert response.json() == {
            "type": "about:blank",
            "title": "Internal Server Error",
            "status": 500,
            "detail": "Request schema could not be compiled",
            "instance": "/v1/requests/broken",
        }

    def test_validate_returns_500_problem(self, broken_client: TestClient) -> None:
        """Validating against a malformed schema returns a 500 problem."""
        response = broken_client.post("/v1/requests/broken/validate", json={"q": "x"})
        assert response.status_code == 500
