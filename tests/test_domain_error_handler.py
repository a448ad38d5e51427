"""Tests for domain error handler to verify structured JSON error responses."""
import json
from datetime import datetime

import pytest
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from liftplan.core.error_handlers import ERROR_STATUS_MAP, domain_error_handler, request_validation_handler
from liftplan.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    MissingContextError,
    NotFoundError,
    OverridePatchWarning,
    PlanResolutionError,
    StatsParamsError,
    UnsupportedDefinitionKindError,
    ValidationError,
)


class MockRequest:
    """Mock FastAPI Request object for testing."""

    def __init__(self, request_id: str = "test-request-123"):
        self.state = type('State', (), {'request_id': request_id})()


class TestDomainErrorExceptions:
    """Test domain exception classes and their error codes."""

    def test_domain_error_base(self):
        """Test base DomainError class."""
        error = DomainError(code="TEST_001", message="Test error message", details={"key": "value"})

        assert error.code == "TEST_001"
        assert error.message == "Test error message"
        assert error.details == {"key": "value"}
        assert str(error) == "Test error message"

    def test_not_found_error(self):
        """Test NotFoundError generates correct error code."""
        error = NotFoundError("plan", "Plan not found", {"plan_id": 123})

        assert error.code == "NF_PLAN_001"
        assert error.message == "Plan not found"
        assert error.details == {"plan_id": 123}

    def test_not_found_error_default_message(self):
        error = NotFoundError("template")

        assert error.code == "NF_TEMPLATE_001"
        assert error.message == "template not found"
        assert error.details == {}

    def test_validation_error(self):
        """Test ValidationError generates correct error code."""
        error = ValidationError("timezone", "unknown timezone 'Mars/Olympus'")

        assert error.code == "VAL_TIMEZONE_001"
        assert error.message == "Validation failed for timezone: unknown timezone 'Mars/Olympus'"
        assert error.details == {"field": "timezone"}

    def test_plan_resolution_error(self):
        error = PlanResolutionError("Composite plan 7 has no modules", details={"plan_id": 7})

        assert error.code == "PLAN_RESOLUTION_001"
        assert error.details == {"plan_id": 7}

    def test_unsupported_kind(self):
        error = UnsupportedDefinitionKindError("westside")

        assert error.code == "GEN_UNSUPPORTED_KIND"
        assert "westside" in error.message
        assert error.details == {"kind": "westside"}

    def test_missing_context(self):
        """Test MissingContextError lists what is missing."""
        error = MissingContextError(["week", "day"])

        assert error.code == "GEN_MISSING_CONTEXT"
        assert error.message == "Missing generation context: week, day"
        assert error.details == {"missing": ["week", "day"]}

    def test_stats_params_error(self):
        error = StatsParamsError("exercise is required", {"field": "exercise"})

        assert error.code == "STATS_PARAMS_001"
        assert error.details == {"field": "exercise"}

    def test_conflict_error_custom(self):
        error = ConflictError("Template slug 'x' already exists", code="CF_TEMPLATE_SLUG")

        assert error.code == "CF_TEMPLATE_SLUG"
        assert error.details == {}

    def test_override_warning_as_dict(self):
        """Test OverridePatchWarning omits empty details."""
        bare = OverridePatchWarning(3, "SWAP_DAYS", "unknown_op")
        detailed = OverridePatchWarning(4, "REMOVE_EXERCISE", "no_match", {"blockTarget": "OHP"})

        assert bare.as_dict() == {"overrideId": 3, "op": "SWAP_DAYS", "reason": "unknown_op"}
        assert detailed.as_dict()["details"] == {"blockTarget": "OHP"}


class TestErrorStatusMap:
    """Test ERROR_STATUS_MAP mapping."""

    @pytest.mark.parametrize(
        "error_type,status_code",
        [
            (NotFoundError, 404),
            (ValidationError, 400),
            (ConflictError, 409),
            (AuthorizationError, 403),
            (PlanResolutionError, 422),
            (UnsupportedDefinitionKindError, 422),
            (MissingContextError, 400),
            (StatsParamsError, 400),
        ],
    )
    def test_status(self, error_type, status_code):
        assert ERROR_STATUS_MAP[error_type] == status_code


class TestDomainErrorHandler:
    """Test domain_error_handler function."""

    @pytest.mark.asyncio
    async def test_not_found_error_response(self):
        """Test NotFoundError returns 404 with structured JSON."""
        error = NotFoundError("plan", "Plan with ID 999 not found", {"plan_id": 999})
        request = MockRequest(request_id="req-123")

        response = await domain_error_handler(request, error)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404

        data = json.loads(response.body.decode())

        assert data["data"] is None
        assert len(data["errors"]) == 1

        error_dict = data["errors"][0]
        assert error_dict["code"] == "NF_PLAN_001"
        assert error_dict["message"] == "Plan with ID 999 not found"
        assert error_dict["details"] == {"plan_id": 999}

    @pytest.mark.asyncio
    async def test_missing_context_response(self):
        """Test MissingContextError returns 400."""
        response = await domain_error_handler(MockRequest(), MissingContextError(["day"]))

        assert response.status_code == 400
        data = json.loads(response.body.decode())
        assert data["errors"][0]["details"] == {"missing": ["day"]}

    @pytest.mark.asyncio
    async def test_response_includes_metadata(self):
        """Test error response includes request_id and timestamp."""
        response = await domain_error_handler(MockRequest(request_id="test-request-id-12345"), NotFoundError("plan"))

        data = json.loads(response.body.decode())

        assert data["meta"]["request_id"] == "test-request-id-12345"
        datetime.fromisoformat(data["meta"]["timestamp"].replace('Z', '+00:00'))

    @pytest.mark.asyncio
    async def test_unknown_domain_error_returns_500(self):
        """Test unknown DomainError subclass returns 500."""

        class CustomDomainError(DomainError):
            pass

        response = await domain_error_handler(MockRequest(), CustomDomainError("CUSTOM_001", "Custom error message"))

        assert response.status_code == 500
        data = json.loads(response.body.decode())
        assert data["errors"][0]["code"] == "CUSTOM_001"

    @pytest.mark.asyncio
    async def test_error_with_none_request_id(self):
        """Test error response when request has no request_id."""
        request = type('Request', (), {'state': type('State', (), {})()})()

        response = await domain_error_handler(request, ValidationError("field", "Invalid field"))

        data = json.loads(response.body.decode())
        assert data["meta"]["request_id"] is None


class TestRequestValidationHandler:

    @pytest.mark.asyncio
    async def test_shares_envelope(self):
        """Malformed requests use the same envelope with a 400."""
        exc = RequestValidationError([{"loc": ("body", "name"), "msg": "Field required", "type": "missing"}])

        response = await request_validation_handler(MockRequest(request_id="req-val"), exc)

        assert response.status_code == 400
        data = json.loads(response.body.decode())
        assert data["data"] is None
        assert data["meta"]["request_id"] == "req-val"
        assert data["errors"][0]["code"] == "VAL_REQUEST_001"
        assert data["errors"][0]["details"]["errors"][0]["loc"] == ["body", "name"]


class TestErrorResponseStructure:
    """Test that all error responses have consistent structure."""

    @pytest.mark.asyncio
    async def test_all_errors_have_consistent_structure(self):
        """Verify all domain error types return consistent response structure."""
        errors = [
            NotFoundError("plan", "Not found"),
            ValidationError("field", "Validation failed"),
            ConflictError("Conflict detected"),
            AuthorizationError("Authorization failed"),
            PlanResolutionError("No modules"),
            UnsupportedDefinitionKindError("unknown"),
            MissingContextError(["week"]),
            StatsParamsError("bad window"),
        ]

        request = MockRequest(request_id="test-req")

        for error in errors:
            response = await domain_error_handler(request, error)
            data = json.loads(response.body.decode())

            assert data["data"] is None
            assert "request_id" in data["meta"]
            assert "timestamp" in data["meta"]
            assert isinstance(data["errors"], list)
            assert len(data["errors"]) == 1

            error_obj = data["errors"][0]
            assert isinstance(error_obj["code"], str)
            assert isinstance(error_obj["message"], str)
            assert isinstance(error_obj["details"], dict)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
