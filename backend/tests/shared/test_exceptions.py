"""Tests for shared/exceptions.py."""

import pytest

from shared.exceptions import (
    TenureError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ExpiredError,
    IntegrityViolationError,
    StorageError,
    ExternalServiceError,
)


class TestTenureError:
    def test_message(self):
        """TenureError should store message."""
        error = TenureError("Test error")
        assert error.message == "Test error"
        assert str(error) == "Test error"

    def test_default_code(self):
        """TenureError should default code to class name."""
        assert TenureError("Test error").code == "TenureError"

    def test_custom_code_and_details(self):
        error = TenureError("Test error", code="CUSTOM_ERROR", details={"key": "value"})
        assert error.code == "CUSTOM_ERROR"
        assert error.details == {"key": "value"}

    def test_to_dict(self):
        """TenureError should convert to dict."""
        error = TenureError("Test error", code="TEST_ERROR", details={"key": "value"})
        assert error.to_dict() == {
            "error": "TEST_ERROR",
            "message": "Test error",
            "details": {"key": "value"},
        }

    def test_to_dict_minimal(self):
        result = TenureError("Test error").to_dict()
        assert result["error"] == "TenureError"
        assert result["details"] == {}


class TestTaxonomy:
    @pytest.mark.parametrize("error_type", [
        NotFoundError,
        ValidationError,
        AuthenticationError,
        AuthorizationError,
        ConflictError,
        ExpiredError,
        IntegrityViolationError,
    ])
    def test_inherits_from_tenure_error(self, error_type):
        error = error_type("boom")
        assert isinstance(error, TenureError)
        assert error.code == error_type.__name__

    def test_conflict_is_not_a_validation_error(self):
        """Losing a race is reported separately from invalid input."""
        assert not issubclass(ConflictError, ValidationError)


class TestStorageError:
    def test_defaults(self):
        """StorageError has a generic message and a stable code."""
        error = StorageError()
        assert error.code == "STORAGE_UNAVAILABLE"
        assert "temporarily unavailable" in error.message

    def test_custom_details(self):
        error = StorageError(details={"cause": "timeout"})
        assert error.details["cause"] == "timeout"


class TestExternalServiceError:
    def test_records_service(self):
        error = ExternalServiceError("Gateway down", service="card_gateway")
        assert error.service == "card_gateway"
        assert error.details["service"] == "card_gateway"
