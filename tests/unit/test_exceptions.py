"""Unit tests for custom exception hierarchy"""
import logging
from datetime import datetime

import httpx
import psycopg
import pytest

from goalmate.exceptions import (
    ConfigurationError,
    ExternalAPIError,
    GoalMateError,
    OperationInProgressError,
    PersistenceError,
    ProviderError,
    ProviderUnavailableError,
    RecordNotFoundError,
    StaleOperationError,
    ValidationError,
    wrap_external_exception,
)


class TestGoalMateError:
    """Test base exception class"""

    def test_basic_exception(self):
        """Test basic exception creation"""
        error = GoalMateError("Test error")
        assert error.message == "Test error"
        assert error.user_message == "An error occurred. Please try again."
        assert error.request_id is not None
        assert isinstance(error.timestamp, datetime)
        assert error.timestamp.tzinfo is not None

    def test_exception_with_context(self):
        """Test exception with full context"""
        error = GoalMateError(
            message="Check-in failed",
            user_id="local-user",
            operation="daily_check_in",
            context={"habit_id": "h1"},
            user_message="Could not save your check-in"
        )
        assert error.user_id == "local-user"
        assert error.operation == "daily_check_in"
        assert error.context["habit_id"] == "h1"
        assert error.user_message == "Could not save your check-in"

    def test_to_dict(self):
        error = GoalMateError("Test error", request_id="req-1")

        data = error.to_dict()

        assert data["error"] == "GoalMateError"
        assert data["message"] == "Test error"
        assert data["request_id"] == "req-1"
        assert "timestamp" in data

    def test_auto_logs_on_creation(self, caplog):
        with caplog.at_level(logging.WARNING, logger="goalmate.exceptions"):
            ValidationError("Missing proof", field="proof", value="link")

        assert any("ValidationError: Missing proof" in r.getMessage() for r in caplog.records)
        assert caplog.records[-1].levelno == logging.WARNING


class TestSubclasses:
    """Test the specific error types"""

    def test_validation_error_surfaces_message(self):
        error = ValidationError("Please provide a link to check in.", field="proof", value="link")

        assert error.field == "proof"
        assert error.user_message == "Please provide a link to check in."
        assert isinstance(error, GoalMateError)

    def test_record_not_found(self):
        error = RecordNotFoundError("Goal g1 not found", record_type="Goal", record_id="g1")

        assert error.user_message == "Goal not found."
        assert error.context == {"record_type": "Goal", "record_id": "g1"}

    def test_concurrency_errors_carry_key(self):
        assert OperationInProgressError("module:g1:m1").entity_key == "module:g1:m1"
        assert StaleOperationError("checkin:u1").entity_key == "checkin:u1"

    def test_provider_errors_are_external(self):
        assert isinstance(ProviderUnavailableError(), ExternalAPIError)
        assert isinstance(ProviderError("failed"), ExternalAPIError)
        assert ProviderError("failed").service == "Insight provider"

    def test_persistence_error_is_retryable(self):
        error = PersistenceError("insert failed")

        assert error.retryable is True
        assert error.user_message == "Sorry, there was a problem saving your check-in. Please try again later."

    def test_configuration_error(self):
        error = ConfigurationError("bad model", config_key="INSIGHT_MODEL")

        assert error.config_key == "INSIGHT_MODEL"


class TestWrapExternalException:
    """Test mapping of third-party errors"""

    def test_passes_through_our_errors(self):
        error = ValidationError("x")
        assert wrap_external_exception(error, operation="op") is error

    def test_psycopg_error_becomes_persistence_error(self):
        wrapped = wrap_external_exception(psycopg.OperationalError("connection lost"), operation="record_check_in")

        assert isinstance(wrapped, PersistenceError)
        assert wrapped.operation == "record_check_in"

    def test_httpx_timeout_becomes_provider_error(self):
        wrapped = wrap_external_exception(httpx.ReadTimeout("slow"), operation="question")

        assert isinstance(wrapped, ProviderError)

    def test_httpx_status_error_keeps_status(self):
        response = httpx.Response(503, request=httpx.Request("POST", "https://api.example.com"))
        error = httpx.HTTPStatusError("unavailable", request=response.request, response=response)

        wrapped = wrap_external_exception(error, operation="question")

        assert isinstance(wrapped, ProviderError)
        assert wrapped.status_code == 503

    def test_unknown_error_becomes_base_error(self):
        wrapped = wrap_external_exception(ValueError("odd"), operation="op")

        assert type(wrapped) is GoalMateError
        assert wrapped.cause.args == ("odd",)
