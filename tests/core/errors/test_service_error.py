"""Tests for ServiceError and ErrorKind.

Tests cover:
- Named constructors and their retryable flags / status codes
- Read-only attributes and context
- Kind-specific accessors
- Log record and details serialization
"""

import json
from datetime import datetime, timezone

import pytest

from prompt_enhancer.core.errors import (
    ErrorKind,
    ServiceError,
    is_retryable_kind,
)


class TestNamedConstructors:
    """Tests for the per-kind constructors."""

    @pytest.mark.parametrize(
        "error,kind,retryable,status",
        [
            (ServiceError.authentication("bad key"), ErrorKind.AUTHENTICATION, False, 401),
            (ServiceError.rate_limit("slow down"), ErrorKind.RATE_LIMIT, True, 429),
            (ServiceError.network("reset"), ErrorKind.NETWORK, True, None),
            (ServiceError.timeout("late", timeout_ms=500), ErrorKind.TIMEOUT, True, None),
            (ServiceError.validation("bad input"), ErrorKind.VALIDATION, False, 400),
            (ServiceError.api_error("boom"), ErrorKind.API_ERROR, True, 500),
            (ServiceError.configuration("no key"), ErrorKind.CONFIGURATION, False, None),
            (ServiceError.unknown("???"), ErrorKind.UNKNOWN, False, None),
        ],
    )
    def test_kind_retryable_and_status(self, error, kind, retryable, status):
        """Each constructor fixes kind, retryable flag and default status."""
        assert error.kind == kind
        assert error.retryable is retryable
        assert error.status_code == status

    def test_api_error_client_status_not_retryable(self):
        """API errors below 500 are not retryable."""
        assert ServiceError.api_error("conflict", status_code=409).retryable is False
        assert ServiceError.api_error("bad gateway", status_code=502).retryable is True

    def test_circuit_open_carries_next_attempt_time(self):
        """Circuit-open errors carry the next attempt time."""
        when = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        error = ServiceError.circuit_open("open", next_attempt_time=when)
        assert error.kind == ErrorKind.CIRCUIT_BREAKER
        assert error.retryable is False
        assert error.next_attempt_time == when


class TestAttributes:
    """Tests for read-only attributes and accessors."""

    def test_is_exception_with_message(self):
        """ServiceError is an Exception whose str() is the message."""
        error = ServiceError.network("connection refused")
        assert isinstance(error, Exception)
        assert str(error) == "connection refused"
        assert error.message == "connection refused"

    def test_attributes_are_read_only(self):
        """Attributes cannot be reassigned."""
        error = ServiceError.network("x")
        with pytest.raises(AttributeError):
            error.kind = ErrorKind.UNKNOWN
        with pytest.raises(AttributeError):
            error.retryable = False

    def test_context_is_read_only(self):
        """Context mapping cannot be mutated."""
        error = ServiceError.rate_limit("x", retry_after=3)
        with pytest.raises(TypeError):
            error.context["retry_after"] = 10

    def test_timestamp_is_aware_utc(self):
        """Timestamp is timezone-aware UTC."""
        error = ServiceError.unknown("x")
        assert error.timestamp.tzinfo is not None
        assert error.timestamp.utcoffset().total_seconds() == 0

    def test_kind_specific_accessors(self):
        """Accessors read kind-specific values from context."""
        assert ServiceError.rate_limit("x", retry_after=2.5).retry_after == 2.5
        assert ServiceError.rate_limit("x").retry_after is None
        assert ServiceError.timeout("x", timeout_ms=1500).timeout_ms == 1500
        errors = ServiceError.validation("x", validation_errors=["a: bad", "b: bad"])
        assert errors.validation_errors == ("a: bad", "b: bad")

    def test_cause_preserved(self):
        """Original exception is kept as cause."""
        original = ValueError("inner")
        error = ServiceError.unknown("outer", cause=original)
        assert error.cause is original


class TestSerialization:
    """Tests for to_log_record and to_details."""

    def test_log_record_fields(self):
        """Log record is flat and includes the cause message."""
        error = ServiceError.api_error("server down", status_code=503, cause=RuntimeError("503"))
        record = error.to_log_record()
        assert record["error_kind"] == "API_ERROR"
        assert record["error_message"] == "server down"
        assert record["retryable"] is True
        assert record["status_code"] == 503
        assert record["cause"] == "503"
        assert datetime.fromisoformat(record["timestamp"]) == error.timestamp

    def test_log_record_avoids_reserved_logrecord_keys(self):
        """Record keys do not collide with logging.LogRecord attributes."""
        record = ServiceError.unknown("x").to_log_record()
        assert "message" not in record
        assert "msg" not in record

    def test_details_are_json_serializable(self):
        """Details survive json.dumps."""
        error = ServiceError.validation("bad", validation_errors=["original_text: empty"])
        details = error.to_details()
        encoded = json.loads(json.dumps(details))
        assert encoded["kind"] == "VALIDATION"
        assert encoded["context"]["validation_errors"] == ["original_text: empty"]
        assert encoded["cause"] is None


class TestIsRetryableKind:
    """Tests for is_retryable_kind helper."""

    def test_transient_kinds(self):
        """Retryable transient kinds return True."""
        assert is_retryable_kind(ServiceError.network("x")) is True
        assert is_retryable_kind(ServiceError.timeout("x")) is True
        assert is_retryable_kind(ServiceError.rate_limit("x")) is True
        assert is_retryable_kind(ServiceError.api_error("x", status_code=500)) is True

    def test_non_retryable(self):
        """Non-retryable errors return False even for transient kinds."""
        assert is_retryable_kind(ServiceError.api_error("x", status_code=404)) is False
        assert is_retryable_kind(ServiceError.authentication("x")) is False
        assert is_retryable_kind(ServiceError(ErrorKind.UNKNOWN, "x", retryable=True)) is False
