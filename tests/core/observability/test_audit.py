"""Tests for audit logging and request correlation ids."""

import logging

import pytest

from prompt_enhancer.core.context import (
    generate_correlation_id,
    get_correlation_id,
    request_context,
)
from prompt_enhancer.core.observability import (
    AuditEvent,
    AuditEventType,
    audit_log,
    get_audit_logger,
)

AUDIT_LOGGER = "prompt_enhancer.core.observability.audit.audit"


def audit_records(caplog):
    return [r.audit for r in caplog.records if hasattr(r, "audit")]


class TestRequestContext:
    """Tests for correlation id binding."""

    def test_no_id_outside_request(self):
        """Outside a request the id is empty."""
        assert get_correlation_id() == ""

    def test_generated_id_bound_and_reset(self):
        """A generated id is bound inside the block and cleared after."""
        with request_context(prefix="enhance") as cid:
            assert cid.startswith("enhance-")
            assert get_correlation_id() == cid
        assert get_correlation_id() == ""

    def test_nested_context_reuses_outer_id(self):
        """Inner blocks reuse the id bound by the caller."""
        with request_context("outer-1"):
            with request_context(prefix="health") as inner:
                assert inner == "outer-1"

    def test_generated_ids_unique(self):
        """Generated ids differ."""
        assert generate_correlation_id() != generate_correlation_id()


class TestAuditEvent:
    """Tests for AuditEvent."""

    def test_correlation_id_from_context(self):
        """Events pick up the active correlation id."""
        with request_context("req-abc"):
            event = AuditEvent(event_type=AuditEventType.HEALTH_CHECK)
        assert event.to_dict()["correlation_id"] == "req-abc"

    def test_no_correlation_id_omitted(self):
        """Without a request the correlation id is left out."""
        data = AuditEvent(event_type=AuditEventType.CONFIG_LOADED, details={"a": 1}).to_dict()
        assert "correlation_id" not in data
        assert data["event_type"] == "config_loaded"
        assert data["details"] == {"a": 1}


class TestAuditLogger:
    """Tests for the audit logger helpers."""

    def test_audit_log_known_type(self, caplog):
        """Known event types are logged as-is."""
        with caplog.at_level(logging.INFO, logger=AUDIT_LOGGER):
            audit_log("retry_attempt", attempt=2)
        [record] = audit_records(caplog)
        assert record["event_type"] == "retry_attempt"
        assert record["details"] == {"attempt": 2}

    def test_audit_log_unknown_type(self, caplog):
        """Unknown event types map to service_event."""
        with caplog.at_level(logging.INFO, logger=AUDIT_LOGGER):
            audit_log("something_new", value="x")
        [record] = audit_records(caplog)
        assert record["event_type"] == "service_event"
        assert record["details"]["original_event_type"] == "something_new"

    def test_circuit_state_change(self, caplog):
        """Breaker transitions carry old/new state and action."""
        with caplog.at_level(logging.INFO, logger=AUDIT_LOGGER):
            get_audit_logger().circuit_state_change("messages-api", "CLOSED", "OPEN", "tripped")
        [record] = audit_records(caplog)
        assert record["details"] == {
            "breaker": "messages-api",
            "old_state": "CLOSED",
            "new_state": "OPEN",
            "action": "tripped",
        }

    @pytest.mark.parametrize("healthy", [True, False])
    def test_health_check(self, caplog, healthy):
        """Health checks record the outcome and response time."""
        with caplog.at_level(logging.INFO, logger=AUDIT_LOGGER):
            get_audit_logger().health_check(healthy, 12.5, error_kind=None)
        [record] = audit_records(caplog)
        assert record["event_type"] == "health_check"
        assert record["details"]["healthy"] is healthy
        assert record["details"]["response_time_ms"] == 12.5
