"""Audit logging for resilience and enhancement events.

Provides structured audit logging with automatic correlation ID population
from request context.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from prompt_enhancer.core.context import get_correlation_id


class AuditEventType(Enum):
    """Types of audit events emitted by the client."""

    CIRCUIT_STATE_CHANGE = "circuit_state_change"
    RETRY_ATTEMPT = "retry_attempt"
    ENHANCEMENT_SUCCESS = "enhancement_success"
    ENHANCEMENT_FAILURE = "enhancement_failure"
    HEALTH_CHECK = "health_check"
    CONFIG_LOADED = "config_loaded"
    SERVICE_EVENT = "service_event"


@dataclass
class AuditEvent:
    """Structured audit event."""

    event_type: AuditEventType
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Auto-populate correlation_id from context if not set."""
        if self.correlation_id is None:
            self.correlation_id = get_correlation_id() or None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
            "details": self.details,
        }
        if self.correlation_id:
            result["correlation_id"] = self.correlation_id
        return result


class AuditLogger:
    """
    Structured audit logging for client events.

    Audit logs are written to a separate logger for easy filtering.
    """

    def __init__(self):
        self._logger = logging.getLogger(f"{__name__}.audit")

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        self._logger.info(f"AUDIT: {event.event_type.value}", extra={"audit": event.to_dict()})

    def circuit_state_change(
        self, breaker: str, old_state: str, new_state: str, action: str, **details: Any
    ) -> None:
        """Log a circuit breaker transition."""
        self.log(
            AuditEvent(
                event_type=AuditEventType.CIRCUIT_STATE_CHANGE,
                details={
                    "breaker": breaker,
                    "old_state": old_state,
                    "new_state": new_state,
                    "action": action,
                    **details,
                },
            )
        )

    def health_check(self, healthy: bool, response_time_ms: float, **details: Any) -> None:
        """Log a health check outcome."""
        self.log(
            AuditEvent(
                event_type=AuditEventType.HEALTH_CHECK,
                details={
                    "healthy": healthy,
                    "response_time_ms": response_time_ms,
                    **details,
                },
            )
        )


# Global audit logger
_audit = AuditLogger()


def get_audit_logger() -> AuditLogger:
    """Get the global audit logger."""
    return _audit


def audit_log(event_type: str, **details: Any) -> None:
    """
    Convenience function for audit logging.

    Args:
        event_type: Type of event (circuit_state_change, retry_attempt,
                    enhancement_success, enhancement_failure, health_check,
                    config_loaded)
        **details: Additional details to include in the audit log
    """
    try:
        event_enum = AuditEventType(event_type)
    except ValueError:
        event_enum = AuditEventType.SERVICE_EVENT
        details["original_event_type"] = event_type

    _audit.log(AuditEvent(event_type=event_enum, details=details))
