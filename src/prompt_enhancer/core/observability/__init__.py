"""Observability helpers: audit events and secret redaction."""

from prompt_enhancer.core.observability.audit import (
    AuditEvent,
    AuditEventType,
    AuditLogger,
    audit_log,
    get_audit_logger,
)
from prompt_enhancer.core.observability.redaction import (
    SENSITIVE_PATTERNS,
    redact_for_logging,
    redact_headers,
    redact_secrets,
    redact_sensitive_data,
)

__all__ = [
    # Audit
    "AuditEvent",
    "AuditEventType",
    "AuditLogger",
    "audit_log",
    "get_audit_logger",
    # Redaction
    "SENSITIVE_PATTERNS",
    "redact_for_logging",
    "redact_headers",
    "redact_secrets",
    "redact_sensitive_data",
]
