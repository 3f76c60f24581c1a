"""Tagged service error shared by every layer of the enhancement client.

A single ``ServiceError`` class carries an ``ErrorKind`` discriminant instead of
one subclass per failure category. Callers branch on ``error.kind`` (a ``match``
statement works well) rather than on ``isinstance`` checks.

Retryability per kind:
    AUTHENTICATION   no
    RATE_LIMIT       yes (may carry a retry-after hint)
    NETWORK          yes
    TIMEOUT          yes
    VALIDATION       no
    API_ERROR        only for 5xx status codes
    CONFIGURATION    no
    CIRCUIT_BREAKER  no (back off until next_attempt_time)
    UNKNOWN          no
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


class ErrorKind(str, Enum):
    """Failure categories used for retry and reporting decisions."""

    AUTHENTICATION = "AUTHENTICATION"
    RATE_LIMIT = "RATE_LIMIT"
    NETWORK = "NETWORK"
    TIMEOUT = "TIMEOUT"
    VALIDATION = "VALIDATION"
    API_ERROR = "API_ERROR"
    CONFIGURATION = "CONFIGURATION"
    CIRCUIT_BREAKER = "CIRCUIT_BREAKER"
    UNKNOWN = "UNKNOWN"


# Kinds that may succeed when the same request is sent again
TRANSIENT_KINDS = frozenset(
    {
        ErrorKind.NETWORK,
        ErrorKind.TIMEOUT,
        ErrorKind.RATE_LIMIT,
        ErrorKind.API_ERROR,
    }
)


def _compact(values: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _cause_message(cause: Any) -> Optional[str]:
    if cause is None:
        return None
    if isinstance(cause, BaseException):
        return str(cause) or type(cause).__name__
    return str(cause)


class ServiceError(Exception):
    """Classified failure raised by the enhancement client.

    Instances are immutable: every attribute is exposed through a read-only
    property and ``context`` is a read-only mapping.

    Attributes:
        kind: Failure category.
        message: Human-readable description.
        retryable: Whether the retry executor may try again.
        status_code: HTTP status code when one is known.
        context: Kind-specific metadata (retry_after, timeout_ms, ...).
        timestamp: When the error was created (UTC).
        cause: The original exception or value, if any.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        retryable: bool = False,
        status_code: Optional[int] = None,
        context: Optional[Mapping[str, Any]] = None,
        cause: Any = None,
        timestamp: Optional[datetime] = None,
    ):
        super().__init__(message)
        self._kind = ErrorKind(kind)
        self._message = message
        self._retryable = bool(retryable)
        self._status_code = status_code
        self._context: Mapping[str, Any] = MappingProxyType(dict(context or {}))
        self._cause = cause
        self._timestamp = timestamp or datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # Read-only attributes
    # ------------------------------------------------------------------

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def message(self) -> str:
        return self._message

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    @property
    def context(self) -> Mapping[str, Any]:
        return self._context

    @property
    def timestamp(self) -> datetime:
        return self._timestamp

    @property
    def cause(self) -> Any:
        return self._cause

    # Kind-specific payload, read from context

    @property
    def retry_after(self) -> Optional[float]:
        """Server retry hint in seconds (RATE_LIMIT only)."""
        value = self._context.get("retry_after")
        return float(value) if value is not None else None

    @property
    def timeout_ms(self) -> Optional[float]:
        """Timeout that fired (TIMEOUT only)."""
        return self._context.get("timeout_ms")

    @property
    def next_attempt_time(self) -> Optional[datetime]:
        """When the circuit breaker will allow a probe (CIRCUIT_BREAKER only)."""
        value = self._context.get("next_attempt_time")
        if value is None:
            return None
        return datetime.fromisoformat(value)

    @property
    def validation_errors(self) -> Tuple[str, ...]:
        """Per-field validation failures (VALIDATION only)."""
        return tuple(self._context.get("validation_errors", ()))

    # ------------------------------------------------------------------
    # Named constructors, one per kind
    # ------------------------------------------------------------------

    @classmethod
    def authentication(
        cls, message: str, *, status_code: int = 401, cause: Any = None
    ) -> "ServiceError":
        return cls(
            ErrorKind.AUTHENTICATION,
            message,
            retryable=False,
            status_code=status_code,
            cause=cause,
        )

    @classmethod
    def rate_limit(
        cls,
        message: str,
        *,
        retry_after: Optional[float] = None,
        cause: Any = None,
    ) -> "ServiceError":
        return cls(
            ErrorKind.RATE_LIMIT,
            message,
            retryable=True,
            status_code=429,
            context=_compact({"retry_after": retry_after}),
            cause=cause,
        )

    @classmethod
    def network(cls, message: str, *, cause: Any = None) -> "ServiceError":
        return cls(ErrorKind.NETWORK, message, retryable=True, cause=cause)

    @classmethod
    def timeout(
        cls,
        message: str,
        *,
        timeout_ms: Optional[float] = None,
        cause: Any = None,
    ) -> "ServiceError":
        return cls(
            ErrorKind.TIMEOUT,
            message,
            retryable=True,
            context=_compact({"timeout_ms": timeout_ms}),
            cause=cause,
        )

    @classmethod
    def validation(
        cls,
        message: str,
        *,
        validation_errors: Iterable[str] = (),
        cause: Any = None,
    ) -> "ServiceError":
        return cls(
            ErrorKind.VALIDATION,
            message,
            retryable=False,
            status_code=400,
            context={"validation_errors": list(validation_errors)},
            cause=cause,
        )

    @classmethod
    def api_error(
        cls, message: str, *, status_code: int = 500, cause: Any = None
    ) -> "ServiceError":
        return cls(
            ErrorKind.API_ERROR,
            message,
            retryable=status_code >= 500,
            status_code=status_code,
            cause=cause,
        )

    @classmethod
    def configuration(
        cls,
        message: str,
        *,
        status_code: Optional[int] = None,
        context: Optional[Mapping[str, Any]] = None,
        cause: Any = None,
    ) -> "ServiceError":
        return cls(
            ErrorKind.CONFIGURATION,
            message,
            retryable=False,
            status_code=status_code,
            context=context,
            cause=cause,
        )

    @classmethod
    def circuit_open(
        cls, message: str, *, next_attempt_time: datetime
    ) -> "ServiceError":
        return cls(
            ErrorKind.CIRCUIT_BREAKER,
            message,
            retryable=False,
            context={"next_attempt_time": next_attempt_time.isoformat()},
        )

    @classmethod
    def unknown(cls, message: str, *, cause: Any = None) -> "ServiceError":
        return cls(ErrorKind.UNKNOWN, message, retryable=False, cause=cause)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_log_record(self) -> Dict[str, Any]:
        """Flat record for structured logging.

        Keys are prefixed where they would collide with ``logging.LogRecord``
        attributes when passed through ``extra=``.
        """
        return {
            "error_kind": self._kind.value,
            "error_message": self._message,
            "retryable": self._retryable,
            "status_code": self._status_code,
            "timestamp": self._timestamp.isoformat(),
            "context": dict(self._context),
            "cause": _cause_message(self._cause),
        }

    def to_details(self) -> Dict[str, Any]:
        """JSON-serializable details for API and CLI responses."""
        return {
            "kind": self._kind.value,
            "message": self._message,
            "retryable": self._retryable,
            "status_code": self._status_code,
            "context": {
                key: list(value) if isinstance(value, (list, tuple)) else value
                for key, value in self._context.items()
            },
            "timestamp": self._timestamp.isoformat(),
            "cause": _cause_message(self._cause),
        }

    def __repr__(self) -> str:
        return (
            f"ServiceError(kind={self._kind.value}, message={self._message!r}, "
            f"retryable={self._retryable}, status_code={self._status_code})"
        )


def is_retryable_kind(error: ServiceError) -> bool:
    """True when the error is flagged retryable and its kind is transient."""
    return error.retryable and error.kind in TRANSIENT_KINDS
