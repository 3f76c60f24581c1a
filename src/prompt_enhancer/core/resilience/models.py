"""Resilience data models, enums, and protocols.

Defines the core types used across the resilience sub-package:
- CircuitState enum for the breaker state machine
- CircuitBreakerConfig and RetryConfig tuning knobs
- CircuitBreakerStats snapshot for observability
- SleepFunc protocol for injectable async sleep
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Protocol


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Circuit breaker thresholds.

    The breaker opens once ``failure_threshold`` failures fall inside the
    sliding ``monitoring_window_ms`` and at least ``minimum_throughput`` calls
    have been attempted over the breaker's lifetime.
    """

    failure_threshold: int = 5
    reset_timeout_ms: float = 60_000
    monitoring_window_ms: float = 300_000
    minimum_throughput: int = 10


@dataclass(frozen=True)
class RetryConfig:
    """Retry behaviour for a single top-level call.

    Delays are in milliseconds. ``jitter_factor`` adds up to that fraction of
    the capped delay on top of it.
    """

    max_attempts: int = 3
    base_delay_ms: float = 1_000
    max_delay_ms: float = 30_000
    backoff_multiplier: float = 2.0
    jitter_factor: float = 0.1


@dataclass(frozen=True)
class CircuitBreakerStats:
    """Point-in-time view of a circuit breaker."""

    state: CircuitState
    failure_count: int
    success_count: int
    total_calls: int
    last_failure_time: Optional[datetime] = None
    next_attempt_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "total_calls": self.total_calls,
            "last_failure_time": (
                self.last_failure_time.isoformat() if self.last_failure_time else None
            ),
            "next_attempt_time": (
                self.next_attempt_time.isoformat() if self.next_attempt_time else None
            ),
        }


class SleepFunc(Protocol):
    """Protocol for injectable sleep function."""

    async def __call__(self, seconds: float) -> None: ...
