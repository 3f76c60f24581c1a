"""Sliding-window circuit breaker.

CLOSED -> OPEN once enough recent failures accumulate, OPEN -> HALF_OPEN when
the reset timeout elapses and a call arrives, HALF_OPEN -> CLOSED on the first
success or back to OPEN on failure.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Awaitable, Callable, Deque, Optional, TypeVar

from prompt_enhancer.core.errors import ServiceError
from prompt_enhancer.core.observability import get_audit_logger
from prompt_enhancer.core.resilience.models import (
    CircuitBreakerConfig,
    CircuitBreakerStats,
    CircuitState,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CIRCUIT_OPEN_MESSAGE = "Circuit breaker is open - service is temporarily unavailable"


def _to_datetime(timestamp: Optional[float]) -> Optional[datetime]:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class CircuitBreaker:
    """Circuit breaker guarding calls to the remote Messages API.

    Args:
        config: Thresholds and timings.
        name: Name used in logs and audit events.
        clock: Wall-clock source in seconds; injectable for tests.

    Example:
        >>> breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3))
        >>> result = await breaker.execute(lambda: transport.create_message(req, timeout=30))
    """

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        *,
        name: str = "messages-api",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or CircuitBreakerConfig()
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures: Deque[float] = deque()
        self._success_count = 0
        self._total_calls = 0
        self._last_failure_time: Optional[float] = None
        self._next_attempt_time: Optional[float] = None

    @property
    def state(self) -> CircuitState:
        return self._state

    # ------------------------------------------------------------------
    # Internal helpers (call with self._lock held)
    # ------------------------------------------------------------------

    def _prune(self, now: float) -> None:
        cutoff = now - self.config.monitoring_window_ms / 1000.0
        while self._failures and self._failures[0] < cutoff:
            self._failures.popleft()

    def _transition(self, new_state: CircuitState, action: str) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        logger.info(
            "Circuit breaker '%s' %s -> %s (%s)",
            self.name,
            old_state.value,
            new_state.value,
            action,
        )
        get_audit_logger().circuit_state_change(
            self.name,
            old_state.value,
            new_state.value,
            action,
            failure_count=len(self._failures),
        )

    def _open(self, now: float, action: str) -> None:
        self._next_attempt_time = now + self.config.reset_timeout_ms / 1000.0
        self._transition(CircuitState.OPEN, action)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def can_execute(self) -> bool:
        """Check whether a call may proceed, moving OPEN -> HALF_OPEN when due.

        Counts the call toward ``total_calls`` when it is allowed.
        """
        with self._lock:
            if self._state == CircuitState.OPEN:
                now = self._clock()
                if self._next_attempt_time is None or now < self._next_attempt_time:
                    return False
                self._transition(CircuitState.HALF_OPEN, "recovery")
            self._total_calls += 1
            return True

    def record_success(self) -> None:
        """Record a successful call."""
        with self._lock:
            self._success_count += 1
            if self._state == CircuitState.HALF_OPEN:
                self._failures.clear()
                self._next_attempt_time = None
                self._transition(CircuitState.CLOSED, "recovered")
            else:
                self._prune(self._clock())

    def record_failure(self) -> None:
        """Record a failed call and trip the breaker when thresholds are met."""
        with self._lock:
            now = self._clock()
            self._failures.append(now)
            self._last_failure_time = now
            self._prune(now)

            if self._state == CircuitState.HALF_OPEN:
                self._open(now, "probe_failed")
            elif (
                self._state == CircuitState.CLOSED
                and len(self._failures) >= self.config.failure_threshold
                and self._total_calls >= self.config.minimum_throughput
            ):
                self._open(now, "tripped")
                logger.warning(
                    "Circuit breaker '%s' opened after %d failures in window",
                    self.name,
                    len(self._failures),
                )

    def _abandon_probe(self) -> None:
        """Reopen when a HALF_OPEN probe is cancelled before it completes."""
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._open(self._clock(), "probe_cancelled")

    def _rejection(self) -> ServiceError:
        with self._lock:
            next_attempt = self._next_attempt_time
            if next_attempt is None:
                next_attempt = self._clock() + self.config.reset_timeout_ms / 1000.0
        get_audit_logger().circuit_state_change(
            self.name,
            CircuitState.OPEN.value,
            CircuitState.OPEN.value,
            "rejected",
        )
        return ServiceError.circuit_open(
            CIRCUIT_OPEN_MESSAGE,
            next_attempt_time=datetime.fromtimestamp(next_attempt, tz=timezone.utc),
        )

    async def execute(self, func: Callable[[], Awaitable[T]]) -> T:
        """Run ``func`` through the breaker.

        Args:
            func: Zero-argument coroutine factory.

        Returns:
            Whatever ``func`` returns.

        Raises:
            ServiceError: CIRCUIT_BREAKER kind when the breaker is open; ``func``
                is not invoked in that case.
            Exception: Anything ``func`` raises, after recording the failure.
        """
        if not self.can_execute():
            raise self._rejection()
        try:
            result = await func()
        except asyncio.CancelledError:
            self._abandon_probe()
            raise
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

    def get_stats(self) -> CircuitBreakerStats:
        """Snapshot of the breaker; prunes stale failures first."""
        with self._lock:
            self._prune(self._clock())
            return CircuitBreakerStats(
                state=self._state,
                failure_count=len(self._failures),
                success_count=self._success_count,
                total_calls=self._total_calls,
                last_failure_time=_to_datetime(self._last_failure_time),
                next_attempt_time=_to_datetime(self._next_attempt_time),
            )

    def is_healthy(self) -> bool:
        return self._state == CircuitState.CLOSED

    def is_available(self) -> bool:
        """Whether a call would be let through right now, without side effects."""
        with self._lock:
            if self._state != CircuitState.OPEN:
                return True
            return (
                self._next_attempt_time is not None
                and self._clock() >= self._next_attempt_time
            )

    def failure_rate(self) -> float:
        """Window failures relative to min(total_calls, minimum_throughput)."""
        with self._lock:
            self._prune(self._clock())
            denominator = min(self._total_calls, self.config.minimum_throughput)
            if denominator <= 0:
                return 0.0
            return len(self._failures) / denominator

    def force_open(self) -> None:
        """Open the breaker immediately (maintenance or manual intervention)."""
        with self._lock:
            self._open(self._clock(), "forced_open")

    def force_close(self) -> None:
        """Close the breaker immediately and clear the failure window."""
        with self._lock:
            self._failures.clear()
            self._next_attempt_time = None
            self._transition(CircuitState.CLOSED, "forced_close")
