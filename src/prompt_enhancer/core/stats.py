"""Per-client request statistics.

One StatsTracker belongs to one EnhancementClient; counters are updated once
per top-level ``enhance`` call, never per retry attempt.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from prompt_enhancer.core.errors import ErrorKind


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ServiceStats:
    """Immutable snapshot of a StatsTracker."""

    total_requests: int
    successful_requests: int
    failed_requests: int
    average_response_time_ms: float
    total_tokens_used: int
    last_reset_time: datetime
    errors_by_kind: Dict[ErrorKind, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "average_response_time_ms": self.average_response_time_ms,
            "total_tokens_used": self.total_tokens_used,
            "errors_by_kind": {kind.value: count for kind, count in self.errors_by_kind.items()},
            "last_reset_time": self.last_reset_time.isoformat(),
        }


class StatsTracker:
    """Thread-safe accumulator of request counters and latency.

    Average latency only includes successful calls.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last_reset_time: Optional[datetime] = None
        self._zero()

    def _zero(self) -> None:
        now = self._clock()
        if self._last_reset_time is not None and now < self._last_reset_time:
            now = self._last_reset_time
        self._total = 0
        self._successful = 0
        self._failed = 0
        self._average_ms = 0.0
        self._tokens = 0
        self._errors_by_kind: Dict[ErrorKind, int] = {}
        self._last_reset_time = now

    def record_success(self, latency_ms: float, tokens: int) -> None:
        with self._lock:
            self._total += 1
            self._successful += 1
            self._tokens += tokens
            n = self._successful
            self._average_ms = (self._average_ms * (n - 1) + latency_ms) / n

    def record_failure(self, kind: ErrorKind) -> None:
        with self._lock:
            self._total += 1
            self._failed += 1
            self._errors_by_kind[kind] = self._errors_by_kind.get(kind, 0) + 1

    def reset(self) -> None:
        """Zero all counters and move ``last_reset_time`` forward."""
        with self._lock:
            self._zero()

    def snapshot(self) -> ServiceStats:
        with self._lock:
            return ServiceStats(
                total_requests=self._total,
                successful_requests=self._successful,
                failed_requests=self._failed,
                average_response_time_ms=self._average_ms,
                total_tokens_used=self._tokens,
                last_reset_time=self._last_reset_time,
                errors_by_kind=dict(self._errors_by_kind),
            )
