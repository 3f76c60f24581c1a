"""Resilience primitives for calls to the remote Messages API.

Sub-modules:
- models: CircuitState, CircuitBreakerConfig, RetryConfig, CircuitBreakerStats, SleepFunc
- circuit_breaker: CircuitBreaker (sliding-window, three-state)
- retry: RetryExecutor (exponential backoff with jitter)
"""

from prompt_enhancer.core.resilience.circuit_breaker import (
    CIRCUIT_OPEN_MESSAGE,
    CircuitBreaker,
)
from prompt_enhancer.core.resilience.models import (
    CircuitBreakerConfig,
    CircuitBreakerStats,
    CircuitState,
    RetryConfig,
    SleepFunc,
)
from prompt_enhancer.core.resilience.retry import OnRetry, RetryExecutor

__all__ = [
    # Models
    "CircuitBreakerConfig",
    "CircuitBreakerStats",
    "CircuitState",
    "RetryConfig",
    "SleepFunc",
    # Circuit breaker
    "CIRCUIT_OPEN_MESSAGE",
    "CircuitBreaker",
    # Retry
    "OnRetry",
    "RetryExecutor",
]
