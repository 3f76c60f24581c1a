"""Async retry with exponential backoff and jitter.

Each failure is classified first; only retryable ServiceErrors are retried,
and the classified error is what surfaces once attempts are exhausted.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from prompt_enhancer.core.errors import ServiceError, classify_error
from prompt_enhancer.core.observability import (
    audit_log,
    redact_secrets,
    redact_sensitive_data,
)
from prompt_enhancer.core.resilience.models import RetryConfig, SleepFunc

logger = logging.getLogger(__name__)

T = TypeVar("T")

OnRetry = Callable[[ServiceError, int, float], None]


def _loggable(message: str) -> str:
    return redact_secrets(redact_sensitive_data(message))


class RetryExecutor:
    """Bounded retry loop. Stateless across ``run`` invocations.

    Args:
        config: Attempt count and backoff parameters.
        rng: Injectable Random instance for deterministic testing.
        sleep_func: Injectable sleep function for time control in tests.
        on_retry: Optional callback ``(error, attempt, delay_ms)`` invoked
            before each backoff sleep.

    Testing example:
        >>> sleeps = []
        >>> async def fake_sleep(s): sleeps.append(s)
        >>> executor = RetryExecutor(rng=random.Random(42), sleep_func=fake_sleep)
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        *,
        rng: Optional[random.Random] = None,
        sleep_func: Optional[SleepFunc] = None,
        on_retry: Optional[OnRetry] = None,
    ) -> None:
        self.config = config or RetryConfig()
        self._rng = rng or random.Random()
        self._sleep = sleep_func or asyncio.sleep
        self._on_retry = on_retry

    def compute_delay(self, attempt: int) -> float:
        """Backoff delay in milliseconds after the given 1-based attempt."""
        cfg = self.config
        try:
            base = cfg.base_delay_ms * (cfg.backoff_multiplier ** (attempt - 1))
        except OverflowError:
            base = cfg.max_delay_ms
        base = min(base, cfg.max_delay_ms)
        jitter = base * cfg.jitter_factor * self._rng.random()
        return max(0.0, base + jitter)

    async def run(self, func: Callable[[], Awaitable[T]]) -> T:
        """Invoke ``func`` until it succeeds or attempts run out.

        Args:
            func: Zero-argument coroutine factory; called once per attempt.

        Returns:
            Result of the first successful attempt.

        Raises:
            ServiceError: The classified error of the last attempt.
        """
        max_attempts = max(1, self.config.max_attempts)

        for attempt in range(1, max_attempts + 1):
            try:
                return await func()
            except Exception as exc:
                error = classify_error(exc)
                if not error.retryable or attempt == max_attempts:
                    if error is exc:
                        raise
                    raise error from exc

                delay_ms = self.compute_delay(attempt)
                logger.warning(
                    f"Retry attempt {attempt}/{max_attempts} after {delay_ms:.0f}ms: "
                    f"{error.kind.value} {_loggable(error.message)}"
                )
                audit_log(
                    "retry_attempt",
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error_kind=error.kind.value,
                    delay_ms=round(delay_ms, 1),
                )
                if self._on_retry is not None:
                    self._on_retry(error, attempt, delay_ms)
                await self._sleep(delay_ms / 1000.0)

        raise RuntimeError("RetryExecutor.run: unexpected state")
