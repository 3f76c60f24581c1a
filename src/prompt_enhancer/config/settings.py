"""ServiceConfig: immutable client configuration.

Field defaults mirror the Messages API client defaults; see ``loader.py`` for
how TOML files, environment variables and overrides are layered on top.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple

from prompt_enhancer.core.errors import ServiceError
from prompt_enhancer.core.resilience.models import CircuitBreakerConfig, RetryConfig
from prompt_enhancer.core.transport import DEFAULT_API_VERSION, DEFAULT_BASE_URL

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
API_KEY_ENV_VAR = "ANTHROPIC_API_KEY"

REDACTED_PLACEHOLDER = "***REDACTED***"
NOT_SET_PLACEHOLDER = "NOT_SET"

# Derived resilience settings that are not user-tunable
MONITORING_WINDOW_MS = 300_000
MINIMUM_THROUGHPUT = 10
BACKOFF_MULTIPLIER = 2.0
JITTER_FACTOR = 0.1

_LOG_HANDLER_MARKER = "_prompt_enhancer_handler"


@dataclass(frozen=True)
class ServiceConfig:
    """Client configuration.

    Attributes:
        api_key: Messages API credential.
        max_tokens: Token budget for enhancement responses.
        model: Model identifier sent with every request.
        timeout_ms: Per-attempt request timeout.
        max_retries: Total attempts per enhance call (including the first).
        retry_delay_ms: Base backoff delay.
        max_retry_delay_ms: Backoff delay cap (before jitter).
        circuit_breaker_threshold: Window failures that open the breaker.
        circuit_breaker_reset_timeout_ms: How long the breaker stays open.
        base_url: Messages API base URL.
        api_version: ``anthropic-version`` header value.
        log_level: Level for the ``prompt_enhancer`` logger.
        structured_logging: JSON-style log lines when true.
        startup_warnings: Problems found while loading (ignored values, ...).
    """

    api_key: str = ""
    max_tokens: int = 4000
    model: str = DEFAULT_MODEL
    timeout_ms: int = 30_000
    max_retries: int = 3
    retry_delay_ms: int = 1_000
    max_retry_delay_ms: int = 30_000
    circuit_breaker_threshold: int = 5
    circuit_breaker_reset_timeout_ms: int = 60_000
    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    log_level: str = "INFO"
    structured_logging: bool = True
    startup_warnings: Tuple[str, ...] = field(default=(), compare=False, repr=False)

    def __repr__(self) -> str:
        fields = ", ".join(f"{key}={value!r}" for key, value in self.redacted().items())
        return f"ServiceConfig({fields})"

    def validation_errors(self) -> List[str]:
        """Return every invariant violation, in a stable order."""
        errors: List[str] = []
        if not self.api_key or not self.api_key.strip():
            errors.append(
                f"API key is required. Set the {API_KEY_ENV_VAR} environment variable."
            )
        if self.max_tokens <= 0:
            errors.append("max_tokens must be greater than 0")
        if self.timeout_ms <= 0:
            errors.append("timeout_ms must be greater than 0")
        if self.max_retries < 1:
            errors.append("max_retries must be at least 1")
        if self.retry_delay_ms < 0:
            errors.append("retry_delay_ms must not be negative")
        if self.max_retry_delay_ms < 0:
            errors.append("max_retry_delay_ms must not be negative")
        if self.max_retry_delay_ms < self.retry_delay_ms:
            errors.append("max_retry_delay_ms must be at least retry_delay_ms")
        if self.circuit_breaker_threshold < 1:
            errors.append("circuit_breaker_threshold must be at least 1")
        if self.circuit_breaker_reset_timeout_ms <= 0:
            errors.append("circuit_breaker_reset_timeout_ms must be greater than 0")
        if not self.base_url.startswith(("http://", "https://")):
            errors.append("base_url must start with http:// or https://")
        return errors

    def validate(self) -> None:
        """Raise a CONFIGURATION ServiceError if any invariant is violated."""
        errors = self.validation_errors()
        if errors:
            raise ServiceError.configuration(
                errors[0], context={"validation_errors": errors}
            )

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_retries,
            base_delay_ms=self.retry_delay_ms,
            max_delay_ms=self.max_retry_delay_ms,
            backoff_multiplier=BACKOFF_MULTIPLIER,
            jitter_factor=JITTER_FACTOR,
        )

    def circuit_breaker_config(self) -> CircuitBreakerConfig:
        return CircuitBreakerConfig(
            failure_threshold=self.circuit_breaker_threshold,
            reset_timeout_ms=self.circuit_breaker_reset_timeout_ms,
            monitoring_window_ms=MONITORING_WINDOW_MS,
            minimum_throughput=MINIMUM_THROUGHPUT,
        )

    def redacted(self) -> Dict[str, Any]:
        """All settings as a plain dict with the credential masked."""
        data = asdict(self)
        data.pop("startup_warnings")
        if not self.api_key:
            placeholder = NOT_SET_PLACEHOLDER
        else:
            placeholder = REDACTED_PLACEHOLDER
            # A key that literally equals a placeholder must still not leak
            if self.api_key in (REDACTED_PLACEHOLDER, NOT_SET_PLACEHOLDER):
                placeholder = "***"
        data["api_key"] = placeholder
        return data

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        setattr(handler, _LOG_HANDLER_MARKER, True)

        root_logger = logging.getLogger("prompt_enhancer")
        root_logger.setLevel(level)
        for existing in list(root_logger.handlers):
            if getattr(existing, _LOG_HANDLER_MARKER, False):
                root_logger.removeHandler(existing)
        root_logger.addHandler(handler)
