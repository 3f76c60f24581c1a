"""EnhancementClient: resilient prompt enhancement over the Messages API.

Call path for ``enhance``:

    validate input
      -> CircuitBreaker.execute
        -> RetryExecutor.run
          -> asyncio.wait_for(transport.create_message, timeout)
      -> shape response, update stats

Statistics are updated exactly once per ``enhance`` call, whatever the number
of attempts made underneath.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from prompt_enhancer.config import ServiceConfig, load_config
from prompt_enhancer.core.context import request_context
from prompt_enhancer.core.errors import ServiceError, classify_error
from prompt_enhancer.core.models import (
    EnhancementMetadata,
    EnhancementRequest,
    EnhancementResult,
    HealthCheckResult,
    TokenUsage,
)
from prompt_enhancer.core.observability import (
    audit_log,
    get_audit_logger,
    redact_sensitive_data,
)
from prompt_enhancer.core.prompts import build_message_request
from prompt_enhancer.core.resilience import CircuitBreaker, RetryExecutor
from prompt_enhancer.core.stats import ServiceStats, StatsTracker
from prompt_enhancer.core.transport import HttpMessagesTransport, MessagesTransport

logger = logging.getLogger(__name__)

MAX_ORIGINAL_TEXT_LENGTH = 100_000
HEALTH_CHECK_MAX_TOKENS = 1
HEALTH_CHECK_PROMPT = "test"

# Confidence by stop reason
STOP_REASON_TRUNCATED = "max_tokens"
STOP_REASON_COMPLETE = "end_turn"
CONFIDENCE_TRUNCATED = 0.7
CONFIDENCE_COMPLETE = 0.9
CONFIDENCE_DEFAULT = 0.8

EnhanceInput = Union[EnhancementRequest, Mapping[str, Any], str]


def calculate_confidence(stop_reason: Optional[str]) -> float:
    """Map the remote stop reason to a confidence score."""
    if stop_reason == STOP_REASON_TRUNCATED:
        return CONFIDENCE_TRUNCATED
    if stop_reason == STOP_REASON_COMPLETE:
        return CONFIDENCE_COMPLETE
    return CONFIDENCE_DEFAULT


def _extract_usage(response: Mapping[str, Any]) -> TokenUsage:
    usage = response.get("usage")
    if not isinstance(usage, Mapping):
        return TokenUsage()
    input_tokens = int(usage.get("input_tokens") or 0)
    output_tokens = int(usage.get("output_tokens") or 0)
    return TokenUsage(
        input=input_tokens,
        output=output_tokens,
        total=input_tokens + output_tokens,
    )


def _first_text(response: Mapping[str, Any]) -> Optional[str]:
    block = response["content"][0]
    if isinstance(block, Mapping):
        text = block.get("text")
    else:
        text = getattr(block, "text", None)
    return text if isinstance(text, str) and text else None


def _require_content(response: Any, message: str) -> Mapping[str, Any]:
    """Reject responses without a non-empty ``content`` list."""
    if response is None:
        raise ServiceError.api_error("No response received from Messages API")
    if not isinstance(response, Mapping):
        raise ServiceError.api_error(message)
    content = response.get("content")
    if not isinstance(content, list) or not content:
        raise ServiceError.api_error(message)
    return response


class EnhancementClient:
    """Resilient client that turns draft prompts into enhanced prompts.

    Collaborators are injected; defaults are built from ``config``. Each
    client owns its breaker and statistics.

    Args:
        config: Service configuration; ``load_config()`` when omitted.
        transport: Messages API transport; HTTP by default.
        circuit_breaker: Breaker guarding the remote call.
        stats: Statistics tracker.
        retry_executor: Retry loop used inside the breaker.

    Raises:
        ServiceError: CONFIGURATION when the configuration is invalid
            (e.g. no API key).

    Example:
        async with EnhancementClient() as client:
            result = await client.enhance({"original_text": "Write a blog post"})
            print(result.enhanced_text)
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        transport: Optional[MessagesTransport] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        stats: Optional[StatsTracker] = None,
        retry_executor: Optional[RetryExecutor] = None,
    ) -> None:
        self._config = config if config is not None else load_config()
        self._config.validate()

        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            self._config.circuit_breaker_config()
        )
        self._retry = retry_executor or RetryExecutor(self._config.retry_config())
        self._stats = stats or StatsTracker()
        self._transport: MessagesTransport = transport or HttpMessagesTransport(
            self._config.api_key,
            base_url=self._config.base_url,
            api_version=self._config.api_version,
        )

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    async def __aenter__(self) -> "EnhancementClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release transport resources."""
        close = getattr(self._transport, "aclose", None)
        if close is not None:
            await close()

    # ------------------------------------------------------------------
    # Enhancement
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_request(request: EnhanceInput) -> EnhancementRequest:
        if isinstance(request, EnhancementRequest):
            return request
        if isinstance(request, str):
            return EnhancementRequest(original_text=request)
        if isinstance(request, Mapping):
            try:
                return EnhancementRequest.model_validate(dict(request))
            except ValidationError as e:
                details = [
                    f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ]
                raise ServiceError.validation(
                    f"Invalid enhancement request: {details[0]}",
                    validation_errors=details,
                    cause=e,
                ) from e
        raise ServiceError.validation(
            f"Unsupported enhancement request type: {type(request).__name__}",
            validation_errors=["request: must be an EnhancementRequest or mapping"],
        )

    @staticmethod
    def _validate_request(request: EnhancementRequest) -> None:
        text = request.original_text
        if not isinstance(text, str) or not text.strip():
            problem = "original_text: must be a non-empty string"
            raise ServiceError.validation(
                "Original prompt cannot be empty", validation_errors=[problem]
            )
        if len(text) > MAX_ORIGINAL_TEXT_LENGTH:
            problem = f"original_text: must be at most {MAX_ORIGINAL_TEXT_LENGTH:,} characters"
            raise ServiceError.validation(
                "Original prompt is too long", validation_errors=[problem]
            )

    async def _call_with_timeout(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        timeout_ms = self._config.timeout_ms
        timeout_s = timeout_ms / 1000.0
        try:
            return await asyncio.wait_for(
                self._transport.create_message(payload, timeout=timeout_s),
                timeout=timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise ServiceError.timeout(
                f"Request timed out after {timeout_ms}ms",
                timeout_ms=timeout_ms,
                cause=e,
            ) from e

    async def _perform_enhancement(self, request: EnhancementRequest) -> EnhancementResult:
        """One attempt: call the API and shape the response."""
        started = time.monotonic()
        payload = build_message_request(
            request,
            model=self._config.model,
            max_tokens=self._config.max_tokens,
        )
        response = _require_content(
            await self._call_with_timeout(payload),
            "Invalid response format from Messages API",
        )

        enhanced_text = _first_text(response) or request.original_text
        usage = _extract_usage(response)
        processing_time_ms = (time.monotonic() - started) * 1000

        return EnhancementResult(
            enhanced_text=enhanced_text,
            confidence=calculate_confidence(response.get("stop_reason")),
            metadata=EnhancementMetadata(
                original_length=len(request.original_text),
                enhanced_length=len(enhanced_text),
                processing_time_ms=processing_time_ms,
                model_used=response.get("model") or self._config.model,
                token_usage=usage,
            ),
            suggestions=[],
        )

    def _log_failure(self, error: ServiceError, request: EnhanceInput, elapsed_ms: float) -> None:
        record = error.to_log_record()
        if isinstance(request, EnhancementRequest):
            record["original_text_length"] = len(request.original_text)
        record["processing_time_ms"] = round(elapsed_ms, 1)
        safe_record = redact_sensitive_data(record, secrets=(self._config.api_key,))
        logger.error(
            "Prompt enhancement failed: %s",
            safe_record["error_message"],
            extra={"enhancement_error": safe_record},
        )
        audit_log(
            "enhancement_failure",
            error_kind=error.kind.value,
            retryable=error.retryable,
            status_code=error.status_code,
            processing_time_ms=round(elapsed_ms, 1),
        )

    async def enhance(self, request: EnhanceInput) -> EnhancementResult:
        """Enhance a draft prompt.

        Args:
            request: An EnhancementRequest, or a mapping with the same fields
                (snake_case or camelCase keys).

        Returns:
            The enhanced prompt with confidence and metadata.

        Raises:
            ServiceError: VALIDATION for bad input (no remote call is made),
                CIRCUIT_BREAKER while the breaker is open, otherwise the
                classified error of the final attempt.
        """
        started = time.monotonic()
        with request_context(prefix="enhance"):
            try:
                params = self._coerce_request(request)
                self._validate_request(params)
                result = await self._circuit_breaker.execute(
                    lambda: self._retry.run(lambda: self._perform_enhancement(params))
                )
            except Exception as e:
                error = classify_error(e)
                elapsed_ms = (time.monotonic() - started) * 1000
                self._stats.record_failure(error.kind)
                self._log_failure(error, request, elapsed_ms)
                if error is e:
                    raise
                raise error from e

            latency_ms = (time.monotonic() - started) * 1000
            self._stats.record_success(latency_ms, result.metadata.token_usage.total)
            logger.info(
                "Prompt enhanced: %d -> %d chars, %d tokens, %.0fms",
                result.metadata.original_length,
                result.metadata.enhanced_length,
                result.metadata.token_usage.total,
                latency_ms,
            )
            audit_log(
                "enhancement_success",
                original_length=result.metadata.original_length,
                enhanced_length=result.metadata.enhanced_length,
                tokens=result.metadata.token_usage.total,
                confidence=result.confidence,
                processing_time_ms=round(latency_ms, 1),
            )
            return result

    async def enhance_text(
        self, text: str, context: Optional[Mapping[str, Any]] = None
    ) -> str:
        """Enhance ``text`` and return only the enhanced prompt string."""
        request = EnhancementRequest(
            original_text=text,
            context=dict(context) if context is not None else None,
        )
        result = await self.enhance(request)
        return result.enhanced_text

    # ------------------------------------------------------------------
    # Health and introspection
    # ------------------------------------------------------------------

    def _health_result(
        self, started: float, error: Optional[ServiceError]
    ) -> HealthCheckResult:
        response_time_ms = (time.monotonic() - started) * 1000
        result = HealthCheckResult(
            healthy=error is None,
            response_time_ms=response_time_ms,
            circuit_breaker=self._circuit_breaker.get_stats().to_dict(),
            last_error=(
                redact_sensitive_data(error.to_details(), secrets=(self._config.api_key,))
                if error is not None
                else None
            ),
            timestamp=datetime.now(timezone.utc),
        )
        get_audit_logger().health_check(
            result.healthy,
            round(response_time_ms, 1),
            error_kind=error.kind.value if error is not None else None,
        )
        return result

    async def health_check(self) -> HealthCheckResult:
        """Probe the Messages API once.

        Makes a single minimal request (no retries) that does not affect
        statistics or breaker state. Skips the probe and reports unhealthy when
        the configuration is invalid or the breaker is open and not yet due
        for a recovery attempt.
        """
        started = time.monotonic()
        with request_context(prefix="health"):
            config_errors = self._config.validation_errors()
            if config_errors:
                return self._health_result(
                    started, ServiceError.configuration(config_errors[0])
                )

            if not self._circuit_breaker.is_available():
                stats = self._circuit_breaker.get_stats()
                next_attempt = stats.next_attempt_time or datetime.now(timezone.utc)
                return self._health_result(
                    started,
                    ServiceError.circuit_open(
                        "Circuit breaker is open - health probe skipped",
                        next_attempt_time=next_attempt,
                    ),
                )

            payload = {
                "model": self._config.model,
                "max_tokens": HEALTH_CHECK_MAX_TOKENS,
                "messages": [{"role": "user", "content": HEALTH_CHECK_PROMPT}],
            }
            try:
                _require_content(
                    await self._call_with_timeout(payload),
                    "Invalid health check response format",
                )
            except Exception as e:
                error = classify_error(e)
                logger.warning("Health check failed: %s %s", error.kind.value, error.message)
                return self._health_result(started, error)

            return self._health_result(started, None)

    def get_config(self) -> Dict[str, Any]:
        """Configuration with the API key redacted."""
        return self._config.redacted()

    def get_stats(self) -> ServiceStats:
        return self._stats.snapshot()

    def reset_stats(self) -> None:
        self._stats.reset()
        logger.info("Service statistics reset")
