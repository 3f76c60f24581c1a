"""Shared test fixtures.

Provides a deterministic clock, a recording sleep function, a scripted
Messages API transport and response builders used across the suite.
"""

import random
from typing import Any, Dict, List, Optional

import pytest

from prompt_enhancer.config import ServiceConfig
from prompt_enhancer.core.resilience import RetryExecutor

TEST_API_KEY = "sk-ant-REDACTED"

# Environment variables read by load_config; cleared for every test
_CONFIG_ENV_VARS = [
    "ANTHROPIC_API_KEY",
    "PROMPT_ENHANCER_CONFIG_FILE",
    "PROMPT_ENHANCER_MAX_TOKENS",
    "PROMPT_ENHANCER_MODEL",
    "PROMPT_ENHANCER_TIMEOUT_MS",
    "PROMPT_ENHANCER_MAX_RETRIES",
    "PROMPT_ENHANCER_RETRY_DELAY_MS",
    "PROMPT_ENHANCER_MAX_RETRY_DELAY_MS",
    "PROMPT_ENHANCER_CIRCUIT_BREAKER_THRESHOLD",
    "PROMPT_ENHANCER_CIRCUIT_BREAKER_RESET_TIMEOUT_MS",
    "PROMPT_ENHANCER_BASE_URL",
    "PROMPT_ENHANCER_API_VERSION",
    "PROMPT_ENHANCER_LOG_LEVEL",
    "PROMPT_ENHANCER_STRUCTURED_LOGGING",
]


@pytest.fixture(autouse=True)
def isolated_config_env(monkeypatch, tmp_path):
    """Keep user config files and environment out of every test."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.chdir(tmp_path)


class FakeClock:
    """Manually advanced wall clock (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    """Async sleep replacement that records requested durations."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeTransport:
    """Scripted MessagesTransport.

    Each entry in ``outcomes`` is either a response dict (returned) or an
    exception (raised). The last outcome repeats once the script runs out.
    """

    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes)
        self.requests: List[Dict[str, Any]] = []
        self.timeouts: List[float] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def create_message(self, request: Dict[str, Any], *, timeout: float) -> Dict[str, Any]:
        self.requests.append(request)
        self.timeouts.append(timeout)
        index = min(len(self.requests) - 1, len(self.outcomes) - 1)
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


def make_message_response(
    text: Optional[str] = "Enhanced prompt text",
    *,
    stop_reason: str = "end_turn",
    input_tokens: int = 12,
    output_tokens: int = 30,
    model: str = "claude-3-5-sonnet-20241022",
) -> Dict[str, Any]:
    """Build a Messages API response body."""
    block: Dict[str, Any] = {"type": "text"}
    if text is not None:
        block["text"] = text
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "content": [block],
        "model": model,
        "stop_reason": stop_reason,
        "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
    }


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def service_config():
    """Valid config with fast, predictable retry settings."""
    return ServiceConfig(
        api_key=TEST_API_KEY,
        timeout_ms=1_000,
        max_retries=3,
        retry_delay_ms=100,
        max_retry_delay_ms=1_000,
    )


@pytest.fixture
def retry_executor(service_config, sleep_recorder):
    """RetryExecutor with seeded jitter and no real sleeping."""
    return RetryExecutor(
        service_config.retry_config(),
        rng=random.Random(42),
        sleep_func=sleep_recorder,
    )


@pytest.fixture
def make_transport():
    """Factory for scripted transports: ``make_transport(resp, exc, ...)``."""
    return FakeTransport


@pytest.fixture
def make_response():
    """Factory for Messages API response bodies."""
    return make_message_response
