"""Shared fixtures for CLI command tests."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

CLI_API_KEY = "sk-ant-REDACTED"


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def api_key_env(monkeypatch):
    """Provide a valid API key through the environment."""
    monkeypatch.setenv("ANTHROPIC_API_KEY", CLI_API_KEY)
    return CLI_API_KEY


@pytest.fixture
def patched_transport(make_transport):
    """Replace the HTTP transport used by EnhancementClient.

    Yields a function that installs scripted outcomes and returns the
    scripted transport so tests can inspect requests.
    """
    scripted = {}

    def factory(*args, **kwargs):
        return scripted["transport"]

    def install(*outcomes):
        scripted["transport"] = make_transport(*outcomes)
        return scripted["transport"]

    with patch("prompt_enhancer.core.client.HttpMessagesTransport", side_effect=factory):
        yield install
