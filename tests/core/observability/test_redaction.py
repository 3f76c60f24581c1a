"""Tests for secret redaction helpers."""

import json

from prompt_enhancer.core.observability import (
    redact_for_logging,
    redact_headers,
    redact_secrets,
    redact_sensitive_data,
)

KEY = "sk-ant-REDACTED"


class TestRedactSensitiveData:
    """Tests for redact_sensitive_data."""

    def test_anthropic_key_in_text(self):
        """Anthropic-style keys are masked inside free text."""
        result = redact_sensitive_data(f"request failed for {KEY}")
        assert KEY not in result
        assert "[REDACTED:ANTHROPIC_KEY]" in result

    def test_sensitive_keys_in_mapping(self):
        """Values under sensitive key names are replaced entirely."""
        result = redact_sensitive_data({"api_key": "anything", "model": "claude"})
        assert result == {"api_key": "[REDACTED:API_KEY]", "model": "claude"}

    def test_literal_secret_anywhere(self):
        """Literal secrets are replaced even without a recognizable pattern."""
        result = redact_sensitive_data(
            {"nested": ["prefix plainsecretvalue suffix"]},
            secrets=("plainsecretvalue",),
        )
        assert result == {"nested": ["prefix [REDACTED:SECRET] suffix"]}

    def test_tuple_type_preserved(self):
        """Tuples stay tuples."""
        assert redact_sensitive_data(("a", "b")) == ("a", "b")

    def test_non_string_values_untouched(self):
        """Numbers and None pass through."""
        assert redact_sensitive_data({"count": 3, "value": None}) == {"count": 3, "value": None}

    def test_max_depth(self):
        """Deep nesting is cut off."""
        data = {"a": {"b": {"c": "d"}}}
        assert redact_sensitive_data(data, max_depth=2) == {"a": {"b": "[MAX_DEPTH_EXCEEDED]"}}

    def test_original_not_mutated(self):
        """The input is copied, not modified."""
        data = {"token": "value"}
        redact_sensitive_data(data)
        assert data == {"token": "value"}


class TestRedactHelpers:
    """Tests for the convenience helpers."""

    def test_redact_for_logging_serializes(self):
        """Output is JSON without the secret."""
        output = redact_for_logging({"message": f"key {KEY}"}, secrets=(KEY,))
        assert KEY not in output
        assert json.loads(output)["message"] == "key [REDACTED:SECRET]"

    def test_redact_secrets_masks_value(self):
        """Values after key names are replaced with asterisks."""
        assert redact_secrets("api_key=abcdefgh12345") == "api_key=****"
        assert redact_secrets("Authorization: Bearer abcdefgh12345") == (
            "Authorization: Bearer ****"
        )

    def test_redact_secrets_passthrough(self):
        """Plain text and empty strings are unchanged."""
        assert redact_secrets("") == ""
        assert redact_secrets("nothing to hide") == "nothing to hide"

    def test_redact_headers(self):
        """Credential headers are masked, others kept."""
        headers = {"x-api-key": KEY, "Content-Type": "application/json"}
        assert redact_headers(headers) == {
            "x-api-key": "****",
            "Content-Type": "application/json",
        }
