"""Sensitive data redaction utilities.

Provides pattern-based redaction for API keys, bearer tokens and other
credentials. Safe for use before logging or including data in error messages.
"""

import json
import re
from typing import Any, Final, Iterable, List, Optional, Tuple

SENSITIVE_PATTERNS: Final[List[Tuple[str, str]]] = [
    # Anthropic-style keys
    (r"sk-ant-[a-zA-Z0-9_\-]{8,}", "ANTHROPIC_KEY"),
    # API Keys and Tokens
    (r"(?i)(api[_-]?key|apikey)\s*[:=]\s*['\"]?([a-zA-Z0-9_\-]{20,})['\"]?", "API_KEY"),
    (
        r"(?i)(access[_-]?token|accesstoken)\s*[:=]\s*['\"]?([a-zA-Z0-9_\-\.]{20,})['\"]?",
        "ACCESS_TOKEN",
    ),
    (r"(?i)bearer\s+([a-zA-Z0-9_\-\.]+)", "BEARER_TOKEN"),
    # Passwords
    (r"(?i)(password|passwd|pwd)\s*[:=]\s*['\"]?([^\s'\"]{4,})['\"]?", "PASSWORD"),
    # Private Keys
    (r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", "PRIVATE_KEY"),
    # Generic long secrets in key contexts
    (
        r"(?i)(token|secret|key|credential)\s*[:=]\s*['\"]?([a-zA-Z0-9+/]{40,}={0,2})['\"]?",
        "BASE64_SECRET",
    ),
]
"""Patterns for detecting sensitive data that should be redacted.

Each tuple contains:
- regex pattern: The pattern to match sensitive data
- label: A human-readable label for the type of sensitive data
"""

_SENSITIVE_KEYS = frozenset(
    {
        "password",
        "passwd",
        "pwd",
        "secret",
        "token",
        "api_key",
        "apikey",
        "x_api_key",
        "access_token",
        "refresh_token",
        "private_key",
        "secret_key",
        "authorization",
        "credential",
        "credentials",
    }
)

# Headers that should never appear in logs/errors
_SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "x-api-key",
        "api-key",
        "apikey",
        "cookie",
        "set-cookie",
        "proxy-authorization",
    }
)

# Secret-looking values introduced by a key name
_SECRET_PATTERN = re.compile(
    r"(?i)(?:"
    r"(?:api[_-]?key|token|bearer|authorization|secret|password|credential)"
    r"[\s:=]+"
    r")"
    r"['\"]?([^\s'\"]{8,})['\"]?",
)


def redact_sensitive_data(
    data: Any,
    *,
    patterns: Optional[List[Tuple[str, str]]] = None,
    secrets: Iterable[str] = (),
    redaction_format: str = "[REDACTED:{label}]",
    max_depth: int = 10,
) -> Any:
    """Recursively redact sensitive data from strings, dicts, and lists.

    Args:
        data: The data to redact (string, dict, list, or nested structure)
        patterns: Custom patterns to use (default: SENSITIVE_PATTERNS)
        secrets: Literal secret values (e.g. the configured API key) that are
            replaced wherever they occur, regardless of surrounding text
        redaction_format: Format string for redaction markers (uses {label})
        max_depth: Maximum recursion depth to prevent stack overflow

    Returns:
        A copy of the data with sensitive values redacted

    Example:
        >>> safe = redact_sensitive_data({"api_key": "sk-ant-abc", "model": "m"})
        >>> safe["api_key"]
        '[REDACTED:API_KEY]'
    """
    if max_depth <= 0:
        return "[MAX_DEPTH_EXCEEDED]"

    check_patterns = patterns if patterns is not None else SENSITIVE_PATTERNS
    literal_secrets = tuple(secret for secret in secrets if secret)

    def redact_string(text: str) -> str:
        result = text
        for secret in literal_secrets:
            result = result.replace(secret, redaction_format.format(label="SECRET"))
        for pattern, label in check_patterns:
            replacement = redaction_format.format(label=label)
            result = re.sub(pattern, replacement, result)
        return result

    if isinstance(data, str):
        return redact_string(data)

    elif isinstance(data, dict):
        result = {}
        for key, value in data.items():
            key_lower = str(key).lower().replace("-", "_")
            if key_lower in _SENSITIVE_KEYS:
                result[key] = f"[REDACTED:{key_lower.upper()}]"
            else:
                result[key] = redact_sensitive_data(
                    value,
                    patterns=check_patterns,
                    secrets=literal_secrets,
                    redaction_format=redaction_format,
                    max_depth=max_depth - 1,
                )
        return result

    elif isinstance(data, (list, tuple)):
        result_list = [
            redact_sensitive_data(
                item,
                patterns=check_patterns,
                secrets=literal_secrets,
                redaction_format=redaction_format,
                max_depth=max_depth - 1,
            )
            for item in data
        ]
        return type(data)(result_list) if isinstance(data, tuple) else result_list

    else:
        return data


def redact_for_logging(data: Any, *, secrets: Iterable[str] = ()) -> str:
    """Convenience function to redact and serialize data for logging.

    Example:
        >>> logger.info(f"Request: {redact_for_logging(payload)}")
    """
    redacted = redact_sensitive_data(data, secrets=secrets)
    try:
        return json.dumps(redacted, default=str)
    except (TypeError, ValueError):
        return str(redacted)


def redact_secrets(text: str) -> str:
    """Remove API keys and sensitive tokens from a text string.

    Scans for patterns like ``api_key=...``, ``Bearer ...``, ``token: ...``
    and replaces the secret portion with ``****``.
    """
    if not text:
        return text

    def _replace(match: re.Match[str]) -> str:
        full = match.group(0)
        return full.replace(match.group(1), "****")

    return _SECRET_PATTERN.sub(_replace, text)


def redact_headers(headers: Any) -> dict[str, str]:
    """Return a plain-dict copy of *headers* with sensitive values redacted."""
    result: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in _SENSITIVE_HEADERS:
            result[key] = "****"
        else:
            result[key] = value
    return result
