"""Classification of arbitrary failures into ServiceError.

Typed transport signals (asyncio / httpx exceptions) are checked first, then
HTTP status codes, and message heuristics are used only for opaque failures.
"""

import asyncio
import logging
from typing import Any, Mapping, Optional

import httpx

from prompt_enhancer.core.errors.service import ServiceError

logger = logging.getLogger(__name__)

# Message fragments used when nothing better is available (matched lowercase)
_TIMEOUT_MARKERS = ("timeout", "etimedout")
_NETWORK_MARKERS = ("network", "enotfound", "econnrefused", "econnreset")
_AUTH_MARKERS = ("unauthorized", "forbidden", "api key")

_DEFAULT_API_MESSAGE = "API error occurred"
_DEFAULT_UNKNOWN_MESSAGE = "Unknown error occurred"


def parse_retry_after(value: Any) -> Optional[float]:
    """Parse a ``Retry-After`` header value into seconds.

    Numeric values only; RFC 7231 dates return ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


def _as_status(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _nested_error(raw: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    nested = raw.get("error")
    return nested if isinstance(nested, Mapping) else None


def _extract_status_code(raw: Any) -> Optional[int]:
    candidates = []
    if isinstance(raw, Mapping):
        candidates += [raw.get("status_code"), raw.get("status")]
        nested = _nested_error(raw)
        if nested is not None:
            candidates += [nested.get("status_code"), nested.get("status")]
    else:
        candidates += [getattr(raw, "status_code", None), getattr(raw, "status", None)]
        if isinstance(raw, httpx.HTTPStatusError):
            candidates.append(raw.response.status_code)
        else:
            response = getattr(raw, "response", None)
            if response is not None:
                candidates.append(getattr(response, "status_code", None))

    for candidate in candidates:
        status = _as_status(candidate)
        if status is not None:
            return status
    return None


def _extract_headers(raw: Any) -> Any:
    if isinstance(raw, Mapping):
        headers = raw.get("headers")
        if headers is None:
            nested = _nested_error(raw)
            headers = nested.get("headers") if nested is not None else None
        return headers
    headers = getattr(raw, "headers", None)
    if headers is None:
        response = getattr(raw, "response", None)
        headers = getattr(response, "headers", None)
    return headers


def _header_value(headers: Any, name: str) -> Any:
    """Case-insensitive header lookup over any mapping-like object."""
    if headers is None or not hasattr(headers, "items"):
        return None
    for key, value in headers.items():
        if str(key).lower() == name:
            return value
    return None


def _extract_message(raw: Any) -> Optional[str]:
    if isinstance(raw, Mapping):
        message = raw.get("message")
        if not isinstance(message, str) or not message:
            nested = _nested_error(raw)
            message = nested.get("message") if nested is not None else None
        return message if isinstance(message, str) and message else None
    message = getattr(raw, "message", None)
    if isinstance(message, str) and message:
        return message
    if isinstance(raw, BaseException):
        return str(raw) or None
    return None


def _from_status(status: int, message: str, headers: Any, cause: Any) -> ServiceError:
    if status in (401, 403):
        return ServiceError.authentication(message, status_code=status, cause=cause)
    if status == 429:
        retry_after = parse_retry_after(_header_value(headers, "retry-after"))
        return ServiceError.rate_limit(message, retry_after=retry_after, cause=cause)
    if status == 400:
        return ServiceError.validation(message, cause=cause)
    if status == 404:
        return ServiceError.configuration(
            f"API endpoint not found: {message}", status_code=status, cause=cause
        )
    return ServiceError.api_error(message, status_code=status, cause=cause)


def _from_message(message: str, cause: Any) -> ServiceError:
    lowered = message.lower()
    if any(marker in lowered for marker in _TIMEOUT_MARKERS):
        return ServiceError.timeout(message, cause=cause)
    if any(marker in lowered for marker in _NETWORK_MARKERS):
        return ServiceError.network(message, cause=cause)
    if any(marker in lowered for marker in _AUTH_MARKERS):
        return ServiceError.authentication(message, cause=cause)
    return ServiceError.unknown(message, cause=cause)


def _classify(raw: Any) -> ServiceError:
    if isinstance(raw, ServiceError):
        return raw

    # Typed transport signals; httpx timeouts subclass TransportError
    if isinstance(raw, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
        return ServiceError.timeout(str(raw) or "Request timed out", cause=raw)
    # Malformed base_url is a local setup problem
    if isinstance(raw, (httpx.UnsupportedProtocol, httpx.InvalidURL)):
        return ServiceError.configuration(
            f"Invalid API base URL: {raw}",
            cause=raw,
        )
    if isinstance(raw, (httpx.TransportError, ConnectionError)):
        return ServiceError.network(
            str(raw) or f"Network error: {type(raw).__name__}", cause=raw
        )

    status = _extract_status_code(raw)
    if status is not None:
        message = _extract_message(raw) or _DEFAULT_API_MESSAGE
        return _from_status(status, message, _extract_headers(raw), raw)

    if isinstance(raw, str):
        return ServiceError.unknown(raw or _DEFAULT_UNKNOWN_MESSAGE)

    message = _extract_message(raw)
    if message:
        return _from_message(message, raw)

    return ServiceError.unknown(_DEFAULT_UNKNOWN_MESSAGE, cause=raw)


def classify_error(raw: Any) -> ServiceError:
    """Classify any failure into a ServiceError.

    Never raises: inputs that break inspection are wrapped as UNKNOWN.

    Args:
        raw: Exception, error payload mapping, string, or any other value.

    Returns:
        The same ServiceError if ``raw`` already is one, otherwise a new one.

    Example:
        >>> classify_error({"status": 429, "message": "slow down"}).kind
        <ErrorKind.RATE_LIMIT: 'RATE_LIMIT'>
    """
    try:
        return _classify(raw)
    except Exception as exc:
        logger.debug("Error classification failed for %r: %s", type(raw).__name__, exc)
        return ServiceError.unknown(_DEFAULT_UNKNOWN_MESSAGE, cause=raw)
