"""HTTP transport for the remote Messages API.

The client talks to the API through the ``MessagesTransport`` protocol so tests
and alternative backends can replace the HTTP layer entirely.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from prompt_enhancer.core.errors import ServiceError
from prompt_enhancer.core.observability import redact_headers, redact_secrets

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_API_VERSION = "2023-06-01"
MESSAGES_ENDPOINT = "/v1/messages"


class MessagesTransport(Protocol):
    """Anything that can send one Messages API request."""

    async def create_message(
        self, request: Dict[str, Any], *, timeout: float
    ) -> Dict[str, Any]: ...


class ApiStatusError(Exception):
    """Non-2xx response from the Messages API.

    Carries ``status_code`` and ``headers`` so ``classify_error`` can map it to
    the right ServiceError kind (including the retry-after hint).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        headers: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(f"API error {status_code}: {message}")
        self.message = message
        self.status_code = status_code
        self.headers: Dict[str, str] = dict(headers or {})


def _extract_error_message(response: httpx.Response) -> str:
    """Pull a redacted message out of an error response body."""
    try:
        data = response.json()
    except ValueError:
        text = response.text[:200] if response.text else "Unknown error"
        return redact_secrets(text)

    message: Any = None
    if isinstance(data, dict):
        error_field = data.get("error")
        if isinstance(error_field, dict):
            message = error_field.get("message", str(error_field))
        elif isinstance(error_field, str):
            message = error_field
        else:
            message = data.get("message")
    if not message:
        message = response.text[:200] or "Unknown error"
    return redact_secrets(str(message))


class HttpMessagesTransport:
    """httpx-based transport posting to ``{base_url}/v1/messages``.

    Args:
        api_key: Credential sent as the ``x-api-key`` header.
        base_url: API base URL.
        api_version: Value of the ``anthropic-version`` header.
        client: Optional pre-built ``httpx.AsyncClient``. Injected clients are
            never closed by this transport.

    Example:
        transport = HttpMessagesTransport(api_key="sk-ant-...")
        response = await transport.create_message(payload, timeout=30.0)
        await transport.aclose()
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._api_version = api_version
        self._client = client
        self._owns_client = client is None

    @property
    def url(self) -> str:
        return f"{self._base_url}{MESSAGES_ENDPOINT}"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self._api_version,
            "content-type": "application/json",
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def create_message(
        self, request: Dict[str, Any], *, timeout: float
    ) -> Dict[str, Any]:
        """POST one Messages API request and return the decoded JSON body.

        Raises:
            ApiStatusError: For any non-2xx response.
            ServiceError: API_ERROR when a 2xx body is not a JSON object.
            httpx.TransportError: Connection-level failures (classified later).
        """
        client = self._get_client()
        response = await client.post(
            self.url, json=request, headers=self._headers(), timeout=timeout
        )

        if response.status_code >= 400:
            message = _extract_error_message(response)
            logger.debug(
                "Messages API returned %d: %s (headers=%s)",
                response.status_code,
                message,
                redact_headers(response.headers),
            )
            raise ApiStatusError(
                message,
                status_code=response.status_code,
                headers=response.headers,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceError.api_error(
                "Invalid JSON in Messages API response",
                status_code=502,
                cause=exc,
            ) from exc
        if not isinstance(data, dict):
            raise ServiceError.api_error(
                "Unexpected Messages API response shape", status_code=502
            )
        return data

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
