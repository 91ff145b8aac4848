"""Client for an OpenAI-compatible chat-completions endpoint (OpenRouter).

Sends JSON request bodies ``{model, messages, temperature, max_tokens,
response_format?, plugins?}`` over HTTPS with bearer authentication and
returns the answer text found at ``choices[0].message.content``.

There are no retries and no timeout beyond the transport's own: a failed
call is reported once and must be repeated by the caller.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ModelError(Exception):
    """Base class for all model client errors."""


class ModelNotConfiguredError(ModelError):
    """No API key available for the model endpoint."""


class ModelAPIError(ModelError):
    """The endpoint answered with a non-success status or was unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ModelResponseError(ModelError):
    """A success response that lacks the expected answer field."""

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class ChatCompletionsClient:
    """Asynchronous chat-completions client.

    Usage:
        async with ChatCompletionsClient(api_key="sk-or-...") as client:
            text = await client.complete(
                model="x-ai/grok-2-vision-1212",
                messages=[...],
                title="Tax Document Classifier",
            )

    The API key may be None; the error is raised per call so that a
    process without credentials still starts.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://openrouter.ai/api/v1",
        referer: str = "http://localhost:3000",
        timeout_seconds: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._referer = referer
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            transport=transport,
        )
        logger.info(
            "ChatCompletionsClient initialised: base_url=%s, configured=%s",
            base_url,
            self.is_configured,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        await self._http.aclose()

    async def __aenter__(self) -> "ChatCompletionsClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def require_configured(self) -> None:
        """Raise ModelNotConfiguredError if no API key is set."""
        if not self._api_key:
            raise ModelNotConfiguredError(
                "OpenRouter API key not configured. "
                "Set OPENROUTER_API_KEY in .env or the environment."
            )

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        temperature: float,
        max_tokens: int,
        title: str,
        response_format: dict[str, Any] | None = None,
        plugins: list[dict[str, Any]] | None = None,
    ) -> str:
        """Send one chat-completions request and return the answer text.

        Args:
            model: Model identifier.
            messages: system/user/assistant turns; user turns may carry a
                list of ``{type: text|file|image_url}`` parts.
            temperature: Sampling temperature.
            max_tokens: Output token limit.
            title: Value of the X-Title attribution header.
            response_format: Optional response format, e.g. {"type": "text"}.
            plugins: Optional endpoint plugins (PDF parsing).

        Returns:
            Content of ``choices[0].message.content``.

        Raises:
            ModelNotConfiguredError: API key missing.
            ModelAPIError: non-2xx status or transport failure.
            ModelResponseError: success body without the answer field.
        """
        self.require_configured()

        body: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format is not None:
            body["response_format"] = response_format
        if plugins:
            body["plugins"] = plugins

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self._referer,
            "X-Title": title,
        }

        logger.info("Model request: model=%s, title=%s, plugins=%s", model, title, bool(plugins))

        try:
            response = await self._http.post("/chat/completions", json=body, headers=headers)
        except httpx.RequestError as exc:
            raise ModelAPIError(f"Connection to the model endpoint failed: {exc}") from exc

        if not response.is_success:
            raise ModelAPIError(
                f"OpenRouter API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        content = self._extract_content(response)
        logger.info("Model response: model=%s, %d chars", model, len(content))
        return content

    @staticmethod
    def _extract_content(response: httpx.Response) -> str:
        """Pull the answer text out of a success response.

        Raises:
            ModelResponseError: body is not JSON or the field is missing/empty.
        """
        try:
            data = response.json()
        except ValueError as exc:
            raise ModelResponseError(
                "Invalid response from OpenRouter API: body is not JSON",
                raw_response=response.text[:500],
            ) from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content:
            raise ModelResponseError(
                "Invalid response from OpenRouter API",
                raw_response=response.text[:500],
            )
        return content
