"""
Chat completion client for the Groq OpenAI-compatible API.

Sends exactly one request per call and maps SDK failures into the
CompletionError hierarchy so callers can handle them uniformly.
"""

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from .exceptions import (
    AuthError,
    CompletionError,
    ConfigurationError,
    QuotaError,
    RateLimitError,
    TransportError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"

# Low temperature and a small token ceiling keep replies short and parseable
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 400


def _map_api_error(exc: openai.APIError) -> CompletionError:
    """Translate an OpenAI SDK exception into a CompletionError."""
    if isinstance(exc, openai.APIConnectionError):
        # Also covers APITimeoutError
        return TransportError(f"Could not reach completion API: {exc}")

    if isinstance(exc, openai.APIStatusError):
        status_code = exc.status_code
        message = exc.message or "Unknown error"
        code = getattr(exc, "code", None)

        if status_code in (401, 403):
            return AuthError("Invalid API key")
        if (
            status_code == 402
            or code == "insufficient_quota"
            or "quota" in message.lower()
        ):
            return QuotaError("API quota exceeded")
        if status_code == 429:
            return RateLimitError("Rate limit exceeded")
        return UpstreamError(f"Completion API error ({status_code}): {message}")

    return UpstreamError(f"Completion API error: {exc}")


class CompletionClient:
    """
    Thin wrapper around AsyncOpenAI for single-shot chat completions.

    The SDK's built-in retries are disabled; a failed request surfaces
    immediately as a CompletionError subclass.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Any = None,
    ):
        """
        Initialize the completion client.

        Args:
            api_key: Groq API key. Required.
            model: Chat model name.
            base_url: OpenAI-compatible API base URL.
            timeout: Request timeout in seconds.
            temperature: Sampling temperature.
            max_tokens: Output token ceiling.
            client: Pre-built SDK client (used by tests).

        Raises:
            ConfigurationError: If no API key is provided.
        """
        if not api_key:
            raise ConfigurationError("Groq API key not configured in .env file")

        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """
        Send one chat completion request and return the reply text.

        Args:
            system_prompt: Instructions for the model.
            user_prompt: The rule and document excerpt.

        Returns:
            Raw reply content, stripped of surrounding whitespace.

        Raises:
            CompletionError: On transport, auth, rate limit, quota or
                upstream failures, including a malformed response envelope.
        """
        logger.info("Sending request to completion API (model=%s)", self.model)

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APIError as e:
            error = _map_api_error(e)
            logger.error("Completion API error: %s", e)
            raise error from e

        choices = getattr(response, "choices", None)
        if not choices:
            logger.error("Invalid response structure: %r", response)
            raise UpstreamError("Invalid response structure from completion API")

        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            logger.error("Completion response has no message content: %r", choices[0])
            raise UpstreamError("Invalid response structure from completion API")

        logger.info("Received response from completion API")
        return content.strip()

    async def list_models(self, limit: int = 5) -> list[str]:
        """
        List model ids available to the configured key.

        Args:
            limit: Maximum number of ids to return.

        Returns:
            Up to ``limit`` model ids.

        Raises:
            CompletionError: If the request fails.
        """
        try:
            page = await self._client.models.list()
        except openai.APIError as e:
            raise _map_api_error(e) from e

        return [model.id for model in (page.data or [])][:limit]
