"""
AI service package for LLM-based rule validation.

This package provides modular AI functionality split into:
- prompts: Prompt construction for a single rule
- completion: Chat completion client with typed errors
- normalizer: Conversion of free-text replies into Verdicts
- validation: Sequential validation of a batch of rules

The AIService class wires these modules to the application settings.
"""

import logging
from collections.abc import Sequence

# Handle both package imports and standalone imports
try:
    from ...config import Settings, get_settings
    from ...models import TestKeyResponse, Verdict
except ImportError:
    from config import Settings, get_settings
    from models import TestKeyResponse, Verdict

from .completion import DEFAULT_BASE_URL, DEFAULT_MODEL, CompletionClient
from .exceptions import (
    AIServiceError,
    AuthError,
    CompletionError,
    ConfigurationError,
    QuotaError,
    RateLimitError,
    TransportError,
    UpstreamError,
)
from .normalizer import normalize_response
from .prompts import MAX_DOCUMENT_CHARS, build_validation_prompt
from .validation import REQUEST_DELAY_SECONDS, error_verdict
from .validation import validate_rules as _validate_rules

logger = logging.getLogger(__name__)

# Export public functions and classes
__all__ = [
    "AIService",
    "AIServiceError",
    "AuthError",
    "CompletionClient",
    "CompletionError",
    "ConfigurationError",
    "MAX_DOCUMENT_CHARS",
    "QuotaError",
    "RateLimitError",
    "TransportError",
    "UpstreamError",
    "build_validation_prompt",
    "error_verdict",
    "get_ai_service",
    "normalize_response",
    "validate_rules",
]


# =============================================================================
# AIService Class
# =============================================================================


class AIService:
    """
    Service for validating documents against rules with an LLM.

    Uses Groq's OpenAI-compatible chat completion API. The completion
    client is created lazily so the service can start, and report its
    health, without an API key.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        request_delay: float = REQUEST_DELAY_SECONDS,
        completion_client: CompletionClient | None = None,
    ):
        """
        Initialize the AI service.

        Args:
            api_key: Groq API key. None leaves the service unconfigured.
            model: Chat model to use.
            base_url: OpenAI-compatible API base URL.
            timeout: Per-request timeout in seconds.
            request_delay: Pause between consecutive rule requests.
            completion_client: Pre-built client (used by tests).
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.request_delay = request_delay
        self._client = completion_client

        if not self.api_key_configured:
            logger.warning(
                "Groq API key not configured. Set GROQ_API_KEY in .env to enable validation."
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIService":
        """Build the service from application settings."""
        return cls(
            api_key=settings.groq_api_key,
            model=settings.groq_model,
            base_url=settings.groq_base_url,
            timeout=settings.request_timeout,
            request_delay=settings.request_delay_seconds,
        )

    @property
    def api_key_configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    @property
    def completion_client(self) -> CompletionClient:
        """Lazy-load the completion client."""
        if self._client is None:
            self._client = CompletionClient(
                api_key=self.api_key,
                model=self.model,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    async def validate_rules(
        self, document_text: str, rules: Sequence[str]
    ) -> list[Verdict]:
        """
        Validate each rule against the document text.

        Delegates to the validation module.

        Args:
            document_text: Text extracted from the document.
            rules: Rules in submission order.

        Returns:
            One Verdict per rule, in submission order.

        Raises:
            ConfigurationError: If no API key is configured. Raised before
                any rule is attempted.
        """
        client = self.completion_client
        return await _validate_rules(
            document_text,
            rules,
            complete=client.complete,
            delay_seconds=self.request_delay,
        )

    async def test_key(self) -> TestKeyResponse:
        """
        Check the configured key against the provider's model listing.

        Never raises; failures are reported in the response.
        """
        if not self.api_key_configured:
            return TestKeyResponse(
                valid=False, error="Groq API key not configured in .env file"
            )

        try:
            models = await self.completion_client.list_models()
        except CompletionError as e:
            logger.warning("API key check failed: %s", e)
            return TestKeyResponse(valid=False, error=str(e))

        return TestKeyResponse(
            valid=True,
            message="Groq API key is valid and working!",
            available_models=models,
        )


# =============================================================================
# Singleton Factory
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get or create the AI service singleton."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService.from_settings(get_settings())
    return _ai_service


# Re-export module functions for convenience
validate_rules = _validate_rules
