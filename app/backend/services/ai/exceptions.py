"""
Shared exceptions for AI service modules.
"""


class AIServiceError(Exception):
    """Raised when AI service operations fail."""

    pass


class ConfigurationError(AIServiceError):
    """Raised when the completion API key is missing."""

    pass


class CompletionError(AIServiceError):
    """Base class for failures of a single completion request."""

    pass


class TransportError(CompletionError):
    """The completion API could not be reached."""

    pass


class AuthError(CompletionError):
    """The API key was rejected (HTTP 401/403)."""

    pass


class RateLimitError(CompletionError):
    """The provider throttled the request (HTTP 429)."""

    pass


class QuotaError(CompletionError):
    """The account's quota or credit is exhausted."""

    pass


class UpstreamError(CompletionError):
    """Any other non-2xx response or a malformed response envelope."""

    pass
