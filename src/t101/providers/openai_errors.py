"""Mapping of OpenAI SDK exceptions onto provider errors."""

import openai

from ..errors import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
)


def map_openai_error(e: Exception, action: str) -> ProviderError:
    """Translate an OpenAI SDK failure into a provider error.

    Args:
        e: Exception raised by the SDK
        action: What was being attempted, for the message

    Returns:
        ProviderError subclass carrying the upstream status where known
    """
    if isinstance(e, openai.AuthenticationError):
        return ProviderAuthError(f"OpenAI authentication failed: {e.message}", e)
    if isinstance(e, openai.RateLimitError):
        return ProviderAPIError(f"OpenAI rate limit exceeded: {e.message}", 429, e)
    if isinstance(e, openai.APIStatusError):
        return ProviderAPIError(f"OpenAI API error: {e.message}", e.status_code, e)
    if isinstance(e, openai.APIConnectionError):
        return ProviderConnectionError(f"OpenAI unreachable while trying to {action}", e)
    return ProviderAPIError(f"Failed to {action}: {e}", None, e)
