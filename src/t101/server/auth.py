"""API key authentication."""

import hmac
import logging

from fastapi import Request

from ..errors import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"


async def require_api_key(request: Request) -> None:
    """Route dependency checking ``X-API-Key`` against the server secret.

    With no secret configured, authentication is disabled.

    Raises:
        AuthenticationError: If the header is missing
        AuthorizationError: If the key does not match
    """
    expected = request.app.state.context.config.server.api_key
    if not expected:
        return

    provided = request.headers.get(API_KEY_HEADER)
    if not provided:
        raise AuthenticationError("API key is required")
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning(f"Rejected invalid API key from {request.client.host if request.client else 'unknown'}")
        raise AuthorizationError("Invalid API key")
