"""Exception taxonomy shared by the server, the providers and the client."""


class T101Error(Exception):
    """Base exception for request-level errors.

    Each subclass carries the HTTP status and error code the server reports
    when the exception escapes a route handler.
    """

    status_code = 500
    code = "ERROR"
    default_message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        original_error: Exception | None = None,
        validation_errors: list[dict] | None = None,
    ) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.original_error = original_error
        self.validation_errors = validation_errors


class ValidationError(T101Error):
    """Bad or missing input."""

    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation error"


class AuthenticationError(T101Error):
    """Missing credentials, or credentials rejected by an upstream provider."""

    status_code = 401
    code = "AUTHENTICATION_ERROR"
    default_message = "Authentication failed"


class AuthorizationError(T101Error):
    """Credentials present but not valid for this server."""

    status_code = 403
    code = "AUTHORIZATION_ERROR"
    default_message = "Not authorized"


class NotFoundError(T101Error):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class RateLimitError(T101Error):
    """Too many requests in the current window."""

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    default_message = "Rate limit exceeded, retry later"

    def __init__(
        self,
        message: str | None = None,
        retry_after: int | None = None,
        original_error: Exception | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.retry_after = retry_after
        self.headers = dict(headers or {})
        if retry_after is not None:
            self.headers.setdefault("Retry-After", str(retry_after))


class InternalError(T101Error):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"


class ServiceUnavailableError(T101Error):
    """Upstream provider is not configured or is down."""

    status_code = 503
    code = "SERVICE_UNAVAILABLE"
    default_message = "Service unavailable"


class UpstreamError(T101Error):
    """Upstream provider answered with a status that is passed through."""

    code = "UPSTREAM_ERROR"
    default_message = "Upstream provider error"

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 502,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.status_code = status_code


class ProviderError(Exception):
    """Base exception for errors raised by upstream provider clients."""

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class ProviderAuthError(ProviderError):
    """Exception raised for authentication failures.

    This typically occurs when:
    - API key is missing or invalid
    - Account has insufficient credits
    - API key permissions are insufficient
    """


class ProviderAPIError(ProviderError):
    """Exception raised when a provider answers with an error status.

    This typically occurs when:
    - API server is unavailable (5xx errors)
    - Rate limits are exceeded (429 error)
    - Request format is invalid (4xx errors)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.status_code = status_code


class ProviderConnectionError(ProviderError):
    """Exception raised when the provider cannot be reached at all."""


class ProviderNotConfiguredError(ProviderError):
    """Exception raised when a provider has no API key configured."""


def translate_provider_error(error: ProviderError) -> T101Error:
    """Map a provider failure onto the HTTP error taxonomy.

    401 becomes "authentication failed", 429 becomes "rate limit exceeded,
    retry later", other statuses pass through with the provider's message and
    network failures become a generic 500.
    """
    if isinstance(error, ProviderNotConfiguredError):
        return ServiceUnavailableError(str(error), original_error=error)
    if isinstance(error, ProviderAuthError):
        return AuthenticationError("authentication failed", original_error=error)
    if isinstance(error, ProviderAPIError) and error.status_code is not None:
        if error.status_code == 401:
            return AuthenticationError("authentication failed", original_error=error)
        if error.status_code == 429:
            return RateLimitError(
                "rate limit exceeded, retry later", original_error=error
            )
        if 400 <= error.status_code < 600:
            return UpstreamError(
                str(error), status_code=error.status_code, original_error=error
            )
    return InternalError("Upstream request failed", original_error=error)
