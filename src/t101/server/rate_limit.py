"""In-memory fixed-window rate limiting.

One ``RateLimiter`` per endpoint class (api, speech, recognition). Counts
live in process memory and are lost on restart.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request

from ..config import RateLimitRule
from ..errors import RateLimitError

logger = logging.getLogger(__name__)

# Entries are swept at most this often
PURGE_INTERVAL_S = 60.0


@dataclass
class RateLimitEntry:
    window_start: float
    count: int = 0


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of counting one request."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at)),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter:
    """Counts requests per key in fixed windows.

    Args:
        rule: Window length and request budget
        clock: Returns the current time in seconds since the epoch
    """

    def __init__(self, rule: RateLimitRule, clock: Callable[[], float] = time.time) -> None:
        self.rule = rule
        self.clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._last_purge = clock()

    @property
    def window_s(self) -> float:
        return self.rule.window_ms / 1000

    def __len__(self) -> int:
        return len(self._entries)

    def check(self, key: str) -> RateLimitResult:
        """Count a request for ``key`` and report whether it is allowed."""
        now = self.clock()
        self._maybe_purge(now)

        entry = self._entries.get(key)
        if entry is None or now > entry.window_start + self.window_s:
            entry = RateLimitEntry(window_start=now)
            self._entries[key] = entry

        entry.count += 1
        reset_at = entry.window_start + self.window_s
        allowed = entry.count <= self.rule.max_requests
        return RateLimitResult(
            allowed=allowed,
            limit=self.rule.max_requests,
            remaining=max(0, self.rule.max_requests - entry.count),
            reset_at=reset_at,
            retry_after=max(1, math.ceil(reset_at - now)),
        )

    def purge(self, now: float | None = None) -> int:
        """Drop entries whose window has ended.

        Returns:
            Number of entries removed
        """
        now = self.clock() if now is None else now
        expired = [
            key
            for key, entry in self._entries.items()
            if now > entry.window_start + self.window_s
        ]
        for key in expired:
            del self._entries[key]
        self._last_purge = now
        return len(expired)

    def _maybe_purge(self, now: float) -> None:
        if now - self._last_purge >= PURGE_INTERVAL_S:
            removed = self.purge(now)
            if removed:
                logger.debug(f"Purged {removed} expired rate limit entries")


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def api_key_or_ip(request: Request) -> str:
    """Key requests by API key, falling back to client IP."""
    return request.headers.get("X-API-Key") or client_ip(request)


def session_or_api_key(request: Request) -> str:
    """Key recognition requests by session, then API key, then IP."""
    return request.headers.get("X-Session-Id") or api_key_or_ip(request)


class RateLimitDependency:
    """Route dependency enforcing one endpoint class's limit.

    Usage:
        @router.post("/tts", dependencies=[Depends(RateLimitDependency("speech"))])
    """

    def __init__(
        self, limiter_name: str, key_func: Callable[[Request], str] = api_key_or_ip
    ) -> None:
        self.limiter_name = limiter_name
        self.key_func = key_func

    async def __call__(self, request: Request) -> None:
        limiter: RateLimiter = request.app.state.context.rate_limiters[self.limiter_name]
        result = limiter.check(self.key_func(request))

        if not result.allowed:
            logger.warning(
                f"Rate limit exceeded for {self.limiter_name} on {request.url.path}"
            )
            raise RateLimitError(
                "Too many requests, please try again later.",
                retry_after=result.retry_after,
                headers=result.headers(),
            )

        # Copied onto the response by the app middleware
        request.state.rate_limit_headers = result.headers()
