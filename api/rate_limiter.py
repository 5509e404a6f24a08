"""
In-memory sliding-window rate limiter keyed by client IP.

Each process holds its own window, so with N workers the effective limit
is N x max_requests.
"""

import logging
import time
from threading import Lock
from typing import Dict, List, Optional, Tuple

from fastapi import Request

from api.exceptions import RateLimitExceeded

logger = logging.getLogger(__name__)


class InMemoryRateLimiter:
    """Sliding window of request timestamps per key."""

    def __init__(self, max_requests: int, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: Dict[str, List[float]] = {}
        self._lock = Lock()

    def is_allowed(self, key: str) -> Tuple[bool, Optional[int]]:
        """
        Check and record a request for the given key.

        Returns:
            (allowed, retry_after_seconds)
        """
        now = time.time()
        cutoff = now - self.window_seconds

        with self._lock:
            self._drop_expired(cutoff)
            recent = [ts for ts in self._requests.pop(key, []) if ts > cutoff]
            request_count = len(recent)

            if request_count >= self.max_requests:
                if recent:
                    self._requests[key] = recent
                oldest = min(recent, default=now)
                retry_after = int(oldest + self.window_seconds - now) + 1
                logger.warning(
                    f"Rate limit exceeded for {key}: "
                    f"{request_count}/{self.max_requests}, retry after {retry_after}s"
                )
                return False, retry_after

            recent.append(now)
            self._requests[key] = recent
            return True, None

    def _drop_expired(self, cutoff: float) -> None:
        """Forget keys whose newest request left the window."""
        expired = [key for key, stamps in self._requests.items() if stamps[-1] <= cutoff]
        for key in expired:
            del self._requests[key]

    def get_usage(self, key: str) -> dict:
        """Current usage for a key."""
        cutoff = time.time() - self.window_seconds
        with self._lock:
            recent = [ts for ts in self._requests.get(key, []) if ts > cutoff]
        return {
            "count": len(recent),
            "limit": self.max_requests,
            "window_seconds": self.window_seconds,
            "remaining": max(0, self.max_requests - len(recent)),
        }

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()


def client_ip(request: Request) -> str:
    """First address in X-Forwarded-For, else the socket peer."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitDependency:
    """
    Router dependency enforcing the limiter stored on ``app.state.rate_limiter``.

    Health paths are exempt. No limiter on the app state disables the check.
    """

    async def __call__(self, request: Request) -> None:
        if request.url.path.endswith("/health"):
            return

        limiter: Optional[InMemoryRateLimiter] = getattr(request.app.state, "rate_limiter", None)
        if limiter is None:
            return

        allowed, retry_after = limiter.is_allowed(client_ip(request))
        if not allowed:
            raise RateLimitExceeded(retry_after)


rate_limit = RateLimitDependency()
