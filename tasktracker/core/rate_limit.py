"""Fixed-window request counting per client address."""
import abc
import threading
import time
from typing import Dict, Tuple

import redis
from fastapi import Request

from tasktracker.core.errors import RateLimited


class RateLimitBackend(abc.ABC):
    @abc.abstractmethod
    def hit(self, key: str, window_seconds: int) -> int:
        """Count one request for ``key`` and return the count in this window."""


class MemoryRateLimitBackend(RateLimitBackend):
    def __init__(self, clock=time.monotonic):
        self.clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_eviction = clock()

    def _evict_expired(self, now: float, window_seconds: int) -> None:
        # At most one scan per window; callers hold the lock
        if now - self._last_eviction < window_seconds:
            return
        self._windows = {
            key: (started, count)
            for key, (started, count) in self._windows.items()
            if now - started < window_seconds
        }
        self._last_eviction = now

    def hit(self, key: str, window_seconds: int) -> int:
        now = self.clock()
        with self._lock:
            self._evict_expired(now, window_seconds)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            return count


class RedisRateLimitBackend(RateLimitBackend):
    key_prefix = "ratelimit:"

    def __init__(self, client: redis.Redis):
        self.client = client

    def hit(self, key: str, window_seconds: int) -> int:
        name = f"{self.key_prefix}{key}"
        pipe = self.client.pipeline()
        pipe.incr(name)
        pipe.expire(name, window_seconds, nx=True)
        count, _ = pipe.execute()
        return int(count)


class RateLimiter:
    def __init__(self, backend: RateLimitBackend, window_seconds: int, enabled: bool = True):
        self.backend = backend
        self.window_seconds = window_seconds
        self.enabled = enabled

    def check(self, scope: str, client_id: str, limit: int, message: str) -> None:
        if not self.enabled:
            return
        if self.backend.hit(f"{scope}:{client_id}", self.window_seconds) > limit:
            raise RateLimited(message)


class RateLimit:
    """Route dependency applying one named limit to the calling client."""

    def __init__(self, scope: str, limit_setting: str, message: str):
        self.scope = scope
        self.limit_setting = limit_setting
        self.message = message

    def __call__(self, request: Request) -> None:
        limiter: RateLimiter = request.app.state.rate_limiter
        limit = getattr(request.app.state.settings, self.limit_setting)
        client_id = request.client.host if request.client else "anonymous"
        limiter.check(self.scope, client_id, limit, self.message)


login_rate_limit = RateLimit(
    "login",
    "LOGIN_RATE_LIMIT",
    "Too many login attempts. Please try again after 15 minutes",
)
api_rate_limit = RateLimit(
    "api",
    "API_RATE_LIMIT",
    "Too many requests. Please try again later",
)
