from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis

from resumetailor import config


class RateLimitExceededError(Exception):
    pass


class CounterStore(Protocol):
    def increment(self, key: str, *, window_seconds: int) -> int:
        """Count the request and return how many fall in the key's current window."""
        ...


class InMemoryCounterStore:
    """
    Fixed-window counters for a single process (tests, local CLI).
    Not shared across server instances; use RedisCounterStore there.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, Tuple[int, float]] = {}  # key -> (count, reset_at)

    def increment(self, key: str, *, window_seconds: int) -> int:
        now = self._clock()
        with self._lock:
            count, reset_at = self._windows.get(key, (0, 0.0))
            if now >= reset_at:
                count, reset_at = 0, now + window_seconds
            count += 1
            self._windows[key] = (count, reset_at)
            return count


class RedisCounterStore:
    """
    Fixed-window counters in Redis, shared by every server instance.

    INCR + EXPIRE in one pipeline; the TTL is set only when the window opens.
    """

    def __init__(self, client: "redis.Redis", *, prefix: str = "resumetailor:ratelimit:") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisCounterStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def increment(self, key: str, *, window_seconds: int) -> int:
        rkey = f"{self._prefix}{key}"
        pipe = self._client.pipeline()
        pipe.incr(rkey)
        pipe.expire(rkey, window_seconds, nx=True)
        count, _ = pipe.execute()
        return int(count)


class FixedWindowRateLimiter:
    """Allows max_requests per key per window. State lives in the injected store."""

    def __init__(self, store: CounterStore, *, max_requests: int = 100, window_seconds: int = 3600) -> None:
        self._store = store
        self.max_requests = max(1, max_requests)
        self.window_seconds = max(1, window_seconds)

    def check_and_consume(self, key: str) -> bool:
        return self._store.increment(key, window_seconds=self.window_seconds) <= self.max_requests


def build_rate_limiter(store: Optional[CounterStore] = None) -> FixedWindowRateLimiter:
    """Limiter from env config; Redis when RESUMETAILOR_REDIS_URL is set, else in-process."""
    if store is None:
        if config.RESUMETAILOR_REDIS_URL:
            store = RedisCounterStore.from_url(config.RESUMETAILOR_REDIS_URL)
        else:
            store = InMemoryCounterStore()
    cfg = config.load_rate_limit_config()
    return FixedWindowRateLimiter(store, max_requests=cfg.max_requests, window_seconds=cfg.window_seconds)
