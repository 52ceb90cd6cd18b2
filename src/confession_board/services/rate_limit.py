"""Per-user action quotas backed by Redis fixed-window counters."""

from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Any

import redis

from confession_board.core.settings import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """Quota collaborator: answers whether a key may perform an action now.

    Counters live in Redis (``INCR`` + ``EXPIRE`` per window). If Redis is
    unreachable the limiter falls back to an in-process window table.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        enabled: bool | None = None,
        quotas: dict[str, tuple[int, int]] | None = None,
    ) -> None:
        self.enabled = settings.rate_limit_enabled if enabled is None else enabled
        self.quotas = quotas or settings.quotas
        self._redis: Any = None
        if redis_url:
            try:
                self._redis = redis.from_url(redis_url)
            except (redis.RedisError, ValueError):
                logger.warning("Invalid Redis URL for rate limiter; using local counters")
                self._redis = None
        self._windows: dict[str, int] = {}
        self._lock = Lock()

    def _window_key(self, key: str, action: str, window: int, now: float) -> str:
        return f"quota:{action}:{key}:{int(now // window)}"

    def check_quota(self, key: str, action: str) -> bool:
        """Consume one unit of ``action`` for ``key``; return False if over quota."""
        if not self.enabled:
            return True
        limit, window = self.quotas.get(action, (0, 0))
        if limit <= 0 or window <= 0:
            return True

        now = time.time()
        window_key = self._window_key(key, action, window, now)
        if self._redis is not None:
            try:
                pipe = self._redis.pipeline()
                pipe.incr(window_key)
                pipe.expire(window_key, window)
                count, _ = pipe.execute()
                return int(count) <= limit
            except redis.RedisError as exc:
                logger.warning("Redis unavailable for rate limiting, using local counters: %s", exc)
                self._redis = None

        with self._lock:
            self._prune(now)
            count = self._windows.get(window_key, 0) + 1
            self._windows[window_key] = count
        return count <= limit

    def _prune(self, now: float) -> None:
        stale = []
        for window_key in self._windows:
            action = window_key.split(":", 2)[1]
            _, window = self.quotas.get(action, (0, 1))
            bucket = int(window_key.rsplit(":", 1)[1])
            if bucket < int(now // max(window, 1)):
                stale.append(window_key)
        for window_key in stale:
            del self._windows[window_key]


_RATE_LIMITER: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Return the process-wide rate limiter."""
    global _RATE_LIMITER
    if _RATE_LIMITER is None:
        _RATE_LIMITER = RateLimiter(settings.redis_url)
    return _RATE_LIMITER
