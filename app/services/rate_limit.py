"""In-process sliding-window limiter keyed by client address."""

import threading
import time
from dataclasses import dataclass


@dataclass
class RateLimitConfig:
    max_requests: int = 5
    window_seconds: int = 900


class RateLimiter:
    def __init__(self, config: RateLimitConfig) -> None:
        self._config = config
        self._hits: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._last_purge = time.monotonic()

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def allow(self, key: str) -> bool:
        now = time.monotonic()
        window_start = now - self._config.window_seconds
        with self._lock:
            if now - self._last_purge >= self._config.window_seconds:
                self._purge(window_start)
                self._last_purge = now
            hits = [t for t in self._hits.get(key, []) if t >= window_start]
            if len(hits) >= self._config.max_requests:
                self._hits[key] = hits
                return False
            hits.append(now)
            self._hits[key] = hits
            return True

    def _purge(self, window_start: float) -> None:
        # Caller holds the lock. Hit lists are in ascending order.
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] < window_start]
        for key in stale:
            del self._hits[key]

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
