"""In-process fixed-window rate limiting for the POST endpoints."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Allow ``max_requests`` per key in each ``window`` seconds.

    The first request for a key opens a window; the request that pushes the
    count past ``max_requests`` and every later one in the same window is
    limited.
    """

    def __init__(self, window: float, max_requests: int, clock: Callable[[], float] = time.monotonic):
        self.window = window
        self.max_requests = max_requests
        self.clock = clock
        self._store: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def is_limited(self, key: str) -> bool:
        now = self.clock()
        with self._lock:
            self._prune(now)
            entry = self._store.get(key)
            if entry is None or now > entry.reset_at:
                self._store[key] = _Window(count=1, reset_at=now + self.window)
                return False
            entry.count += 1
            return entry.count > self.max_requests

    def _prune(self, now: float) -> None:
        expired = [k for k, w in self._store.items() if now > w.reset_at]
        for k in expired:
            del self._store[k]

    def reset(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


def client_ip(headers: Mapping[str, str]) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, else ``'unknown'``."""
    forwarded = headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return headers.get("X-Real-IP") or "unknown"
