"""Process-local fixed-window rate limiting.

One counter per key (usually a client IP address). A window opens on the
first attempt from a key and lasts ``window_seconds``; up to
``max_attempts`` attempts are allowed inside it. Once the window has
elapsed the next attempt opens a fresh window.

This is a fixed window, not a sliding log: a client can get up to twice
the nominal rate by straddling a window boundary.
"""

import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict

from fastapi import Request


@dataclass
class RateLimitEntry:
    count: int
    window_start: float


class FixedWindowRateLimiter:
    """Thread-safe fixed-window counter keyed by an arbitrary string."""

    def __init__(self, max_attempts: int, window_seconds: float,
                 clock: Callable[[], float] = time.monotonic):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = Lock()
        self._last_sweep = clock()

    def _expired(self, entry: RateLimitEntry, now: float) -> bool:
        return now - entry.window_start > self.window_seconds

    def _sweep(self, now: float) -> None:
        """Drop entries whose window has elapsed. Caller holds the lock."""
        if now - self._last_sweep <= self.window_seconds:
            return
        for key in [k for k, e in self._entries.items() if self._expired(e, now)]:
            del self._entries[key]
        self._last_sweep = now

    def try_consume(self, key: str) -> bool:
        """
        Record an attempt for ``key``.

        Returns True if the attempt is allowed (and counted), False if the
        limit is exhausted for the current window. Denied attempts are not
        counted and do not move the window.
        """
        now = self._clock()
        with self._lock:
            self._sweep(now)
            entry = self._entries.get(key)

            if entry is None or self._expired(entry, now):
                self._entries[key] = RateLimitEntry(count=1, window_start=now)
                return True

            if entry.count >= self.max_attempts:
                return False

            entry.count += 1
            return True

    def is_blocked(self, key: str) -> bool:
        """Check whether the next attempt would be denied, without consuming it."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._expired(entry, now):
                return False
            return entry.count >= self.max_attempts

    def retry_after(self, key: str) -> int:
        """Seconds until the current window for ``key`` ends (0 if not limited)."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._expired(entry, now):
                return 0
            remaining = entry.window_start + self.window_seconds - now
            return max(int(remaining) + 1, 1)

    def reset(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def get_client_ip(request: Request) -> str:
    """Get client IP address for rate limiting."""
    # Check for forwarded IP (from proxy/load balancer)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    # Fallback to direct connection
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
