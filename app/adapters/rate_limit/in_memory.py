"""In-memory sliding-log rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Bounded: idle clients are swept periodically and the ledger never tracks
  more than ``max_tracked_keys`` clients.
"""

from __future__ import annotations

import math
import threading
import time
from collections import OrderedDict
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


class InMemorySlidingLogRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping a log of request timestamps per key.

    Before each decision the key's log is pruned to the trailing window, so at
    most ``limit`` requests are admitted in any interval of ``window_seconds``
    regardless of alignment.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        max_tracked_keys: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted requests per window.
            window_seconds: Length of the sliding window in seconds.
            max_tracked_keys: Upper bound on keys held in the ledger.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If any bound is invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if max_tracked_keys < 1:
            raise ValueError("max_tracked_keys must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._max_tracked_keys = max_tracked_keys
        self._clock = clock
        self._lock = threading.RLock()
        # Ordered by last admission so the first entry is the least recently active
        self._log_by_key: OrderedDict[str, list[float]] = OrderedDict()
        self._last_sweep = clock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._log_by_key)

    def _recent(self, key: str, now: float) -> list[float]:
        """Timestamps for ``key`` that are still inside the trailing window."""
        log = self._log_by_key.get(key)
        if not log:
            return []
        cutoff = now - self._window_seconds
        return [t for t in log if t > cutoff]

    def _sweep(self, now: float) -> None:
        """Drop keys with no activity inside the trailing window."""
        cutoff = now - self._window_seconds
        stale = [key for key, log in self._log_by_key.items() if not log or log[-1] <= cutoff]
        for key in stale:
            del self._log_by_key[key]
        self._last_sweep = now

    def _make_room(self, now: float) -> float | None:
        """Ensure a new key fits by sweeping idle keys.

        Returns:
            None if the key fits, otherwise the time at which the least
            recently active key leaves the window and frees a slot.
        """
        if len(self._log_by_key) < self._max_tracked_keys:
            return None
        self._sweep(now)
        if len(self._log_by_key) < self._max_tracked_keys:
            return None
        # All tracked keys are active; the first one frees its slot soonest
        oldest_log = next(iter(self._log_by_key.values()))
        return oldest_log[-1] + self._window_seconds

    def _rejected(self, reset_at: float, now: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
        )

    def consume(self, key: str) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        A rejected request leaves the stored log untouched. When the ledger is
        full of active keys, requests from untracked keys are rejected.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self._window_seconds:
                self._sweep(now)

            recent = self._recent(key, now)

            if len(recent) >= self._limit:
                return self._rejected(recent[0] + self._window_seconds, now)

            if key not in self._log_by_key:
                frees_at = self._make_room(now)
                if frees_at is not None:
                    return self._rejected(frees_at, now)

            recent.append(now)
            self._log_by_key[key] = recent
            self._log_by_key.move_to_end(key)

            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=self._limit - len(recent),
                reset_at=int(math.ceil(recent[0] + self._window_seconds)),
                retry_after_seconds=None,
            )

    def reset(self) -> None:
        with self._lock:
            self._log_by_key.clear()
            self._last_sweep = self._clock()
