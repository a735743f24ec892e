"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
ledger can be swapped (e.g., for a shared store) or replaced in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Requests still available in the trailing window.
        reset_at: UNIX epoch seconds when the oldest logged request leaves
            the window (i.e. when budget is next freed).
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Record one request for ``key`` if budget allows.

        Args:
            key: Unique client identifier (e.g., IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Forget all recorded requests."""
        raise NotImplementedError

    def admit(self, key: str) -> bool:
        """Return True when a request from ``key`` is admitted."""
        return self.consume(key).allowed
