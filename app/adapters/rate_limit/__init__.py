"""Rate limiting adapters.

A small abstraction layer so the HTTP layer depends on an interface while the
ledger itself lives in process memory (and can be replaced in tests).
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemorySlidingLogRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemorySlidingLogRateLimiter",
    "RateLimitResult",
]
