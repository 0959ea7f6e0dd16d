"""Rate limiting adapters.

The API layer depends on ``AbstractRateLimiter`` only, so the in-memory store
can be swapped for a shared backend (e.g., Redis) without touching routes.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
]
