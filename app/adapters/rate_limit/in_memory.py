"""In-memory per-client fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Bounded: the least recently seen clients are evicted past ``max_entries``.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class RateEntry:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter with one fixed window per client.

    A client's window opens on its first request and lasts ``window_seconds``;
    it is not aligned to a global clock. Every request inside the window counts,
    including the ones that get rejected, so a client hammering the API stays
    blocked until its window runs out. Because windows restart on demand, a
    burst straddling the boundary can let through up to twice the limit within
    any rolling ``window_seconds`` span.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        max_entries: int | None = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Window length in seconds.
            max_entries: Maximum tracked clients (None for unbounded).
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit, window_seconds or max_entries are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: OrderedDict[str, RateEntry] = OrderedDict()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_expired(self, entry: RateEntry, now: float) -> bool:
        return now - entry.window_start > self._window_seconds

    def _evict_locked(self, now: float) -> None:
        """Drop expired windows, then the oldest clients while over capacity."""
        if self._max_entries is None or len(self._entries) <= self._max_entries:
            return

        expired = [k for k, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]

        evicted = 0
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
            evicted += 1

        logger.debug(
            "rate_limit.evicted",
            extra={"expired": len(expired), "evicted": evicted, "entries": len(self._entries)},
        )

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Count a request for ``key`` and decide whether it may proceed.

        Args:
            key: Client identifier.
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._is_expired(entry, now):
                entry = RateEntry(window_start=now, count=cost)
                self._entries[key] = entry
            else:
                entry.count += cost
            self._entries.move_to_end(key)
            self._evict_locked(now)

            count = entry.count
            reset_at = entry.window_start + self._window_seconds

        remaining = max(0, self._limit - count)
        if count <= self._limit:
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=remaining,
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=None,
            )

        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
        )
