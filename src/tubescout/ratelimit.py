"""Per-caller sliding-window rate limiting."""

import math
from collections import OrderedDict, deque
from dataclasses import dataclass
from threading import Lock
from time import monotonic


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


class SlidingWindowRateLimiter:
    """Allows ``max_requests`` per ``window_seconds`` for each caller key.

    Buckets idle for a whole window are evicted on access. When more than
    ``max_keys`` callers are tracked, the least recently seen bucket is
    dropped.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: float,
        max_keys: int = 500,
        clock=monotonic,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._max_keys = max_keys
        self._clock = clock
        self._lock = Lock()
        self._buckets: OrderedDict[str, deque[float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._buckets)

    def take(self, key: str) -> RateLimitDecision:
        now = self._clock()
        cutoff = now - self._window_seconds

        with self._lock:
            self._evict_idle(cutoff)

            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = self._buckets[key] = deque()
            self._buckets.move_to_end(key)
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()

            if len(bucket) >= self._max_requests:
                retry_after = max(1, math.ceil(bucket[0] + self._window_seconds - now))
                return RateLimitDecision(
                    allowed=False,
                    limit=self._max_requests,
                    remaining=0,
                    retry_after_seconds=retry_after,
                )

            bucket.append(now)
            while len(self._buckets) > self._max_keys:
                self._buckets.popitem(last=False)
            return RateLimitDecision(
                allowed=True,
                limit=self._max_requests,
                remaining=max(self._max_requests - len(bucket), 0),
                retry_after_seconds=0,
            )

    def _evict_idle(self, cutoff: float) -> None:
        # Least recently seen first; stop at the first still-active bucket
        while self._buckets:
            key, bucket = next(iter(self._buckets.items()))
            if bucket and bucket[-1] > cutoff:
                break
            del self._buckets[key]
