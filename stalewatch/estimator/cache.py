"""Per-issue memo of estimate results with a fixed freshness window.

Keyed by issue identity only: a result computed for an issue is served
for that issue until the window expires, even if the signals sent to the
estimator have changed since. Concurrent misses for the same key share
one in-flight computation.
"""

import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, Dict, Hashable, Tuple

from stalewatch.models import EstimateResult

DEFAULT_TTL_SECONDS = 300

LOG = logging.getLogger("stalewatch.estimator.cache")


class AnalysisCache:
    """Time-bounded map: key -> (computed_at, EstimateResult)."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            ttl_seconds: Freshness window, measured from when a result was stored.
            clock: Monotonic seconds source; injectable for tests.
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, EstimateResult]] = {}
        self._in_flight: Dict[Hashable, Future] = {}
        self._lock = threading.Lock()

    def _fresh(self, key: Hashable) -> EstimateResult | None:
        # Caller holds the lock.
        entry = self._entries.get(key)
        if entry is None:
            return None
        computed_at, result = entry
        if self._clock() - computed_at < self.ttl_seconds:
            return result
        del self._entries[key]
        return None

    def get(self, key: Hashable) -> EstimateResult | None:
        """Return the stored result if still inside the window."""
        with self._lock:
            return self._fresh(key)

    def put(self, key: Hashable, result: EstimateResult) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), result)

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_compute(
        self,
        key: Hashable,
        compute: Callable[[], EstimateResult],
        should_store: Callable[[EstimateResult], bool] = lambda result: True,
    ) -> Tuple[EstimateResult, bool]:
        """Return (result, hit).

        hit is True when the result came from the window or from another
        caller's in-flight computation for the same key. compute runs
        outside the lock; if it raises, waiting callers see the same error.
        """
        with self._lock:
            cached = self._fresh(key)
            if cached is not None:
                LOG.debug("Cache hit for %s", key)
                return cached, True
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            LOG.debug("Joining in-flight estimate for %s", key)
            return future.result(), True

        try:
            result = compute()
        except BaseException as e:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            if should_store(result):
                self._entries[key] = (self._clock(), result)
            self._in_flight.pop(key, None)
        future.set_result(result)
        return result, False
