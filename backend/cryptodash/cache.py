"""
Market data snapshot cache

Remembers the last payload fetched for each market data request together
with when it was fetched. Callers decide freshness per read (``max_age``),
so a snapshot too old to serve as fresh can still be served as a stale
fallback when the API is down.

Loads are single-flight: concurrent misses for one key await the same
request task.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class MarketDataCache:
    """Last-known market data keyed by request"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._snapshots: Dict[str, Tuple[float, Any]] = {}
        self._pending: Dict[str, asyncio.Task] = {}

    def age(self, key: str) -> Optional[float]:
        """Seconds since ``key`` was stored, or None if never stored"""
        snapshot = self._snapshots.get(key)
        if snapshot is None:
            return None
        return self._clock() - snapshot[0]

    def peek(self, key: str, max_age: float) -> Optional[Any]:
        """The stored value if younger than ``max_age`` seconds"""
        age = self.age(key)
        if age is None or age >= max_age:
            return None
        return self._snapshots[key][1]

    def stale(self, key: str) -> Optional[Any]:
        """The last stored value regardless of age"""
        snapshot = self._snapshots.get(key)
        return None if snapshot is None else snapshot[1]

    def store(self, key: str, value: Any) -> None:
        self._snapshots[key] = (self._clock(), value)

    def invalidate(self, key: Optional[str] = None) -> None:
        """Forget one snapshot, or all of them when no key is given."""
        if key is None:
            self._snapshots.clear()
        else:
            self._snapshots.pop(key, None)

    async def fetch(self, key: str, loader: Callable[[], Awaitable[Any]], max_age: float) -> Any:
        """
        Fresh snapshot for ``key``, loading it if missing or too old.

        A failed load stores nothing and raises to every waiter; the previous
        snapshot stays available through ``stale()``. A waiter being cancelled
        does not cancel the shared load.
        """
        cached = self.peek(key, max_age)
        if cached is not None:
            return cached

        task = self._pending.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._load(key, loader))
            self._pending[key] = task
        return await asyncio.shield(task)

    async def _load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        try:
            value = await loader()
            self.store(key, value)
            logger.debug(f"Market data cache refreshed: {key}")
            return value
        finally:
            self._pending.pop(key, None)


# Global cache instance
api_cache = MarketDataCache()
