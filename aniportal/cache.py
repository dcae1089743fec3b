"""Response cache for upstream listings, keyed by call arguments.

Each key holds one value until its expiry. Concurrent misses on the same key
share a single in-flight load, so a page that asks for several listings at
once still fans out to the upstream only once per key. Failed loads are
never stored. The cache lives in the process and resets on restart.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from threading import RLock
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class TTLCache(Generic[T]):
    def __init__(self, ttl_seconds: float, maxsize: int = 512):
        self.ttl = float(ttl_seconds)
        self.maxsize = int(maxsize)
        self._lock = RLock()
        # key -> (deadline, value), oldest insert first
        self._store: "OrderedDict[Hashable, Tuple[float, T]]" = OrderedDict()
        self._inflight: Dict[Hashable, asyncio.Future] = {}

    @property
    def enabled(self) -> bool:
        return self.ttl > 0 and self.maxsize > 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get(self, key: Hashable) -> Optional[T]:
        if not self.enabled:
            return None
        with self._lock:
            hit = self._store.get(key)
            if hit is None:
                return None
            deadline, value = hit
            if deadline <= time.monotonic():
                del self._store[key]
                return None
            return value

    def set(self, key: Hashable, value: T) -> None:
        if not self.enabled:
            return
        now = time.monotonic()
        with self._lock:
            self._store.pop(key, None)
            for stale in [k for k, (deadline, _) in self._store.items() if deadline <= now]:
                del self._store[stale]
            while len(self._store) >= self.maxsize:
                self._store.popitem(last=False)
            self._store[key] = (now + self.ttl, value)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    async def get_or_set(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for ``key`` or load it with ``factory``.

        Callers arriving while a load for ``key`` is running wait for that
        load instead of starting their own. Exceptions from the factory reach
        every waiting caller and nothing is stored.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("cache hit for %r", key)
            return cached

        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug("joining in-flight load for %r", key)
            return await asyncio.shield(pending)

        future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            value = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # mark retrieved when nobody joined
            future.exception()
            raise
        finally:
            self._inflight.pop(key, None)

        self.set(key, value)
        future.set_result(value)
        return value
