"""
In-memory advice cache.

Entries expire after a TTL measured with the injected clock and the cache is
bounded with LRU eviction. Concurrent requests for the same key share one
in-flight computation; a failed computation is not stored and every waiter
receives its exception. Every caller receives its own deep copy of the value,
so mutating a returned response never leaks into later hits.
"""

import asyncio
import copy
import hashlib
import json
import logging
from collections import OrderedDict
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

from card_advisor.domain.models import AdviceRequest
from card_advisor.utils.time import Clock, now_utc

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fingerprint(request: AdviceRequest) -> str:
    """SHA-256 over the canonical request fields"""
    canonical = {
        "user_id": request.user_id,
        "investment_amount": str(request.investment_amount),
        "risk_level": request.risk_level.value,
        "time_horizon_days": request.time_horizon_days,
        "price_range": request.price_range.value,
        "card_types": sorted(t.value for t in request.card_types),
        "custom_min_price": str(request.custom_min_price) if request.custom_min_price is not None else None,
        "custom_max_price": str(request.custom_max_price) if request.custom_max_price is not None else None,
    }
    encoded = json.dumps(canonical, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


class AdviceCache(Generic[T]):
    def __init__(self, clock: Clock = now_utc, ttl_seconds: float = 300, max_entries: int = 256):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._clock = clock
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Tuple[datetime, T]]" = OrderedDict()
        self._inflight: Dict[str, "asyncio.Task[T]"] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[T]:
        cached = self._entries.get(key)
        if cached is None:
            return None

        stored_at, value = cached
        if (self._clock() - stored_at).total_seconds() >= self.ttl_seconds:
            del self._entries[key]
            return None

        self._entries.move_to_end(key)
        return copy.deepcopy(value)

    def set(self, key: str, value: T) -> None:
        self._entries[key] = (self._clock(), value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Advice cache evicted {evicted[:12]}")

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_compute(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Return the cached value for key, or compute it once

        Args:
            key: Cache key (request fingerprint)
            factory: Zero-argument coroutine function producing the value

        Returns:
            Private copy of the cached or freshly computed value
        """
        value = self.get(key)
        if value is not None:
            self.hits += 1
            logger.debug(f"Advice cache hit {key[:12]}")
            return value

        task = self._inflight.get(key)
        if task is None:
            self.misses += 1
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._on_done(key, done))
        else:
            logger.debug(f"Advice cache joined in-flight computation {key[:12]}")

        # shield: one cancelled caller must not cancel the shared computation
        return copy.deepcopy(await asyncio.shield(task))

    def _on_done(self, key: str, task: "asyncio.Task[T]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug(f"Advice computation failed for {key[:12]}: {exc}")
            return
        self.set(key, task.result())

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "entries": len(self._entries),
            "in_flight": len(self._inflight),
            "hits": self.hits,
            "misses": self.misses,
        }
