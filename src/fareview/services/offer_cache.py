# src/fareview/services/offer_cache.py

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from fareview.core.errors import FetchError
from fareview.core.models import SearchParams, SearchResponse
from fareview.providers.base import FlightSearchProvider

logger = logging.getLogger(__name__)

CacheKey = Tuple[Any, ...]


@dataclass(frozen=True)
class CacheEntry:
    data: Optional[SearchResponse]
    timestamp: float
    status: str  # "pending" | "ready"


class OfferCache:
    """
    One fetched batch of raw offers per search key.

    Contract:
      - fetch(params): cached batch while fresh, else exactly one provider call
        per key even when several callers ask at once
      - warm(params): same as fetch, but never raises (prefetch hint)
      - entries older than `stale_after` seconds are refetched on the next read,
        entries older than `evict_after` seconds are dropped by evict_expired()
      - failed fetches leave no entry behind, so the next read retries
    """

    def __init__(
        self,
        provider: FlightSearchProvider,
        max_results: int = 50,
        stale_after: float = 300.0,
        evict_after: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if evict_after < stale_after:
            raise ValueError("evict_after must be >= stale_after")
        self.provider = provider
        self.max_results = max_results
        self.stale_after = stale_after
        self.evict_after = evict_after
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._inflight: Dict[CacheKey, asyncio.Future] = {}

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return entry.status == "ready" and (self._clock() - entry.timestamp) < self.stale_after

    def entry(self, params: SearchParams) -> Optional[CacheEntry]:
        return self._entries.get(params.cache_key())

    def peek(self, params: SearchParams) -> Optional[SearchResponse]:
        """Fresh cached batch for `params`, without fetching."""
        entry = self._entries.get(params.cache_key())
        if entry is not None and self._is_fresh(entry):
            return entry.data
        return None

    async def _load(self, params: SearchParams, key: CacheKey) -> SearchResponse:
        max_results = params.max_results or self.max_results
        previous = self._entries.get(key)
        if previous is None:
            self._entries[key] = CacheEntry(data=None, timestamp=self._clock(), status="pending")

        logger.info("Fetching offers for %s -> %s (%s)", params.origin, params.destination, params.departure_date)
        data = None
        try:
            data = await asyncio.to_thread(self.provider.search, params, max_results)
        except Exception as e:
            raise FetchError(f"Failed to fetch offers for {params.origin} -> {params.destination}: {e}") from e
        finally:
            self._inflight.pop(key, None)
            # failed or cancelled: drop the pending placeholder
            if data is None and previous is None:
                self._entries.pop(key, None)

        self._entries[key] = CacheEntry(data=data, timestamp=self._clock(), status="ready")
        return data

    async def fetch(self, params: SearchParams) -> SearchResponse:
        self.evict_expired()
        key = params.cache_key()

        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry):
            logger.debug("Offer cache hit for %s", key)
            return entry.data

        task = self._inflight.get(key)
        if task is None:
            logger.debug("Offer cache miss for %s", key)
            task = asyncio.ensure_future(self._load(params, key))
            self._inflight[key] = task
        # shield: one caller giving up must not cancel the shared fetch
        return await asyncio.shield(task)

    async def warm(self, params: SearchParams) -> None:
        try:
            await self.fetch(params)
        except Exception as e:
            logger.warning("Prefetch failed for %s: %s", params.cache_key(), e)

    def evict_expired(self) -> int:
        now = self._clock()
        expired = [
            k for k, e in self._entries.items()
            if e.status == "ready" and (now - e.timestamp) >= self.evict_after
        ]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
