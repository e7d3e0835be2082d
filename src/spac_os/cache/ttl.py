"""
spac_os.cache.ttl

Ephemeral result cache.

Responsibilities:
- Memoize expensive/rate-limited lookups for a fixed TTL within one process.
- Expire lazily on read; evict the oldest entries in bulk when full.
- Report whether a result was served from cache (`cached` flag on responses).
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from spac_os.observability.logging import get_logger

T = TypeVar("T")

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    key: str
    value: T
    expires_at: float


@dataclass(frozen=True, slots=True)
class CacheResult(Generic[T]):
    value: T
    cached: bool


class TTLCache(Generic[T]):
    """
    Insertion-ordered map with per-entry expiry.

    Eviction is not LRU: when a new key would push the map past `max_entries`,
    the oldest `evict_fraction` of entries (by insertion) are dropped first.
    """

    def __init__(
        self,
        *,
        max_entries: int = 100,
        ttl_seconds: float = 300.0,
        evict_fraction: float = 0.2,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if not 0 < evict_fraction <= 1:
            raise ValueError("evict_fraction must be in (0, 1]")
        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._evict_count = max(1, math.ceil(max_entries * evict_fraction))
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def get(self, key: str) -> T | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: T) -> None:
        with self._lock:
            if key in self._entries:
                # Re-insert so the refreshed entry counts as newest.
                del self._entries[key]
            elif len(self._entries) >= self._max_entries:
                self._evict_oldest()
            self._entries[key] = CacheEntry(
                key=key, value=value, expires_at=self._clock() + self._ttl
            )

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if now > e.expires_at]
            for k in expired:
                del self._entries[k]
            return len(expired)

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[T]]) -> CacheResult[T]:
        hit = self.get(key)
        if hit is not None:
            log.debug("cache_hit", key=key)
            return CacheResult(value=hit, cached=True)

        # Loader errors propagate and leave the cache untouched.
        value = await loader()
        self.set(key, value)
        log.debug("cache_miss", key=key, size=len(self._entries))
        return CacheResult(value=value, cached=False)

    def _evict_oldest(self) -> None:
        oldest = list(self._entries)[: self._evict_count]
        for k in oldest:
            del self._entries[k]
        log.info("cache_evicted", evicted=len(oldest), remaining=len(self._entries))


def filings_cache_key(
    cik: str, page: int, page_size: int, form_types: Iterable[str] | None = None
) -> str:
    forms = ",".join(form_types) if form_types else "all"
    return f"filings:{cik}:{page}:{page_size}:{forms}"


def filing_cache_key(cik: str, accession_number: str) -> str:
    return f"filing:{cik}:{accession_number}"


# --- Module Notes -----------------------------------------------------------
# `None` is treated as "absent", so loaders must not return None for a cacheable
# result. Swap this class for a shared key/value store by keeping the same methods.
