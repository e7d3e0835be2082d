"""
tests.test_ttl_cache

Unit tests for the process-local result cache.
"""

from __future__ import annotations

import pytest

from spac_os.cache.ttl import TTLCache, filing_cache_key, filings_cache_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


class CountingLoader:
    def __init__(self, value: object = "payload") -> None:
        self.calls = 0
        self.value = value

    async def __call__(self) -> object:
        self.calls += 1
        return self.value


@pytest.mark.asyncio
async def test_second_lookup_is_served_from_cache() -> None:
    cache: TTLCache[object] = TTLCache(ttl_seconds=300, clock=FakeClock())
    loader = CountingLoader()

    first = await cache.get_or_load("k", loader)
    second = await cache.get_or_load("k", loader)

    assert (first.value, first.cached) == ("payload", False)
    assert (second.value, second.cached) == ("payload", True)
    assert loader.calls == 1


@pytest.mark.asyncio
async def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache: TTLCache[object] = TTLCache(ttl_seconds=300, clock=clock)
    loader = CountingLoader()

    await cache.get_or_load("k", loader)
    clock.now += 299
    assert (await cache.get_or_load("k", loader)).cached is True

    clock.now += 2
    result = await cache.get_or_load("k", loader)
    assert result.cached is False
    assert loader.calls == 2


def test_expired_entry_is_dropped_on_read() -> None:
    clock = FakeClock()
    cache: TTLCache[int] = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("a", 1)
    clock.now += 11

    assert cache.get("a") is None
    assert len(cache) == 0


def test_full_cache_evicts_oldest_fifth() -> None:
    cache: TTLCache[int] = TTLCache(max_entries=100, clock=FakeClock())
    for i in range(101):
        cache.set(f"k{i}", i)

    assert len(cache) == 81
    assert all(f"k{i}" not in cache for i in range(20))
    assert cache.get("k20") == 20
    assert cache.get("k100") == 100


def test_refreshing_existing_key_does_not_evict() -> None:
    cache: TTLCache[int] = TTLCache(max_entries=3, clock=FakeClock())
    for key in ("a", "b", "c"):
        cache.set(key, 1)
    cache.set("a", 2)

    assert len(cache) == 3
    assert cache.get("a") == 2


@pytest.mark.asyncio
async def test_loader_failure_is_not_cached() -> None:
    cache: TTLCache[object] = TTLCache(clock=FakeClock())

    async def boom() -> object:
        raise RuntimeError("upstream down")

    with pytest.raises(RuntimeError):
        await cache.get_or_load("k", boom)
    assert len(cache) == 0

    loader = CountingLoader()
    assert (await cache.get_or_load("k", loader)).cached is False


def test_purge_and_invalidate() -> None:
    clock = FakeClock()
    cache: TTLCache[int] = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("old", 1)
    clock.now += 5
    cache.set("new", 2)
    clock.now += 6

    assert cache.purge_expired() == 1
    assert cache.invalidate("new") is True
    assert cache.invalidate("new") is False


@pytest.mark.parametrize(
    "kwargs",
    [{"max_entries": 0}, {"ttl_seconds": 0}, {"evict_fraction": 0}, {"evict_fraction": 1.5}],
)
def test_rejects_bad_configuration(kwargs) -> None:
    with pytest.raises(ValueError):
        TTLCache(**kwargs)


def test_cache_keys_distinguish_queries() -> None:
    assert filings_cache_key("0000000001", 1, 20) == "filings:0000000001:1:20:all"
    assert filings_cache_key("0000000001", 1, 20, ["S1"]) != filings_cache_key(
        "0000000001", 1, 20, ["S4"]
    )
    assert filing_cache_key("0000000001", "0001-24-000001") == "filing:0000000001:0001-24-000001"
