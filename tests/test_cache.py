"""Tests for the availability snapshot cache."""

from datetime import date

from booking_calculator.cache import AvailabilityCache, build_cache_key
from booking_calculator.models import AvailabilitySnapshot


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def snapshot(listing_id="listing-1", start=date(2026, 11, 1), end=date(2026, 11, 30)):
    return AvailabilitySnapshot(listing_id=listing_id, window_start=start, window_end=end)


def test_key_is_listing_and_window():
    assert build_cache_key("abc", date(2026, 11, 1), date(2026, 11, 30)) == ("abc", date(2026, 11, 1), date(2026, 11, 30))


def test_hit_within_ttl_and_expiry():
    clock = FakeClock()
    cache = AvailabilityCache(ttl_seconds=300, clock=clock)
    key = build_cache_key("listing-1", date(2026, 11, 1), date(2026, 11, 30))
    value = snapshot()
    cache.set(key, value)

    clock.now += 299
    assert cache.get(key) is value

    clock.now += 1
    assert cache.get(key) is None
    assert len(cache) == 0


def test_windows_are_cached_separately():
    cache = AvailabilityCache(clock=FakeClock())
    november = build_cache_key("listing-1", date(2026, 11, 1), date(2026, 11, 30))
    december = build_cache_key("listing-1", date(2026, 12, 1), date(2026, 12, 31))
    cache.set(november, snapshot())
    assert november in cache
    assert december not in cache


def test_invalidate_drops_all_windows_of_listing():
    cache = AvailabilityCache(clock=FakeClock())
    keys = [
        build_cache_key("listing-1", date(2026, 11, 1), date(2026, 11, 30)),
        build_cache_key("listing-1", date(2026, 12, 1), date(2026, 12, 31)),
    ]
    other = build_cache_key("listing-2", date(2026, 11, 1), date(2026, 11, 30))
    for key in keys:
        cache.set(key, snapshot())
    cache.set(other, snapshot("listing-2"))

    assert cache.invalidate("listing-1") == 2
    assert all(cache.get(key) is None for key in keys)
    assert cache.get(other) is not None
    assert cache.invalidate("listing-1") == 0


def test_clear():
    cache = AvailabilityCache(clock=FakeClock())
    cache.set(build_cache_key("listing-1", date(2026, 11, 1), date(2026, 11, 30)), snapshot())
    cache.clear()
    assert len(cache) == 0


def test_expired_entries_do_not_accumulate():
    clock = FakeClock()
    cache = AvailabilityCache(ttl_seconds=1, clock=clock)
    for index in range(1000):
        cache.set(build_cache_key(f"listing-{index}", date(2026, 11, 1), date(2026, 11, 30)), snapshot())
        clock.now += 10
    assert len(cache) == 1


def test_prune_removes_only_expired_entries():
    clock = FakeClock()
    cache = AvailabilityCache(ttl_seconds=300, clock=clock)
    old = build_cache_key("listing-1", date(2026, 11, 1), date(2026, 11, 30))
    cache.set(old, snapshot())
    clock.now += 200
    fresh = build_cache_key("listing-2", date(2026, 11, 1), date(2026, 11, 30))
    cache.set(fresh, snapshot("listing-2"))

    clock.now += 100
    assert cache.prune() == 1
    assert cache.get(old) is None
    assert cache.get(fresh) is not None
