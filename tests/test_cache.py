"""
Unit tests for the report result cache.
"""

import pytest

from slipkit.cache import TTLCache


class FakeClock:
    """Manually advanced clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class TestTTLCache:
    """Tests for TTLCache."""

    def test_get_and_set(self, clock):
        cache = TTLCache(ttl_seconds=10, clock=clock)
        cache.set("a", 1)

        assert cache.get("a") == 1
        assert cache.get("missing") is None
        assert cache.get("missing", "default") == "default"

    def test_entries_expire(self, clock):
        cache = TTLCache(ttl_seconds=10, clock=clock)
        cache.set("a", 1)

        clock.advance(9)
        assert cache.get("a") == 1
        clock.advance(1)
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_least_recently_used_is_evicted(self, clock):
        cache = TTLCache(ttl_seconds=10, capacity=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3
        assert len(cache) == 2

    def test_expired_entries_are_evicted_first(self, clock):
        cache = TTLCache(ttl_seconds=10, capacity=2, clock=clock)
        cache.set("a", 1)
        clock.advance(5)
        cache.set("b", 2)
        clock.advance(6)
        cache.set("c", 3)

        assert cache.get("b") == 2
        assert cache.get("c") == 3

    def test_get_or_compute(self, clock):
        cache = TTLCache(ttl_seconds=10, clock=clock)
        calls = []

        def compute():
            calls.append(1)
            return len(calls)

        assert cache.get_or_compute("k", compute) == 1
        assert cache.get_or_compute("k", compute) == 1
        clock.advance(10)
        assert cache.get_or_compute("k", compute) == 2
        assert len(calls) == 2

    def test_returned_values_are_copies(self, clock):
        """Mutating a returned payload leaves the cached entry intact."""
        cache = TTLCache(ttl_seconds=10, clock=clock)

        first = cache.get_or_compute("k", lambda: {"points": [1]})
        first["points"].append(99)
        second = cache.get_or_compute("k", lambda: {"points": []})
        second["points"].append(100)

        assert cache.get("k") == {"points": [1]}
        assert cache.get("k") is not cache.get("k")

    def test_stored_value_is_a_copy(self, clock):
        cache = TTLCache(ttl_seconds=10, clock=clock)
        payload = {"points": [1]}
        cache.set("k", payload)
        payload["points"].append(2)

        assert cache.get("k") == {"points": [1]}

    def test_zero_ttl_disables_caching(self, clock):
        cache = TTLCache(ttl_seconds=0, clock=clock)
        calls = []

        cache.get_or_compute("k", lambda: calls.append(1))
        cache.get_or_compute("k", lambda: calls.append(1))

        assert len(calls) == 2
        assert len(cache) == 0

    def test_invalidate(self, clock):
        cache = TTLCache(ttl_seconds=10, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)

        cache.invalidate("a")
        assert cache.get("a") is None
        assert cache.get("b") == 2

        cache.invalidate()
        assert len(cache) == 0

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            TTLCache(ttl_seconds=-1)
        with pytest.raises(ValueError):
            TTLCache(capacity=0)
