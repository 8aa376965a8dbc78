"""Tests for the TTLCache module."""

from __future__ import annotations

import pytest

from softovault.cache import ALL_SECRETS_KEY, MISSING, TTLCache, secret_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(ttl=300, clock=clock)


@pytest.fixture()
def disabled_cache(clock: FakeClock) -> TTLCache:
    return TTLCache(ttl=300, enabled=False, clock=clock)


# ------------------------------------------------------------------ #
# Core get/set behaviour
# ------------------------------------------------------------------ #


class TestGetSet:
    def test_set_and_get(self, cache: TTLCache) -> None:
        cache.set("secret:A", "alpha")
        assert cache.get("secret:A") == "alpha"

    def test_miss_returns_sentinel(self, cache: TTLCache) -> None:
        assert cache.get("secret:missing") is MISSING

    def test_miss_returns_custom_default(self, cache: TTLCache) -> None:
        assert cache.get("secret:missing", None) is None

    def test_none_value_is_a_hit(self, cache: TTLCache) -> None:
        """A stored None must be distinguishable from a miss."""
        cache.set("secret:empty", None)
        assert cache.get("secret:empty") is None
        assert "secret:empty" in cache

    def test_set_overwrites_whole_entry(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("secrets:all", {"A": "1", "B": "2"})
        clock.now = 10
        cache.set("secrets:all", {"C": "3"})
        assert cache.get("secrets:all") == {"C": "3"}

    def test_overwrite_refreshes_timestamp(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("secret:A", "old")
        clock.now = 299
        cache.set("secret:A", "new")
        clock.now = 500
        assert cache.get("secret:A") == "new"


# ------------------------------------------------------------------ #
# Expiry
# ------------------------------------------------------------------ #


class TestExpiry:
    def test_valid_just_before_ttl(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("secret:A", "alpha")
        clock.now = 299.999
        assert cache.get("secret:A") == "alpha"

    def test_expired_exactly_at_ttl(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("secret:A", "alpha")
        clock.now = 300
        assert cache.get("secret:A") is MISSING
        assert "secret:A" not in cache

    @pytest.mark.parametrize("elapsed, valid", [(0, True), (1, True), (4.99, True), (5, False), (60, False)])
    def test_validity_boundary(self, clock: FakeClock, elapsed: float, valid: bool) -> None:
        cache = TTLCache(ttl=5, clock=clock)
        cache.set("k", "v")
        clock.now = elapsed
        assert (cache.get("k") is not MISSING) is valid

    def test_expired_entries_are_not_evicted(self, cache: TTLCache, clock: FakeClock) -> None:
        """Expiry is lazy: expired keys stay in the inventory until overwritten."""
        cache.set("secret:A", "alpha")
        clock.now = 1000
        assert cache.get("secret:A") is MISSING
        assert len(cache) == 1
        assert cache.stats()["keys"] == ["secret:A"]

    def test_expired_entry_replaced_by_set(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("secret:A", "alpha")
        clock.now = 1000
        cache.set("secret:A", "alpha-2")
        assert cache.get("secret:A") == "alpha-2"
        assert len(cache) == 1


# ------------------------------------------------------------------ #
# Clear
# ------------------------------------------------------------------ #


class TestClear:
    def test_clear_removes_everything(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("secret:A", "alpha")
        cache.set(ALL_SECRETS_KEY, {"A": "alpha"})
        clock.now = 1000
        cache.set("secret:B", "bravo")

        cache.clear()

        assert len(cache) == 0
        assert cache.get("secret:B") is MISSING
        assert cache.stats()["keys"] == []


# ------------------------------------------------------------------ #
# Disabled cache
# ------------------------------------------------------------------ #


class TestDisabledCache:
    def test_get_always_misses(self, disabled_cache: TTLCache) -> None:
        disabled_cache.set("secret:A", "alpha")
        assert disabled_cache.get("secret:A") is MISSING

    def test_set_is_noop(self, disabled_cache: TTLCache) -> None:
        disabled_cache.set("secret:A", "alpha")
        assert len(disabled_cache) == 0
        assert "secret:A" not in disabled_cache

    def test_stats_only_enabled_flag(self, disabled_cache: TTLCache) -> None:
        assert disabled_cache.stats() == {"enabled": False}

    def test_clear_does_not_raise(self, disabled_cache: TTLCache) -> None:
        disabled_cache.clear()


# ------------------------------------------------------------------ #
# Stats and keys
# ------------------------------------------------------------------ #


class TestStats:
    def test_stats_when_enabled(self, cache: TTLCache) -> None:
        cache.set("secret:A", "alpha")
        cache.set(ALL_SECRETS_KEY, {})
        stats = cache.stats()
        assert stats == {
            "enabled": True,
            "size": 2,
            "ttl_seconds": 300,
            "keys": ["secret:A", ALL_SECRETS_KEY],
        }

    def test_stats_empty(self, cache: TTLCache) -> None:
        assert cache.stats() == {"enabled": True, "size": 0, "ttl_seconds": 300, "keys": []}


class TestKeys:
    def test_secret_key_namespace(self) -> None:
        assert secret_key("DB_URL") == "secret:DB_URL"

    def test_single_and_listing_keys_never_collide(self) -> None:
        """Even a secret literally named 'all' gets its own slot."""
        assert secret_key("all") != ALL_SECRETS_KEY
        assert secret_key("s:all") != ALL_SECRETS_KEY

    def test_listing_and_single_are_independent(self, cache: TTLCache) -> None:
        cache.set(ALL_SECRETS_KEY, {"A": "old"})
        cache.set(secret_key("A"), "new")
        assert cache.get(ALL_SECRETS_KEY) == {"A": "old"}
        assert cache.get(secret_key("A")) == "new"
