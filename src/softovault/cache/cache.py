"""In-memory TTL cache for vault read results.

Entries are keyed by a namespaced request identity (see :func:`secret_key`
and :data:`ALL_SECRETS_KEY`) and expire ``ttl`` seconds after they were
stored. Expiry is lazy: an expired entry reads as a miss but stays in the
table (and in :meth:`TTLCache.stats`) until it is overwritten or the cache
is cleared.

Nothing is written to disk; the cache lives and dies with the process.
"""

from __future__ import annotations

import time
from typing import Any, Callable, NamedTuple

ALL_SECRETS_KEY = "secrets:all"
"""Cache key for the full secret listing."""

_SECRET_PREFIX = "secret:"


def secret_key(name: str) -> str:
    """Cache key for a single secret. Never collides with :data:`ALL_SECRETS_KEY`."""
    return f"{_SECRET_PREFIX}{name}"


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()
"""Sentinel returned by :meth:`TTLCache.get` on a miss, so ``None`` can be cached."""


class CacheEntry(NamedTuple):
    """A cached value and the clock reading at which it was stored."""

    value: Any
    stored_at: float


class TTLCache:
    """Per-entry expiring cache with explicit invalidation.

    Each key maps to one immutable :class:`CacheEntry`, replaced as a whole
    on every :meth:`set`, so a reader never sees a value paired with another
    value's timestamp.

    Args:
        ttl: Time-to-live in seconds.
        enabled: When ``False``, :meth:`get` always misses and :meth:`set`
            does nothing.
        clock: Monotonic clock in seconds. Injectable for tests.

    Example::

        cache = TTLCache(ttl=300)
        cache.set(secret_key("DB_URL"), "postgres://...")
        value = cache.get(secret_key("DB_URL"))
    """

    def __init__(
        self,
        ttl: float,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._enabled = enabled
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str, default: Any = MISSING) -> Any:
        """Return the value stored under *key* if it is still valid.

        Args:
            key: Cache key.
            default: Returned on a miss, an expired entry, or when the cache
                is disabled.
        """
        if not self._enabled:
            return default
        entry = self._entries.get(key)
        if entry is None or not self._is_valid(entry):
            return default
        return entry.value

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any previous entry."""
        if not self._enabled:
            return
        self._entries[key] = CacheEntry(value, self._clock())

    def clear(self) -> None:
        """Remove every entry, expired or not."""
        self._entries.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            ``{"enabled": False}`` for a disabled cache. Otherwise a dict
            with ``enabled``, ``size`` (stored entries, including expired
            ones), ``ttl_seconds``, and ``keys`` (every stored key).
        """
        if not self._enabled:
            return {"enabled": False}
        keys = list(self._entries)
        return {
            "enabled": True,
            "size": len(keys),
            "ttl_seconds": self._ttl,
            "keys": keys,
        }

    def __contains__(self, key: object) -> bool:
        """``key in cache`` is true only for a valid (unexpired) entry."""
        if not self._enabled or not isinstance(key, str):
            return False
        entry = self._entries.get(key)
        return entry is not None and self._is_valid(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def _is_valid(self, entry: CacheEntry) -> bool:
        return (self._clock() - entry.stored_at) < self._ttl
