"""In-memory read caching for softovault.

This package provides :class:`TTLCache`, the per-entry expiring cache used
by :class:`~softovault.vault.Vault` to avoid repeated network calls for the
same secret. It is controlled by the ``cache_enabled`` and ``cache_ttl``
fields of :class:`~softovault.models.ClientConfig`.
"""

from softovault.cache.cache import (
    ALL_SECRETS_KEY,
    MISSING,
    CacheEntry,
    TTLCache,
    secret_key,
)

__all__ = ["ALL_SECRETS_KEY", "MISSING", "CacheEntry", "TTLCache", "secret_key"]
