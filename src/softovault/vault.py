"""The :class:`Vault` façade -- secret-level operations over the executor and cache.

Every read first consults the :class:`~softovault.cache.TTLCache`; on a miss
the :class:`~softovault.client.RequestExecutor` fetches from the vault (with
timeout, retry, and backoff) and the result is cached.

The single-secret entries (``secret:<key>``) and the full listing
(``secrets:all``) are cached independently. A cached listing can therefore be
older than a single value fetched later for the same key; :meth:`Vault.clear_cache`
resets both.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Mapping, Optional, Sequence
from urllib.parse import quote

import httpx

from softovault.cache import ALL_SECRETS_KEY, MISSING, TTLCache, secret_key
from softovault.client.executor import RequestExecutor, SleepFunc
from softovault.config import resolve_config
from softovault.exceptions import (
    AggregateError,
    HTTPStatusError,
    InvalidArgumentError,
    KeyFailure,
    MalformedResponseError,
    NotFoundError,
    VaultError,
)
from softovault.models import ClientConfig
from softovault.output import get_output

INFO_PATH = "/info"
ALL_SECRETS_PATH = "/all"

# encodeURIComponent leaves these unescaped as well.
_KEY_SAFE_CHARS = "!~*'()"


def secret_path(key: str) -> str:
    """Request path for a single secret, with the key URL-encoded."""
    return f"/key/{quote(key, safe=_KEY_SAFE_CHARS)}"


class Vault:
    """Async client for reading secrets from a SoftoVault vault.

    Configuration is resolved once, here. Either pass a ready
    :class:`~softovault.models.ClientConfig` as ``config`` or any of the
    individual settings; the latter are layered over the environment and
    the built-in defaults by :func:`~softovault.config.resolve_config`.

    Args:
        api_key: Vault access key. Falls back to ``SOFTOVAULT_API_KEY``,
            then ``VAULT_ACCESS_KEY``.
        api_url: Base API URL.
        timeout: Per-attempt timeout in seconds.
        max_retries: Retries after the first attempt.
        cache: Enable the in-memory cache.
        cache_ttl: Cache time-to-live in seconds.
        config: A fully resolved configuration. Mutually exclusive with the
            individual settings above.
        env: Environment snapshot used for resolution instead of
            ``os.environ``.
        transport: httpx transport override (tests, proxies).
        sleep: Coroutine function used for backoff delays.
        clock: Monotonic clock used for cache expiry.

    Raises:
        ConfigError: If no access key is available or a setting is invalid.
        InvalidArgumentError: If ``config`` is combined with individual
            settings.

    Example::

        async with Vault("sv_live_123") as vault:
            db_url = await vault.get("DATABASE_URL")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        cache: Optional[bool] = None,
        cache_ttl: Optional[float] = None,
        config: Optional[ClientConfig] = None,
        env: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[SleepFunc] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        overrides = (api_key, api_url, timeout, max_retries, cache, cache_ttl)
        if config is not None:
            if any(value is not None for value in overrides):
                raise InvalidArgumentError(
                    "Pass either a ClientConfig or individual settings, not both"
                )
        else:
            config = resolve_config(
                api_key,
                api_url=api_url,
                timeout=timeout,
                max_retries=max_retries,
                cache_enabled=cache,
                cache_ttl=cache_ttl,
                env=env,
            )

        self._config = config
        self._executor = RequestExecutor(config, transport=transport, sleep=sleep)
        self._cache = TTLCache(config.cache_ttl, enabled=config.cache_enabled, clock=clock)

    @classmethod
    def from_env(cls, **kwargs: Any) -> Vault:
        """Create a vault whose access key comes only from the environment.

        Args:
            **kwargs: Any :class:`Vault` keyword except ``api_key``.
        """
        if "api_key" in kwargs:
            raise InvalidArgumentError("from_env() reads the access key from the environment")
        return cls(None, **kwargs)

    @staticmethod
    def is_valid_api_key(api_key: Any) -> bool:
        """Return ``True`` if *api_key* has a valid format (a non-empty string)."""
        return isinstance(api_key, str) and len(api_key) > 0

    @property
    def config(self) -> ClientConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> Vault:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self._executor.aclose()

    # ------------------------------------------------------------------ #
    # Secret operations
    # ------------------------------------------------------------------ #

    async def get(self, key: str, *, use_cache: bool = True) -> Any:
        """Get a single secret value by key.

        Args:
            key: The secret key.
            use_cache: Read from and store into the cache (default ``True``).

        Returns:
            The ``value`` field of the vault's response (``None`` if the
            response has no such field).

        Raises:
            InvalidArgumentError: If *key* is not a non-empty string.
            NotFoundError: If the vault has no secret named *key*.
            MalformedResponseError: If the response is not a JSON object.
        """
        if not isinstance(key, str) or not key:
            raise InvalidArgumentError("Secret key must be a non-empty string")

        cache_key = secret_key(key)
        if use_cache:
            cached = self._cache.get(cache_key)
            if cached is not MISSING:
                get_output().debug(f"Cache hit: {cache_key}")
                return cached

        try:
            data = await self._executor.execute(secret_path(key))
        except HTTPStatusError as exc:
            if exc.status == 404:
                raise NotFoundError(key, status_text=exc.status_text, body=exc.body) from exc
            raise

        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a JSON object for secret '{key}', got {type(data).__name__}"
            )
        value = data.get("value")

        if use_cache:
            self._cache.set(cache_key, value)
        return value

    async def get_all(self, *, use_cache: bool = True) -> dict[str, Any]:
        """Get every secret in the vault as a ``{key: value}`` dict.

        The caller owns the returned dict; changing it does not touch the
        cached listing.

        Raises:
            MalformedResponseError: If the response is not a JSON object.
        """
        if use_cache:
            cached = self._cache.get(ALL_SECRETS_KEY)
            if cached is not MISSING:
                get_output().debug(f"Cache hit: {ALL_SECRETS_KEY}")
                return dict(cached)

        data = await self._executor.execute(ALL_SECRETS_PATH)
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a JSON object for the secret listing, got {type(data).__name__}"
            )
        secrets = data.get("secrets") or {}

        if use_cache:
            self._cache.set(ALL_SECRETS_KEY, dict(secrets))
        return secrets

    async def get_many(
        self,
        keys: Sequence[str],
        *,
        use_cache: bool = True,
        fail_on_missing: bool = False,
    ) -> dict[str, Any]:
        """Get several secrets concurrently.

        Every key is fetched with :meth:`get` in its own task; the call
        returns once all of them have finished.

        Args:
            keys: A list or tuple of secret keys.
            use_cache: Forwarded to :meth:`get`.
            fail_on_missing: When ``False`` (default) a key that fails maps
                to ``None``. When ``True``, any failure raises
                :class:`~softovault.exceptions.AggregateError` listing every
                failed key, after all keys have completed.

        Returns:
            ``{key: value_or_None}`` in the order of *keys*.

        Raises:
            InvalidArgumentError: If *keys* is not a list/tuple of strings.
            AggregateError: See ``fail_on_missing``.
        """
        if not isinstance(keys, (list, tuple)) or not all(isinstance(k, str) for k in keys):
            raise InvalidArgumentError("Keys must be a list of strings")

        async def _fetch(key: str) -> tuple[str, Any, Optional[VaultError]]:
            try:
                return key, await self.get(key, use_cache=use_cache), None
            except VaultError as exc:
                return key, None, exc

        outcomes = await asyncio.gather(*(_fetch(key) for key in keys))

        results: dict[str, Any] = {}
        failures: list[KeyFailure] = []
        for key, value, error in outcomes:
            results[key] = value
            if error is not None:
                get_output().debug(f"Failed to fetch '{key}': {error}")
                failures.append(KeyFailure(key, error))

        if fail_on_missing and failures:
            raise AggregateError(failures)
        return results

    async def exists(self, key: str) -> bool:
        """Return whether a secret named *key* exists.

        Raises:
            VaultError: Any failure other than "not found".
        """
        try:
            await self.get(key)
        except VaultError as exc:
            if _is_not_found(exc):
                return False
            raise
        return True

    async def get_vault_info(self) -> Any:
        """Return vault metadata (never cached)."""
        return await self._executor.execute(INFO_PATH)

    # ------------------------------------------------------------------ #
    # Cache management
    # ------------------------------------------------------------------ #

    def clear_cache(self) -> None:
        """Drop every cached secret and listing."""
        self._cache.clear()

    def get_cache_stats(self) -> dict[str, Any]:
        """Return cache statistics (see :meth:`~softovault.cache.TTLCache.stats`)."""
        return self._cache.stats()


def _is_not_found(exc: VaultError) -> bool:
    if isinstance(exc, NotFoundError):
        return True
    if isinstance(exc, HTTPStatusError) and exc.status == 404:
        return True
    return "not found" in str(exc)
