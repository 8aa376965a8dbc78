"""Configuration resolution with explicit precedence and an injectable environment.

:func:`resolve_config` produces the :class:`~softovault.models.ClientConfig`
used by a :class:`~softovault.vault.Vault`. Each setting is taken from the
first source that provides it:

1. Explicit keyword arguments (the ``Vault`` constructor or CLI flags).
2. Environment variables, read from an ``env`` mapping snapshot.
3. Built-in defaults from :mod:`softovault.models`.

The access key has two environment fallbacks, checked in order:
``SOFTOVAULT_API_KEY`` then ``VAULT_ACCESS_KEY``. If none of the sources
provides a key, resolution fails with :class:`~softovault.exceptions.ConfigError`.

Passing ``env`` explicitly keeps callers (and tests) independent of the
process environment; when omitted, a copy of :data:`os.environ` is taken at
call time.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from softovault.exceptions import ConfigError
from softovault.models import ClientConfig

ENV_API_KEY = "SOFTOVAULT_API_KEY"
ENV_ACCESS_KEY = "VAULT_ACCESS_KEY"
ENV_API_URL = "SOFTOVAULT_API_URL"
ENV_TIMEOUT = "SOFTOVAULT_TIMEOUT"
ENV_MAX_RETRIES = "SOFTOVAULT_MAX_RETRIES"
ENV_CACHE = "SOFTOVAULT_CACHE"
ENV_CACHE_TTL = "SOFTOVAULT_CACHE_TTL"

_FALSE_VALUES = frozenset({"0", "false", "no", "off"})
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


# --- Environment parsing ---


def _env_str(env: Mapping[str, str], name: str) -> Optional[str]:
    """Return a non-empty environment value, or ``None``."""
    value = env.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_float(env: Mapping[str, str], name: str) -> Optional[float]:
    raw = _env_str(env, name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable '{name}' must be a number, got {raw!r}") from exc


def _env_int(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = _env_str(env, name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable '{name}' must be an integer, got {raw!r}") from exc


def _env_bool(env: Mapping[str, str], name: str) -> Optional[bool]:
    raw = _env_str(env, name)
    if raw is None:
        return None
    lowered = raw.lower()
    if lowered in _FALSE_VALUES:
        return False
    if lowered in _TRUE_VALUES:
        return True
    raise ConfigError(f"Environment variable '{name}' must be a boolean, got {raw!r}")


def _first(*values: Any) -> Any:
    """Return the first value that is not ``None``."""
    for value in values:
        if value is not None:
            return value
    return None


# --- Precedence resolution ---


def resolve_api_key(
    api_key: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """Resolve the access key: explicit > ``SOFTOVAULT_API_KEY`` > ``VAULT_ACCESS_KEY``.

    Returns:
        The key, or ``None`` when no source provides a non-empty value.
    """
    if env is None:
        env = dict(os.environ)
    if api_key:
        return api_key
    return _env_str(env, ENV_API_KEY) or _env_str(env, ENV_ACCESS_KEY)


def resolve_config(
    api_key: Optional[str] = None,
    *,
    api_url: Optional[str] = None,
    timeout: Optional[float] = None,
    max_retries: Optional[int] = None,
    cache_enabled: Optional[bool] = None,
    cache_ttl: Optional[float] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """Resolve a :class:`~softovault.models.ClientConfig` from all sources.

    Precedence (high to low):
        1. Keyword arguments (``None`` means "not given"; ``0`` and
           ``False`` are honoured)
        2. Environment variables in *env*
        3. Defaults

    Args:
        api_key: Explicit access key.
        api_url: Base API URL override.
        timeout: Per-attempt timeout in seconds.
        max_retries: Number of retries after the first attempt.
        cache_enabled: Enable or disable the in-memory cache.
        cache_ttl: Cache time-to-live in seconds.
        env: Environment snapshot. Defaults to a copy of ``os.environ``.

    Returns:
        The frozen, validated configuration.

    Raises:
        ConfigError: If no access key can be found, an environment value
            cannot be parsed, or a setting fails validation.
    """
    if env is None:
        env = dict(os.environ)

    resolved_key = resolve_api_key(api_key, env)
    if not resolved_key:
        raise ConfigError(
            "Vault access key is required. Provide it as a parameter or set the "
            f"{ENV_API_KEY} (or {ENV_ACCESS_KEY}) environment variable"
        )

    settings: dict[str, Any] = {
        "api_key": resolved_key,
        "api_url": _first(api_url, _env_str(env, ENV_API_URL)),
        "timeout": _first(timeout, _env_float(env, ENV_TIMEOUT)),
        "max_retries": _first(max_retries, _env_int(env, ENV_MAX_RETRIES)),
        "cache_enabled": _first(cache_enabled, _env_bool(env, ENV_CACHE)),
        "cache_ttl": _first(cache_ttl, _env_float(env, ENV_CACHE_TTL)),
    }
    # Unset values fall through to the model defaults.
    settings = {k: v for k, v in settings.items() if v is not None}

    try:
        return ClientConfig.model_validate(settings)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc
