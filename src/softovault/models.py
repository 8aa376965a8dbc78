"""Pydantic models shared across softovault modules.

:class:`ClientConfig` is the single, immutable configuration object handed to
the executor, the cache and the :class:`~softovault.vault.Vault` façade. It is
built by :func:`~softovault.config.resolve_config`, which layers explicit
overrides over environment defaults over the constants below.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_API_URL = "https://softovault.com/api/vault"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_CACHE_TTL = 300.0


class ClientConfig(BaseModel):
    """Resolved client settings, fixed for the lifetime of a :class:`~softovault.vault.Vault`.

    Durations are in seconds. ``api_key`` is excluded from ``repr`` so the
    configuration can be logged without leaking the credential.

    Example::

        ClientConfig(api_key="sv_live_123", timeout=5, max_retries=1)
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(min_length=1, repr=False, description="Vault access key")
    api_url: str = Field(default=DEFAULT_API_URL, description="Base API URL")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, description="Per-attempt timeout in seconds"
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES, ge=0, description="Retries after the first attempt"
    )
    cache_enabled: bool = Field(default=True, description="Enable in-memory caching")
    cache_ttl: float = Field(
        default=DEFAULT_CACHE_TTL, gt=0, description="Cache TTL in seconds"
    )
