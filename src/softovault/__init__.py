"""softovault -- async client for the SoftoVault secret store.

Fetches secrets over HTTPS with bounded retry and exponential backoff, a
per-attempt timeout, and a time-bounded in-memory read cache.

Typical usage::

    from softovault import Vault

    async with Vault.from_env() as vault:
        db_url = await vault.get("DATABASE_URL")
        creds = await vault.get_many(["API_KEY", "API_SECRET"])

The package also installs a ``softovault`` command for shell scripts.

Modules:
    vault: The :class:`Vault` façade (public operations).
    client: Retrying request executor on top of httpx.
    cache: In-memory TTL cache.
    config: Configuration resolution (arguments, environment, defaults).
    models: Pydantic configuration model.
    exceptions: Exception hierarchy with failure kinds and exit codes.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from softovault.exceptions import (  # noqa: E402
    AggregateError,
    AuthError,
    ConfigError,
    ConnectionError_,
    FailureKind,
    InvalidArgumentError,
    MalformedResponseError,
    NotFoundError,
    RequestTimeoutError,
    RetryableHTTPError,
    TerminalHTTPError,
    VaultError,
)
from softovault.models import ClientConfig  # noqa: E402
from softovault.vault import Vault  # noqa: E402

__all__ = [
    "AggregateError",
    "AuthError",
    "ClientConfig",
    "ConfigError",
    "ConnectionError_",
    "FailureKind",
    "InvalidArgumentError",
    "MalformedResponseError",
    "NotFoundError",
    "RequestTimeoutError",
    "RetryableHTTPError",
    "TerminalHTTPError",
    "Vault",
    "VaultError",
    "__version__",
]
