"""HTTP layer for softovault.

Wraps :mod:`httpx` with credential injection, a per-attempt timeout, and
retry with exponential backoff.

Classes:
    :class:`RequestExecutor` -- runs one logical operation against the vault.

Example::

    from softovault.client import RequestExecutor

    async with RequestExecutor(config) as executor:
        info = await executor.execute("/info")
"""

from softovault.client.executor import (
    RequestExecutor,
    RequestOutcome,
    RetryableFailure,
    Success,
    TerminalFailure,
)

__all__ = [
    "RequestExecutor",
    "RequestOutcome",
    "RetryableFailure",
    "Success",
    "TerminalFailure",
]
