"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~softovault.exceptions.VaultError` subclass.
Shell scripts that call ``softovault`` can inspect the exit code to tell a
missing secret apart from an unreachable vault without parsing stderr.

Example::

    $ softovault get DATABASE_URL
    $ echo $?
    4   # EXIT_NOT_FOUND -- the vault has no secret with that key
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (also used by ``exists`` for a missing key)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or configuration."""

EXIT_AUTH_FAILURE = 3
"""The vault rejected the access key (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested secret does not exist (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The vault kept answering with 429 or 5xx until retries ran out."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error or timeout persisted until retries ran out."""

EXIT_REQUEST_REJECTED = 7
"""The vault rejected the request with a non-retryable 4xx status."""

EXIT_MALFORMED_RESPONSE = 8
"""The vault answered successfully but the body could not be understood."""

EXIT_PARTIAL_FAILURE = 9
"""A batch lookup with ``--fail-on-missing`` failed for at least one key."""
