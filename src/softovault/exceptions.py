"""Exception hierarchy for softovault.

All exceptions inherit from :class:`VaultError`, which carries two
class-level tags: an ``exit_code`` from :mod:`softovault.exit_codes` used by
the CLI, and a :class:`FailureKind` so library callers can branch on the
failure category without chains of ``isinstance`` checks.

Subclass hierarchy::

    VaultError
    +-- InvalidArgumentError     (invalid_argument)
    +-- ConfigError              (config)
    +-- HTTPStatusError          (status, status_text, body)
    |   +-- TerminalHTTPError    (terminal_http)
    |   |   +-- AuthError        (terminal_http, 401/403)
    |   |   +-- NotFoundError    (not_found, 404 mapped to a secret key)
    |   +-- RetryableHTTPError   (retryable_http, 429/5xx)
    +-- ConnectionError_         (network)
    |   +-- RequestTimeoutError  (timeout)
    +-- MalformedResponseError   (malformed_response)
    +-- AggregateError           (aggregate)
"""

from __future__ import annotations

import enum
from typing import Any, NamedTuple, Optional

from softovault.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MALFORMED_RESPONSE,
    EXIT_NOT_FOUND,
    EXIT_PARTIAL_FAILURE,
    EXIT_REQUEST_REJECTED,
    EXIT_SERVER_ERROR,
)


class FailureKind(str, enum.Enum):
    """Category tag carried by every :class:`VaultError`."""

    GENERIC = "generic"
    INVALID_ARGUMENT = "invalid_argument"
    CONFIG = "config"
    TERMINAL_HTTP = "terminal_http"
    NOT_FOUND = "not_found"
    RETRYABLE_HTTP = "retryable_http"
    NETWORK = "network"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    AGGREGATE = "aggregate"


class VaultError(Exception):
    """Base exception for all softovault errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    kind: FailureKind = FailureKind.GENERIC

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code

    @property
    def retryable(self) -> bool:
        """Whether the executor may issue another attempt after this error."""
        return self.kind in (
            FailureKind.RETRYABLE_HTTP,
            FailureKind.NETWORK,
            FailureKind.TIMEOUT,
        )


class InvalidArgumentError(VaultError):
    """Raised for bad caller input. No request is sent."""

    exit_code = EXIT_INVALID_USAGE
    kind = FailureKind.INVALID_ARGUMENT


class ConfigError(VaultError):
    """Raised when the client configuration cannot be resolved (e.g. no access key)."""

    exit_code = EXIT_INVALID_USAGE
    kind = FailureKind.CONFIG


class HTTPStatusError(VaultError):
    """Base for errors produced by a non-success HTTP status.

    Args:
        message: Human-readable error description.
        status: Numeric HTTP status code.
        status_text: Reason phrase sent with the status (may be empty).
        body: Parsed JSON error body, or ``{}`` when it could not be parsed.
    """

    def __init__(
        self,
        message: str,
        status: int,
        status_text: str = "",
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.status_text = status_text
        self.body = body if body is not None else {}


class TerminalHTTPError(HTTPStatusError):
    """Raised for a 4xx status other than 429. Never retried."""

    exit_code = EXIT_REQUEST_REJECTED
    kind = FailureKind.TERMINAL_HTTP


class AuthError(TerminalHTTPError):
    """Raised when the vault rejects the access key (HTTP 401 / 403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(TerminalHTTPError):
    """Raised when a secret does not exist in the vault.

    Args:
        key: The secret key that was requested.
        status_text: Reason phrase of the originating 404 response.
        body: Parsed body of the originating 404 response.
    """

    exit_code = EXIT_NOT_FOUND
    kind = FailureKind.NOT_FOUND

    def __init__(self, key: str, status_text: str = "Not Found", body: Any = None) -> None:
        super().__init__(
            f"Secret with key '{key}' not found",
            status=404,
            status_text=status_text,
            body=body,
        )
        self.key = key


class RetryableHTTPError(HTTPStatusError):
    """Raised for 429 / 5xx once every retry attempt has been used."""

    exit_code = EXIT_SERVER_ERROR
    kind = FailureKind.RETRYABLE_HTTP


class ConnectionError_(VaultError):
    """Raised on network-level failures (DNS, refused connection, reset).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR
    kind = FailureKind.NETWORK


class RequestTimeoutError(ConnectionError_):
    """Raised when an attempt did not receive a response within the timeout."""

    kind = FailureKind.TIMEOUT


class MalformedResponseError(VaultError):
    """Raised when a successful response body is not JSON or has the wrong shape."""

    exit_code = EXIT_MALFORMED_RESPONSE
    kind = FailureKind.MALFORMED_RESPONSE


class KeyFailure(NamedTuple):
    """One failed key inside an :class:`AggregateError`."""

    key: str
    error: VaultError

    @property
    def reason(self) -> str:
        return str(self.error)


class AggregateError(VaultError):
    """Raised by a batch lookup when one or more keys could not be fetched.

    Args:
        failures: Every failed key with the error it produced.
    """

    exit_code = EXIT_PARTIAL_FAILURE
    kind = FailureKind.AGGREGATE

    def __init__(self, failures: list[KeyFailure], message: Optional[str] = None) -> None:
        if message is None:
            details = ", ".join(f"{f.key}: {f.reason}" for f in failures)
            message = f"Failed to retrieve secrets: {details}"
        super().__init__(message)
        self.failures = list(failures)

    @property
    def keys(self) -> list[str]:
        """The failed keys, in the order they were requested."""
        return [f.key for f in self.failures]
