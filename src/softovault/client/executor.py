"""Retrying request executor -- one logical vault operation with timeout and backoff.

:class:`RequestExecutor` wraps :class:`httpx.AsyncClient` and layers on:

- **Credential injection** -- ``Authorization: Bearer <key>`` plus the JSON
  content type and the SDK ``User-Agent`` on every request.
- **Per-attempt timeout** -- each attempt runs under :func:`asyncio.wait_for`,
  so an expired attempt cancels the in-flight httpx request (closing its
  connection) before the next attempt starts.
- **Classification** -- every attempt ends in a :data:`RequestOutcome`:
  4xx other than 429 and malformed or undecodable bodies are terminal; 429,
  5xx, timeouts and any other httpx request error (including redirect loops)
  are retryable.
- **Retry with backoff** -- up to ``max_retries`` extra attempts with an
  exponential delay (1 s, 2 s, 4 s, ...). No delay follows the final attempt.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from softovault import __version__
from softovault.client.response import decode_payload, error_from_response
from softovault.exceptions import (
    ConnectionError_,
    MalformedResponseError,
    RequestTimeoutError,
    VaultError,
)
from softovault.models import ClientConfig
from softovault.output import get_output

USER_AGENT = f"SoftoVault-SDK-Python/{__version__}"

SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class Success:
    """The attempt returned a 2xx response with a JSON body."""

    payload: Any


@dataclass(frozen=True)
class RetryableFailure:
    """The attempt failed in a way that another attempt may fix."""

    error: VaultError


@dataclass(frozen=True)
class TerminalFailure:
    """The attempt failed in a way that must be reported immediately."""

    error: VaultError


RequestOutcome = Union[Success, RetryableFailure, TerminalFailure]


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after the failed 0-indexed *attempt*: 1, 2, 4, ..."""
    return float(2 ** attempt)


class RequestExecutor:
    """Executes vault requests with timeout, retry, and backoff.

    The underlying :class:`httpx.AsyncClient` is created on first use and
    released by :meth:`aclose` (or by leaving ``async with``).

    Args:
        config: Resolved client configuration (URL, key, timeout, retries).
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.
        sleep: Coroutine function used for backoff delays. Defaults to
            :func:`asyncio.sleep`.

    Example::

        async with RequestExecutor(config) as executor:
            payload = await executor.execute("/info")
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._sleep: SleepFunc = sleep or asyncio.sleep
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RequestExecutor:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client. A later :meth:`execute` opens a new one."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.api_url,
                timeout=self._config.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def execute(
        self,
        path: str,
        *,
        method: str = "GET",
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> Any:
        """Perform one logical operation and return the decoded JSON payload.

        Args:
            path: Operation path appended to the configured ``api_url``.
            method: HTTP method.
            params: Query parameters.
            headers: Extra headers. They override the defaults, except that
                the ``Authorization`` header is always the configured key.
            json_body: JSON-serialisable request body.

        Returns:
            The response body parsed as JSON, unchanged.

        Raises:
            TerminalHTTPError: On a 4xx other than 429 (no retry).
            AuthError: On 401 / 403 (no retry).
            MalformedResponseError: When a 2xx body is not valid JSON.
            RetryableHTTPError: On 429 / 5xx after all retries.
            ConnectionError_: On network errors after all retries.
            RequestTimeoutError: On timeouts after all retries.
        """
        client = self._ensure_client()
        request_headers = self._build_headers(headers)
        max_retries = self._config.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            outcome = await self._attempt(
                client, method, path, request_headers, params, json_body,
            )

            if isinstance(outcome, Success):
                return outcome.payload

            if isinstance(outcome, TerminalFailure) or attempt == max_retries:
                raise outcome.error

            delay = backoff_delay(attempt)
            output.debug(
                f"{outcome.error}, retrying {method} {path} in {delay:g}s "
                f"(attempt {attempt + 1}/{max_retries})"
            )
            await self._sleep(delay)

        raise VaultError("Request failed after all retries")  # pragma: no cover

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _build_headers(self, extra: Optional[dict[str, str]]) -> httpx.Headers:
        headers = httpx.Headers({
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        })
        if extra:
            headers.update(extra)
        headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        headers: httpx.Headers,
        params: Optional[dict[str, Any]],
        json_body: Any,
    ) -> RequestOutcome:
        """Send a single request and classify what happened."""
        kwargs: dict[str, Any] = {
            "method": method,
            "url": path,
            "headers": headers,
        }
        if params:
            kwargs["params"] = params
        if json_body is not None:
            kwargs["json"] = json_body

        timeout = self._config.timeout
        try:
            # wait_for only returns once the cancelled request has unwound.
            response = await asyncio.wait_for(client.request(**kwargs), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            error: VaultError = RequestTimeoutError(
                f"Request {method} {path} timed out after {timeout:g}s"
            )
            error.__cause__ = exc
            return RetryableFailure(error)
        except httpx.TransportError as exc:
            error = ConnectionError_(f"Connection failed for {method} {path}: {exc}")
            error.__cause__ = exc
            return RetryableFailure(error)
        except httpx.DecodingError as exc:
            error = MalformedResponseError(
                f"Could not decode response body for {method} {path}: {exc}"
            )
            error.__cause__ = exc
            return TerminalFailure(error)
        except httpx.RequestError as exc:
            # Redirect loops and other client-side request failures.
            error = ConnectionError_(f"Request failed for {method} {path}: {exc}")
            error.__cause__ = exc
            return RetryableFailure(error)

        if response.is_success:
            try:
                return Success(decode_payload(response))
            except MalformedResponseError as exc:
                return TerminalFailure(exc)

        status_error = error_from_response(response)
        if status_error.retryable:
            return RetryableFailure(status_error)
        return TerminalFailure(status_error)
