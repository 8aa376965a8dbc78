"""Response decoding -- maps :class:`httpx.Response` bodies to payloads and errors.

Success bodies must be JSON; anything else is a
:class:`~softovault.exceptions.MalformedResponseError`. Error bodies are
parsed on a best-effort basis: when they are not JSON the error still carries
the status, with an empty body.
"""

from __future__ import annotations

from typing import Any

import httpx

from softovault.exceptions import (
    AuthError,
    HTTPStatusError,
    MalformedResponseError,
    RetryableHTTPError,
    TerminalHTTPError,
)


def is_terminal_status(status: int) -> bool:
    """Return ``True`` when *status* must not be retried (4xx other than 429)."""
    return 400 <= status < 500 and status != 429


def decode_payload(response: httpx.Response) -> Any:
    """Parse a successful response body as JSON.

    Raises:
        MalformedResponseError: If the body is empty or not valid JSON.
    """
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedResponseError(
            f"Invalid JSON in HTTP {response.status_code} response body: {exc}"
        ) from exc


def decode_error_body(response: httpx.Response) -> Any:
    """Parse an error response body, falling back to ``{}`` when it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return {}


def error_from_response(response: httpx.Response) -> HTTPStatusError:
    """Build the typed error for a non-success *response*.

    The message is the body's ``message`` field when present, otherwise
    ``HTTP <status>: <reason>``.
    """
    status = response.status_code
    status_text = response.reason_phrase or ""
    body = decode_error_body(response)

    message = ""
    if isinstance(body, dict):
        message = str(body.get("message") or "")
    if not message:
        message = f"HTTP {status}: {status_text}" if status_text else f"HTTP {status}"

    if status in (401, 403):
        return AuthError(message, status=status, status_text=status_text, body=body)
    if is_terminal_status(status):
        return TerminalHTTPError(message, status=status, status_text=status_text, body=body)
    return RetryableHTTPError(message, status=status, status_text=status_text, body=body)
