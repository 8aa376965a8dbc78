"""Shared test fixtures for softovault.

Provides a fake vault backend built on :class:`httpx.MockTransport`, a
factory for :class:`~softovault.vault.Vault` instances wired to it, a
controllable clock for cache expiry, and isolation of the global output
manager and ``SOFTOVAULT_*`` environment variables.
"""

from __future__ import annotations

from typing import Any, Callable, Optional
from unittest.mock import AsyncMock

import httpx
import pytest

from softovault.output import reset_output
from softovault.vault import Vault


TEST_API_URL = "https://vault.example.com/api/vault"
TEST_API_KEY = "sv_test_key"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real SOFTOVAULT_* / VAULT_* variables out of every test."""
    for var in [
        "SOFTOVAULT_API_KEY",
        "VAULT_ACCESS_KEY",
        "SOFTOVAULT_API_URL",
        "SOFTOVAULT_TIMEOUT",
        "SOFTOVAULT_MAX_RETRIES",
        "SOFTOVAULT_CACHE",
        "SOFTOVAULT_CACHE_TTL",
    ]:
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Fake backend
# ---------------------------------------------------------------------------


class FakeVaultBackend:
    """In-memory stand-in for the SoftoVault HTTP API.

    Serves ``/key/<name>``, ``/all`` and ``/info`` from :attr:`secrets`
    and records every request it receives. Individual paths can be
    overridden with canned responses via :meth:`respond`.
    """

    def __init__(self, secrets: Optional[dict[str, Any]] = None) -> None:
        self.secrets: dict[str, Any] = dict(secrets or {})
        self.info: dict[str, Any] = {
            "id": "vault-1",
            "name": "test vault",
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-01-02T00:00:00Z",
            "secrets_count": len(self.secrets),
        }
        self.requests: list[httpx.Request] = []
        self._overrides: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def respond(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        """Serve *path* (e.g. ``/api/vault/key/A``) from *handler* instead."""
        self._overrides[path] = handler

    def calls_to(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self._overrides:
            return self._overrides[path](request)

        prefix = "/api/vault"
        route = path[len(prefix):] if path.startswith(prefix) else path
        if route == "/all":
            return httpx.Response(200, json={"secrets": dict(self.secrets)})
        if route == "/info":
            return httpx.Response(200, json=self.info)
        if route.startswith("/key/"):
            name = route[len("/key/"):]
            if name in self.secrets:
                return httpx.Response(200, json={"key": name, "value": self.secrets[name]})
            return httpx.Response(404, json={"message": f"Key {name} does not exist"})
        return httpx.Response(404, json={"message": "Unknown route"})


@pytest.fixture
def backend() -> FakeVaultBackend:
    """A fake vault holding two secrets, ``A`` and ``B``."""
    return FakeVaultBackend({"A": "alpha", "B": "bravo"})


@pytest.fixture
def fake_sleep() -> AsyncMock:
    """Stand-in for :func:`asyncio.sleep` that records backoff delays."""
    return AsyncMock(return_value=None)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_vault(
    backend: FakeVaultBackend,
    fake_sleep: AsyncMock,
    clock: FakeClock,
) -> Callable[..., Vault]:
    """Factory building a :class:`Vault` wired to the fake backend.

    Keyword arguments are forwarded to :class:`Vault`; ``handler`` replaces
    the backend with an arbitrary transport handler.
    """

    def _factory(handler: Optional[Callable[..., Any]] = None, **kwargs: Any) -> Vault:
        kwargs.setdefault("api_key", TEST_API_KEY)
        kwargs.setdefault("api_url", TEST_API_URL)
        kwargs.setdefault("env", {})
        kwargs.setdefault("sleep", fake_sleep)
        kwargs.setdefault("clock", clock)
        return Vault(transport=httpx.MockTransport(handler or backend), **kwargs)

    return _factory
