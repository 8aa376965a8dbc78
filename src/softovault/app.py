"""Typer application and CLI entry point for softovault.

Exposes the :class:`~softovault.vault.Vault` read operations to shell
scripts::

    softovault get DATABASE_URL
    softovault many API_KEY API_SECRET --fail-on-missing --json
    softovault exists FEATURE_FLAG && echo enabled

Secret values go to stdout; diagnostics and errors go to stderr. A
:class:`~softovault.exceptions.VaultError` ends the process with the error's
``exit_code`` (see :mod:`softovault.exit_codes`).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from softovault import __version__
from softovault.exceptions import VaultError
from softovault.exit_codes import EXIT_GENERIC_FAILURE
from softovault.output import error, format_response, info, print_data, warning
from softovault.vault import Vault

T = TypeVar("T")

app = typer.Typer(
    name="softovault",
    help="Read secrets from a SoftoVault vault.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"softovault {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="Vault access key (default: $SOFTOVAULT_API_KEY)."
    ),
    api_url: Optional[str] = typer.Option(
        None, "--api-url", help="Vault API base URL (default: $SOFTOVAULT_API_URL)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Per-attempt timeout in seconds."
    ),
    retries: Optional[int] = typer.Option(
        None, "--retries", help="Retry attempts after the first request."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show retries and cache activity."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~softovault.output.OutputManager` from the
    output flags and stores the connection settings in ``ctx.obj`` for the
    sub-commands.
    """
    from softovault.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["settings"] = {
        "api_key": api_key,
        "api_url": api_url,
        "timeout": timeout,
        "max_retries": retries,
    }


def _make_vault(settings: dict[str, Any]) -> Vault:
    """Build the vault for one CLI invocation.

    Caching is off: every invocation is a fresh process.
    """
    return Vault(cache=False, **settings)


def _run(ctx: typer.Context, operation: Callable[[Vault], Awaitable[T]]) -> T:
    """Run *operation* against a fresh vault, mapping errors to exit codes."""
    settings = dict(ctx.obj["settings"])

    async def _invoke() -> T:
        async with _make_vault(settings) as vault:
            return await operation(vault)

    try:
        return asyncio.run(_invoke())
    except VaultError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("get")
def get_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Secret key."),
) -> None:
    """Print the value of a single secret.

    String values are printed as-is so they can be captured with
    ``$(softovault get KEY)``.
    """
    value = _run(ctx, lambda vault: vault.get(key))
    if isinstance(value, str):
        print_data(value)
    else:
        format_response(value)


@app.command("all")
def all_command(ctx: typer.Context) -> None:
    """Print every secret in the vault."""
    secrets = _run(ctx, lambda vault: vault.get_all())
    info(f"{len(secrets)} secret(s)")
    format_response(secrets)


@app.command("many")
def many_command(
    ctx: typer.Context,
    keys: list[str] = typer.Argument(..., help="Secret keys."),
    fail_on_missing: bool = typer.Option(
        False, "--fail-on-missing", help="Fail if any key cannot be fetched."
    ),
) -> None:
    """Print several secrets, fetched concurrently.

    Keys that cannot be fetched are printed as ``null`` unless
    ``--fail-on-missing`` is given.
    """
    results = _run(ctx, lambda vault: vault.get_many(keys, fail_on_missing=fail_on_missing))
    empty = [key for key, value in results.items() if value is None]
    if empty:
        warning(f"No value for: {', '.join(empty)}")
    format_response(results)


@app.command("exists")
def exists_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Secret key."),
) -> None:
    """Print ``true`` and exit 0 if the secret exists, else ``false`` and exit 1."""
    found = _run(ctx, lambda vault: vault.exists(key))
    print_data("true" if found else "false")
    if not found:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)


@app.command("info")
def info_command(ctx: typer.Context) -> None:
    """Print vault metadata."""
    format_response(_run(ctx, lambda vault: vault.get_vault_info()))


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``softovault`` console script.

    Vault errors are reported by the commands themselves; anything else
    reaching this point is printed and exits with
    :data:`~softovault.exit_codes.EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        if isinstance(exc, VaultError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
