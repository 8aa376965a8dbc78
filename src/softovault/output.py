"""Where softovault writes, and how.

Secret values are the only thing that ever reaches stdout, so
``$(softovault get KEY)`` captures exactly the value. Everything else (the
retry and cache-hit trail, warnings, errors) goes to stderr.

The library side only calls ``get_output().debug(...)``. Until the CLI (or an
application) installs a verbose :class:`OutputManager` with :func:`set_output`,
the default manager is quiet and those calls print nothing.

Colour follows `clig.dev <https://clig.dev/>`_: off with ``--no-color``, when
``NO_COLOR`` is set to anything, or when ``TERM=dumb``.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text


class OutputFormat(str, Enum):
    """How payloads such as ``all``/``many``/``info`` results are rendered."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


def _interactive() -> bool:
    return sys.stdout.isatty()


def _color_wanted(no_color_flag: bool) -> bool:
    if no_color_flag or "NO_COLOR" in os.environ:
        return False
    return os.environ.get("TERM") != "dumb"


class OutputManager:
    """Renders vault payloads to stdout and diagnostics to stderr.

    ``AUTO`` becomes syntax-highlighted JSON on a colour terminal and
    ``key<TAB>value`` lines when piped, which suits ``while read`` loops.

    Args:
        format: Payload format for :meth:`format_response`.
        no_color: Force colour off.
        quiet: Drop :meth:`info` messages.
        verbose: Show :meth:`debug` messages (retries, cache hits).
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self.color = _color_wanted(no_color)
        self.quiet = quiet
        self.verbose = verbose
        if format == OutputFormat.AUTO:
            format = OutputFormat.RICH if self.color and _interactive() else OutputFormat.PLAIN
        self.format = format
        self._highlighter = Console(
            file=sys.stdout,
            no_color=not self.color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._diagnostics = Console(file=sys.stderr, no_color=not self.color)

    # -- stdout -----------------------------------------------------------

    def print_data(self, text: str) -> None:
        """Write *text* to stdout exactly as given, plus a newline."""
        print(text, file=sys.stdout, flush=True)

    def format_response(self, data: Any) -> None:
        if self.format == OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        elif self.format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
        elif isinstance(data, (dict, list)):
            dumped = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._highlighter.print(Syntax(dumped, "json", theme="monokai", word_wrap=True))
        else:
            # Secret values may contain brackets; never treat them as markup.
            self._highlighter.print(str(data), markup=False, highlight=False)

    # -- stderr -----------------------------------------------------------

    def info(self, message: str) -> None:
        if not self.quiet:
            self._note(message)

    def warning(self, message: str) -> None:
        self._note(message, label="Warning: ", style="yellow")

    def error(self, message: str) -> None:
        """Report a failure. Shown even with ``--quiet``."""
        self._note(message, label="Error: ", style="bold red")

    def debug(self, message: str) -> None:
        if self.verbose:
            self._note(f"[debug] {message}", style="dim", whole_line=True)

    def _note(
        self,
        message: str,
        label: str = "",
        style: str = "",
        whole_line: bool = False,
    ) -> None:
        if not self.color:
            print(f"{label}{message}", file=sys.stderr, flush=True)
        elif whole_line:
            self._diagnostics.print(Text(label + message, style=style))
        else:
            self._diagnostics.print(Text.assemble((label, style), message))


def _plain_lines(data: Any) -> list[str]:
    if isinstance(data, dict):
        return [f"{key}\t{'' if value is None else value}" for key, value in data.items()]
    if isinstance(data, list):
        return [str(item) for item in data]
    return ["" if data is None else str(data)]


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, or a silent one if none was installed."""
    global _output
    if _output is None:
        _output = OutputManager(quiet=True)
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager; the next :func:`get_output` is silent again."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def info(message: str) -> None:
    get_output().info(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)
