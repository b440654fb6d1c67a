"""Console output for the extension CLI.

Log lines go through :mod:`logging`; this module is only for the few
human-facing messages the CLI prints itself: the startup banner and fatal
errors with their hints.
"""

from __future__ import annotations

import logging
import traceback

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

GOLD = "rgb(192,150,12)"
RED = "rgb(220,50,47)"
GREEN = "rgb(133,153,0)"
DIM = "bright_black"
YELLOW = "yellow"
TEXT = "bright_white"
SECONDARY = "rgb(108,113,196)"


class ExtensionConsole:
    """Styled stderr output for the CLI."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        """Initialize the console.

        Args:
            logger: Logger to check for log levels. If None, uses the root logger.
        """
        self._stderr_console = Console(stderr=True)
        self._logger = logger or logging.getLogger()

    @property
    def console(self) -> Console:
        return self._stderr_console

    def header(self, title: str, icon: str = "📡") -> None:
        self._stderr_console.print(Panel.fit(f"{icon} [bold]{title}[/bold]", border_style=GOLD))

    def success(self, message: str) -> None:
        self._stderr_console.print(f"[{GREEN}]✅ {message}[/{GREEN}]")

    def error(self, message: str) -> None:
        """Print an error message, with the active traceback when debugging."""
        tb = traceback.format_exc()
        if "NoneType: None" not in tb and self._logger.isEnabledFor(logging.DEBUG):
            self._stderr_console.print(f"[{RED} not bold]❌ {message}\n{tb}[/{RED} not bold]")
        else:
            self._stderr_console.print(f"[{RED} not bold]❌ {message}[/{RED} not bold]")

    def warning(self, message: str) -> None:
        self._stderr_console.print(f"⚠️  [{YELLOW} not bold]{message}[/{YELLOW} not bold]")

    def info(self, message: str) -> None:
        self._stderr_console.print(f"[{TEXT} not bold]{message}[/{TEXT} not bold]")

    def link(self, url: str) -> None:
        self._stderr_console.print(f"[{SECONDARY} underline]{url}[/{SECONDARY} underline]")

    def key_value_table(self, data: dict[str, str]) -> None:
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("Key", style=DIM, no_wrap=True)
        table.add_column("Value", style=TEXT)

        for key, value in data.items():
            table.add_row(key, value)

        self._stderr_console.print(table)

    def render_exception(self, error: BaseException) -> None:
        """Render an error with its type, request details and structured hints."""
        from lambda_otel_exporter.shared.exceptions import ExtensionAPIError  # lazy import
        from lambda_otel_exporter.shared.hints import render_hints  # lazy import

        ex_type = type(error).__name__
        message = getattr(error, "message", "") or str(error) or ex_type
        self.error(f"{ex_type}: {message}")

        if isinstance(error, ExtensionAPIError):
            details: dict[str, str] = {}
            if error.status_code is not None:
                details["Status"] = str(error.status_code)
            if error.response_text:
                trimmed = error.response_text[:500]
                details["Response"] = trimmed + ("..." if len(error.response_text) > 500 else "")
            if details:
                self.key_value_table(details)

        render_hints(getattr(error, "hints", None), design=self)


console = ExtensionConsole()
