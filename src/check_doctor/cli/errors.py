"""CLI error handling for check-doctor.

Failures are shown as a rich panel with a remedy hint chosen from the type of
the underlying error, then the command exits with code 1.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import override

import typer
from rich.console import Console
from rich.panel import Panel

from check_doctor.errors import ConfigError, FixerContractViolation, VerifierError

logger = logging.getLogger(__name__)
console = Console()

# First match wins; subclasses go before their bases.
_HINTS: tuple[tuple[type[BaseException], str], ...] = (
    (
        VerifierError,
        "Check the verifier command (--verifier-cmd or verifier.command) and "
        "that it prints findings as JSON.",
    ),
    (ConfigError, "Run 'check-doctor validate-config' on the configuration file."),
    (
        FixerContractViolation,
        "A fixer plugin broke the fixer contract; list its signature under "
        "disabled_fixers to skip it.",
    ),
    (FileNotFoundError, "Check the project directory path."),
    (OSError, "Check that the project directory is readable and writable."),
)


def hint_for(error: BaseException | None) -> str | None:
    """Return the remedy hint for an error, or None when there is none."""
    if error is None:
        return None
    for error_type, hint in _HINTS:
        if isinstance(error, error_type):
            return hint
    return None


class CLIError(Exception):
    """A failed CLI command, carrying the command name and the underlying error."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialise the error.

        Args:
            message: What went wrong
            command: Name of the failing command ("run", "check", ...)
            original_error: The error that caused the failure

        """
        super().__init__(message)
        self.command = command
        self.original_error = original_error

    @property
    def hint(self) -> str | None:
        """Remedy hint derived from the underlying error."""
        return hint_for(self.original_error)

    @override
    def __str__(self) -> str:
        message = super().__str__()
        return f"CLI command '{self.command}' failed: {message}" if self.command else message


def _report(error: CLIError, title: str) -> None:
    logger.error("%s: %s", title, error)
    body = f"[red]{error}[/red]"
    if error.hint:
        body += f"\n[dim]{error.hint}[/dim]"
    console.print(Panel(body, title=f"❌ {title}", border_style="red"))


@contextmanager
def cli_error_handler(command: str, title: str) -> Generator[None]:
    """Report any failure inside the block and exit with code 1.

    Args:
        command: Command name recorded on errors that are not yet CLIErrors
        title: Panel title

    """
    try:
        yield
    except CLIError as e:
        _report(e, title)
        raise typer.Exit(1) from e
    except Exception as e:
        error = CLIError(str(e), command=command, original_error=e)
        _report(error, title)
        raise typer.Exit(1) from error
