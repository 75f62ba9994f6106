"""Output utilities for CLI commands with clear intent.

- user_output: progress and diagnostics, always to stderr
- machine_output: results meant for scripts (e.g. a selected tag), to stdout
- render_error: styled rendering of fatal kforge errors
"""

import click
from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from kforge.core.errors import KforgeError
from kforge.core.kconfig import ReconciliationFailure
from kforge.core.subprocess import ExecutionFailure


def user_output(message: str = "") -> None:
    """Write a message intended for the user to stderr."""
    click.echo(message, err=True)


def machine_output(message: str) -> None:
    """Write a result intended for scripts to stdout."""
    click.echo(message)


def format_execution_failure(error: ExecutionFailure) -> Panel:
    """Format a failed command with both captured streams.

    Example:
        >>> panel = format_execution_failure(error)
        >>> Console(stderr=True).print(panel)
    """
    stdout = error.stdout.strip()
    stderr = error.stderr.strip()
    content = Group(
        Text(f"Command: {error.command}", style="bold"),
        Text(f"Exit code: {error.exit_code}"),
        Text(""),
        Text("stdout:", style="bold"),
        Text(stdout if stdout else "(empty)", style="dim" if not stdout else ""),
        Text(""),
        Text("stderr:", style="bold"),
        Text(stderr if stderr else "(empty)", style="red" if stderr else "dim"),
    )
    return Panel(content, title="Command Failed", border_style="red", padding=(1, 2))


def format_reconciliation_failure(error: ReconciliationFailure) -> Panel:
    lines = [Text(f"- {option.text}", style="red") for option in error.missing_options]
    content = Group(Text("Options missing after normalization:", style="bold"), *lines)
    return Panel(content, title="Config Verification Failed", border_style="red", padding=(1, 2))


def render_error(error: KforgeError, console: Console | None = None) -> None:
    """Print a fatal error to stderr with full diagnostic context."""
    if console is None:
        console = Console(stderr=True)

    if isinstance(error, ExecutionFailure):
        console.print(format_execution_failure(error))
    elif isinstance(error, ReconciliationFailure):
        console.print(format_reconciliation_failure(error))

    user_output(click.style("Error: ", fg="red") + str(error).splitlines()[0])
