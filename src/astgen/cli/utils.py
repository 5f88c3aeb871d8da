"""
CLI Utilities - Shared helper functions for command line output.

Every helper writes to stderr: stdout is reserved for records and the
dry-run listing.
"""

import click
from rich.console import Console
from rich.table import Table

from ..parsing.languages import SUPPORTED_LANGUAGES


def echo_success(message: str) -> None:
    """
    Print a success message with a green checkmark.

    Args:
        message (str): The message to display.
    """
    click.echo(click.style(f"✅ {message}", fg="green"), err=True)


def echo_error(message: str) -> None:
    """
    Print an error message with a red cross.

    Args:
        message (str): The error message to display.
    """
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    """
    Print a warning message with a yellow alert symbol.

    Args:
        message (str): The warning message to display.
    """
    click.echo(click.style(f"⚠️  {message}", fg="yellow"), err=True)


def echo_info(message: str) -> None:
    """Print an informational message, dimmed."""
    click.echo(click.style(f"   {message}", dim=True), err=True)


def print_languages(console: Console | None = None) -> None:
    """Render the supported languages and their extensions as a table."""
    console = console or Console()
    table = Table(title="Supported Languages", show_header=True, header_style="bold")
    table.add_column("Language")
    table.add_column("Extensions")
    table.add_column("Grammar", style="dim")
    for info in SUPPORTED_LANGUAGES:
        table.add_row(info.name, ", ".join(info.extensions), info.grammar)
    console.print(table)
