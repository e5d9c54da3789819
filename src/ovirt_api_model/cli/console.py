"""Shared Rich console for CLI output."""

import json
import os
import sys
from functools import wraps
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.table import Table
from rich.tree import Tree

_console = Console()
_error_console = Console(stderr=True)


def _should_print() -> bool:
    """Check if console output is enabled."""
    return os.environ.get("LOG_CONSOLE_ENABLED", "true").lower() == "true"


def _console_output(func):
    """Decorator to check if console output is enabled."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        if _should_print():
            return func(*args, **kwargs)

    return wrapper


def get_console() -> Console:
    """Get the shared console instance."""
    return _console


@_console_output
def print_success(message: str):
    """Print success message."""
    _console.print(f"[green]{message}[/green]")


@_console_output
def print_error(message: str):
    """Print error message to stderr."""
    _error_console.print(f"[red]{message}[/red]")


@_console_output
def print_info(message: str):
    """Print info message."""
    _console.print(f"[cyan]{message}[/cyan]")


@_console_output
def print_warning(message: str):
    """Print warning message."""
    _console.print(f"[yellow]{message}[/yellow]")


@_console_output
def print_section(title: str, width: int = 60):
    """Print section header."""
    _console.print(f"\n[cyan]{title}[/cyan]")
    _console.print(f"[cyan]{'-' * width}[/cyan]")


@_console_output
def print_table(title: Optional[str], columns: Sequence[str], rows: Sequence[Sequence[Any]]):
    """Print rows as a table."""
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(str(cell) for cell in row))
    _console.print(table)


@_console_output
def print_tree(tree: Tree):
    """Print a Rich tree."""
    _console.print(tree)


def print_json(data: dict):
    """Print JSON data (always outputs, ignores LOG_CONSOLE_ENABLED)."""
    print(json.dumps(data, indent=2))


def print_raw(text: str):
    """Write text to stdout unchanged (always outputs, ignores LOG_CONSOLE_ENABLED)."""
    sys.stdout.write(text)
    sys.stdout.flush()
