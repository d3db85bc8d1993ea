"""
UI utilities for consistent CLI output.

Provides icons, styling helpers, and output functions shared by the engine
and the command line.
"""

from typing import Optional

from rich.console import Console
from rich.table import Table

# Shared console instance
console = Console(soft_wrap=True, legacy_windows=False)


class Icons:
    """Unicode symbols for CLI output."""
    # Status
    SUCCESS = "✓"
    ERROR = "✗"
    WARNING = "!"
    INFO = "•"
    SKIP = "○"

    # Actions
    INSTALL = "↓"
    REMOVE = "-"

    # Structure
    ARROW = "→"
    BULLET = "•"
    INDENT = "  "


def success(message: str, prefix: bool = True) -> None:
    """Print a success message."""
    icon = f"[green]{Icons.SUCCESS}[/green] " if prefix else ""
    console.print(f"{icon}[green]{message}[/green]")


def error(message: str, prefix: bool = True) -> None:
    """Print an error message."""
    icon = f"[red]{Icons.ERROR}[/red] " if prefix else ""
    console.print(f"{icon}[red]{message}[/red]")


def warning(message: str, prefix: bool = True) -> None:
    """Print a warning message."""
    icon = f"[yellow]{Icons.WARNING}[/yellow] " if prefix else ""
    console.print(f"{icon}[yellow]{message}[/yellow]")


def info(message: str, prefix: bool = True) -> None:
    """Print an info message."""
    icon = f"[blue]{Icons.INFO}[/blue] " if prefix else ""
    console.print(f"{icon}{message}")


def dim(message: str) -> None:
    """Print dimmed/secondary text."""
    console.print(f"[dim]{message}[/dim]")


def header(title: str) -> None:
    """Print a section header."""
    console.print(f"\n[bold]{title}[/bold]")


def step(message: str, verbose: bool = True) -> None:
    """Print an engine step, only in verbose mode."""
    if verbose:
        console.print(f"[dim]{Icons.INDENT}{Icons.ARROW} {message}[/dim]")


def extension_name(name: str, version: Optional[str] = None) -> str:
    """Format an extension name with optional version."""
    if version:
        return f"[cyan]{name}[/cyan] [dim]v{version}[/dim]"
    return f"[cyan]{name}[/cyan]"


def path(p: str) -> str:
    """Format a file path."""
    return f"[dim]{p}[/dim]"


def kv(key: str, value: str, indent: int = 1) -> None:
    """Print a key-value pair."""
    prefix = Icons.INDENT * indent
    console.print(f"{prefix}[dim]{key}:[/dim] {value}")


def blank() -> None:
    """Print a blank line."""
    console.print()


def hint(message: str) -> None:
    """Print a helpful hint."""
    console.print(f"[dim]{Icons.ARROW} {message}[/dim]")


def extension_table(rows: list[tuple[str, str, bool]]) -> None:
    """Print catalog rows of (name, kind, installed) as a table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Extension")
    table.add_column("Type")
    table.add_column("Status")

    for name, kind, installed in rows:
        status = "[green]installed[/green]" if installed else "[dim]available[/dim]"
        table.add_row(name, kind, status)

    console.print(table)
