"""
Rich formatting utilities for consistent terminal output.

"Beauty is in the eye of the beholder. But colors help." — schema.cx
"""

from rich.console import Console
from rich.table import Table

# Centralized console instance
console = Console()

_verbose = False


# Color scheme constants
class Colors:
    """Consistent color scheme for the application."""
    SUCCESS = "green"
    ERROR = "red"
    WARNING = "yellow"
    INFO = "cyan"
    MUTED = "dim"
    HIGHLIGHT = "bold cyan"
    REPO_NAME = "bold blue"


def set_verbose(enabled: bool) -> None:
    """Turn debug output on or off."""
    global _verbose
    _verbose = enabled


def print_success(message: str, prefix: str = "✅") -> None:
    """Print a success message in green."""
    console.print(f"[{Colors.SUCCESS}]{prefix} {message}[/{Colors.SUCCESS}]")


def print_error(message: str, prefix: str = "❌") -> None:
    """Print an error message in red."""
    console.print(f"[{Colors.ERROR}]{prefix} {message}[/{Colors.ERROR}]")


def print_warning(message: str, prefix: str = "⚠️") -> None:
    """Print a warning message in yellow."""
    console.print(f"[{Colors.WARNING}]{prefix} {message}[/{Colors.WARNING}]")


def print_info(message: str, prefix: str = "ℹ️") -> None:
    """Print an info message in cyan."""
    console.print(f"[{Colors.INFO}]{prefix} {message}[/{Colors.INFO}]")


def print_debug(message: str) -> None:
    """Print a dimmed message, only in verbose mode."""
    if _verbose:
        console.print(f"[{Colors.MUTED}]   {message}[/{Colors.MUTED}]", highlight=False)


def create_summary_table(title: str) -> Table:
    """Create a styled table for summary statistics."""
    table = Table(title=title, show_header=True, header_style="bold cyan", border_style="cyan")
    return table


def create_data_table(title: str | None = None, show_lines: bool = False) -> Table:
    """Create a styled table for data display."""
    table = Table(
        title=title,
        show_header=True,
        header_style="bold blue",
        border_style="blue",
        show_lines=show_lines,
    )
    return table


def format_repo_name(name: str) -> str:
    """Format a repository name with consistent styling."""
    return f"[{Colors.REPO_NAME}]{name}[/{Colors.REPO_NAME}]"


def format_action(action: str, color: str | None = None) -> str:
    """Format an action word with appropriate color."""
    if color is None:
        # Auto-select color based on action
        action_lower = action.lower()
        if action_lower in ["create", "created", "clone", "cloned", "sync", "synced", "success"]:
            color = Colors.SUCCESS
        elif action_lower in ["update", "updated", "fetch", "fetched", "planned"]:
            color = Colors.INFO
        elif action_lower in ["skip", "skipped"]:
            color = Colors.WARNING
        elif action_lower in ["fail", "failed", "error"]:
            color = Colors.ERROR
        else:
            color = Colors.INFO

    return f"[{color}]{action.upper():8}[/{color}]"


def print_key_value(key: str, value: str | int, key_width: int = 20) -> None:
    """Print a key-value pair with consistent formatting."""
    console.print(f"  [dim]{key:<{key_width}}:[/dim] {value}")
