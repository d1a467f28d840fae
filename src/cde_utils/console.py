"""Operator-facing output.

Everything cde-utils prints goes through the shared themed Rich console
below: one-line status messages, the echo of kubectl/openssl command lines
(prefixed in dry-run mode), spinners around slow calls and the summary
panel shown after provisioning a user.
"""

import shlex
from collections.abc import Generator
from contextlib import contextmanager

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
    }
)

# Message kind -> (theme style, leading glyph)
_MARKERS: dict[str, tuple[str, str]] = {
    "info": ("info", "ℹ"),
    "success": ("success", "✓"),
    "warning": ("warning", "⚠"),
    "error": ("error", "✗"),
    "action": ("info", "→"),
    "step": ("muted", "•"),
}

DRY_RUN_PREFIX = "(Dry Run: yes) "

console = Console(theme=_THEME)


def _emit(kind: str, message: str) -> None:
    style, glyph = _MARKERS[kind]
    console.print(f"[{style}]{glyph}[/{style}] {message}")


def info(message: str) -> None:
    """Report a neutral fact, e.g. a value that is already in place."""
    _emit("info", message)


def success(message: str) -> None:
    """Report a completed change."""
    _emit("success", message)


def warning(message: str) -> None:
    """Report something the operator should notice but that does not stop the run."""
    _emit("warning", message)


def error(message: str) -> None:
    """Report a failure; the caller decides whether to exit."""
    _emit("error", message)


def action(message: str) -> None:
    """Announce the start of a reconciliation."""
    _emit("action", message)


def step(message: str) -> None:
    """Announce one step inside a reconciliation."""
    _emit("step", message)


def highlight(text: str) -> str:
    """Wrap a resource name or value in highlight markup."""
    return f"[highlight]{text}[/highlight]"


def command(cmd: list[str], *, dry_run: bool) -> None:
    """Echo a command line before it runs, or instead of running it.

    The line is shell-quoted so it can be copied and run by hand, and
    escaped so brackets in arguments are not read as Rich markup.

    Args:
        cmd: The command arguments.
        dry_run: Whether the command is only being echoed.

    """
    prefix = DRY_RUN_PREFIX if dry_run else ""
    info(escape(f"{prefix}Running command: {shlex.join(cmd)}"))


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Show a spinner while a slow call (cluster check, openssl) runs."""
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def summary_panel(title: str, items: dict[str, str]) -> None:
    """Print label/value pairs in a green bordered panel.

    Args:
        title: Panel title.
        items: Rows to show, in order.

    """
    rows = Table.grid(padding=(0, 2))
    rows.add_column(style="bold")
    rows.add_column(style="cyan")
    for label, value in items.items():
        rows.add_row(f"{label}:", value)

    console.print(Panel(rows, title=f"[bold]{title}[/bold]", border_style="green"))


def clear() -> None:
    """Clear the screen before the menu is redrawn."""
    console.clear()
