"""Rich Console factory and theme for keyctl output.

By default Consoles render to a StringIO buffer, preserving the
``format_result() -> str`` contract. The console binding passes a real
stream instead. In non-TTY environments (tests, pipes) Rich automatically
disables color codes.
"""

from __future__ import annotations

from io import StringIO
from typing import TextIO

from rich.console import Console
from rich.theme import Theme

KEY_THEME = Theme(
    {
        "key.ok": "bold green",
        "key.error": "bold red",
        "key.warning": "bold yellow",
        "key.op": "bold cyan",
        "key.field": "dim",
        "key.channel": "bold blue",
        "key.user": "bold",
        "key.notice": "yellow",
        "key.state.returned": "dim",
        "key.state.borrowed": "yellow",
        "key.state.open": "green",
        "key.state.closed": "magenta",
    }
)

_STATE_STYLES: dict[str, str] = {
    "returned": "key.state.returned",
    "borrowed": "key.state.borrowed",
    "open": "key.state.open",
    "closed": "key.state.closed",
}


def create_console(
    *,
    no_color: bool = False,
    width: int | None = None,
    file: TextIO | None = None,
) -> Console:
    """Create a Console, rendering to a StringIO buffer unless *file* is given.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
        file: Stream to write to directly.
    """
    return Console(
        file=file if file is not None else StringIO(),
        theme=KEY_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_state(state: str) -> str:
    """Return the Rich style name for a custody state."""
    return _STATE_STYLES.get(state, "")
