"""Built-in console plugin: prints notifications and presence via Rich."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape

from keyctl.plugins.hookspecs import hookimpl

if TYPE_CHECKING:
    from rich.console import Console


class ConsoleNotifierPlugin:
    """Deliver keyctl notifications to a Rich console."""

    def __init__(self, console: Console) -> None:
        self._console = console
        self.presence: str | None = None

    @hookimpl
    def keyctl_notify(self, channel_id: str, user_id: str, text: str) -> None:
        self._console.print(
            f"[key.channel]#{escape(channel_id)}[/] [key.user]@{escape(user_id)}[/] "
            f"[key.notice]{escape(text)}[/]"
        )

    @hookimpl
    def keyctl_broadcast_presence(self, state_tag: str) -> None:
        self.presence = state_tag
        self._console.print(f"[key.field]presence:[/] {escape(state_tag)}")
