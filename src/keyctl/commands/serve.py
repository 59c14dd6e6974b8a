"""serve — run the console binding on an asyncio event loop."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from keyctl.commands._base import KeyCommand

if TYPE_CHECKING:
    from keyctl.commands._context import AppContext


@click.command(
    cls=KeyCommand,
    examples="""\
  # Act as one user in the default channel
  keyctl serve --user 1001 --name alice

  # Operator panel deployment, notices mirrored to an ops channel
  keyctl --operator-mode serve --user 1001 --channel key-desk

  # Scripted session
  printf 'borrow\\nstatus\\nreturn\\n' | keyctl serve --user 1001""",
)
@click.option("--user", "user_id", required=True, help="Acting user id.")
@click.option("--name", "display_name", default=None, help="Display name (default: user id).")
@click.option("--channel", "channel_id", default="key", show_default=True, help="Channel id.")
@click.pass_obj
def serve(app: AppContext, user_id: str, display_name: str | None, channel_id: str) -> None:
    """Read key commands from stdin; reminders print as they fire."""
    from keyctl.console.session import ConsoleSession
    from keyctl.domain.borrower import Identity
    from keyctl.output.console import create_console
    from keyctl.plugins.builtins.console import ConsoleNotifierPlugin
    from keyctl.plugins.manager import PluginManager
    from keyctl.services.custody import CustodyService

    console = create_console(file=sys.stdout)
    plugins = PluginManager()
    plugins.discover_and_load()
    plugins.register_plugin(ConsoleNotifierPlugin(console), name="console")

    async def _run() -> None:
        service = CustodyService.from_settings(app.settings, plugins, clock=app.clock)
        session = ConsoleSession(
            service,
            console,
            Identity(holder_id=user_id, display_name=display_name or user_id),
            channel_id,
            json_output=app.settings.json_output,
        )
        await session.run(sys.stdin)

    asyncio.run(_run())
