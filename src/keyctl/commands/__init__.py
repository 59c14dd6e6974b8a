"""Subcommand modules for keyctl.

Provides register_commands() which uses deferred imports to keep
``keyctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from keyctl.commands.next_check import next_check
    from keyctl.commands.serve import serve
    from keyctl.commands.status import status

    cli.add_command(status)
    cli.add_command(next_check)
    cli.add_command(serve)
