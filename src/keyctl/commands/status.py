"""Command: show the effective key schedule configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from keyctl.commands._base import KeyCommand

if TYPE_CHECKING:
    from keyctl.commands._context import AppContext


@click.command(
    cls=KeyCommand,
    examples="""\
  keyctl status
  keyctl --json status
  keyctl -c ./keyctl.toml status""",
)
@click.pass_obj
def status(app: AppContext) -> None:
    """Show reminder, daily-check and operator settings."""
    from keyctl.services.schedule import describe_settings

    app.emit(describe_settings(app.settings, app.clock))
