"""Command: when the next daily check will run."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from keyctl.commands._base import KeyCommand

if TYPE_CHECKING:
    from keyctl.commands._context import AppContext


@click.command(
    "next-check",
    cls=KeyCommand,
    examples="""\
  keyctl next-check
  keyctl next-check --hour 21 --minute 30
  keyctl --json next-check""",
)
@click.option("--hour", type=int, default=None, help="Check hour (0-23); default from config.")
@click.option("--minute", type=int, default=None, help="Check minute (0-59); default from config.")
@click.pass_obj
def next_check(app: AppContext, hour: int | None, minute: int | None) -> None:
    """Show the delay until the next daily check."""
    from keyctl.services.schedule import next_check as next_check_query

    daily = app.settings.daily_check
    app.emit(
        next_check_query(
            daily.hour if hour is None else hour,
            daily.minute if minute is None else minute,
            app.clock,
        )
    )
