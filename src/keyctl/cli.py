"""Root CLI group for keyctl with global flags and command registration."""

from __future__ import annotations

import click

from keyctl import __version__
from keyctl.commands import register_commands
from keyctl.commands._base import KeyGroup
from keyctl.commands._context import AppContext
from keyctl.config.settings import KeySettings


@click.group(cls=KeyGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="keyctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--operator-mode", is_flag=True, help="Track borrow/return only (no open/close).")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    operator_mode: bool,
) -> None:
    """keyctl — room key custody and return reminders."""
    settings = KeySettings.from_cli(
        config_path=config_path,
        operator_mode=operator_mode,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
