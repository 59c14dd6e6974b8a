"""Click base classes shared by every keyctl command.

``KeyCommand`` and ``KeyGroup`` take an ``examples`` string and expose it
through an eager ``--examples`` flag. ``KeyGroup`` also reports settings
that fail validation (a bad ``keyctl.toml`` value or ``KEYCTL_*`` variable)
as a normal CLI error instead of a traceback.
"""

from __future__ import annotations

from typing import Any

import click
from pydantic import ValidationError


def describe_validation_error(exc: ValidationError) -> str:
    """One line per rejected setting, keyed by its dotted TOML path."""
    lines = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return "Invalid configuration:\n  " + "\n  ".join(lines)


class _ExamplesMixin:
    """Adds ``--examples`` to a Click command. List it before the Click base."""

    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._show_examples,
                    help="Show usage examples.",
                )
            )

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(self.examples)
        ctx.exit(0)


class KeyCommand(_ExamplesMixin, click.Command):
    """Click Command with an optional ``--examples`` flag."""


class KeyGroup(_ExamplesMixin, click.Group):
    """Root group: ``--examples`` support plus readable settings errors.

    Subcommands default to :class:`KeyCommand`, so ``examples=`` works on
    them without an explicit ``cls=``.
    """

    command_class = KeyCommand

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except ValidationError as exc:
            raise click.ClickException(describe_validation_error(exc)) from exc
