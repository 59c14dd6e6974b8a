"""Rich/JSON output helpers.

The CLI and console binding render ServiceResult for humans (plain
key-value text) or machines (--json).
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape

from keyctl.output.console import create_console, get_output, style_for_state

if TYPE_CHECKING:
    from keyctl.services.result import ServiceResult


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return _json.dumps(value, separators=(",", ":"))
    return str(value)


def format_result(
    result: ServiceResult,
    *,
    json_output: bool = False,
    quiet: bool = False,
) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
        quiet: Only the status line, no data fields.
    """
    if json_output:
        return result.model_dump_json(indent=2)

    console = create_console(no_color=True)
    if result.ok:
        console.print(f"[key.ok]OK:[/] [key.op]{result.op}[/]", soft_wrap=True)
        if not quiet:
            for key, value in result.data.items():
                style = style_for_state(str(value)) if key == "state" else ""
                text = escape(_format_value(value))
                rendered = f"[{style}]{text}[/]" if style else text
                console.print(f"  [key.field]{key}:[/] {rendered}", soft_wrap=True)
    else:
        error_msg = result.error.message if result.error else "Unknown error"
        console.print(
            f"[key.error]ERROR:[/] [key.op]{result.op}[/] - {escape(error_msg)}",
            soft_wrap=True,
        )
    return get_output(console).rstrip("\n")
