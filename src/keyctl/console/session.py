"""Line-oriented console binding.

Stands in for a chat platform: each input line is one user interaction,
handled to completion on the asyncio loop before the next line is read,
while reminder and daily-check timers fire on the same loop.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import Callable
from typing import TYPE_CHECKING, TextIO

from rich.markup import escape

from keyctl.domain.borrower import Identity
from keyctl.output.formatters import format_result
from keyctl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from rich.console import Console

    from keyctl.services.custody import CustodyService

logger = logging.getLogger(__name__)

HELP_TEXT = """\
borrow [delay]           take the key (first reminder after delay minutes)
open | close             unlock / relock the room
return                   hand the key back
owner <id> [name]        hand the key to someone else
postpone <minutes>       move the next reminder
reminder                 toggle reminders
scheduled-check          toggle the daily check
reminder-time <minutes>  set the reminder interval (1-1440)
check-time <hour> <min>  set the daily check time
status                   show custody and schedule
as <id> [name]           act as another user
quit                     stop"""


class UsageError(ValueError):
    """Malformed console command."""


def _int_arg(args: list[str], index: int, name: str) -> int:
    try:
        return int(args[index])
    except IndexError as exc:
        msg = f"missing <{name}>"
        raise UsageError(msg) from exc
    except ValueError as exc:
        msg = f"<{name}> must be an integer"
        raise UsageError(msg) from exc


class ConsoleSession:
    """Maps console lines onto :class:`CustodyService` operations."""

    def __init__(
        self,
        service: CustodyService,
        console: Console,
        identity: Identity,
        channel_id: str,
        *,
        json_output: bool = False,
    ) -> None:
        self._service = service
        self._console = console
        self.identity = identity
        self.channel_id = channel_id
        self._json = json_output
        self._commands: dict[str, Callable[[list[str]], ServiceResult | None]] = {
            "borrow": self._borrow,
            "open": lambda _args: service.open(self.identity),
            "close": lambda _args: service.close(self.identity),
            "return": lambda _args: service.return_key(self.identity),
            "owner": self._owner,
            "postpone": lambda args: service.postpone(_int_arg(args, 0, "minutes")),
            "reminder": lambda _args: service.toggle_reminders(),
            "scheduled-check": lambda _args: service.toggle_daily_check(),
            "reminder-time": lambda args: service.set_reminder_interval(
                _int_arg(args, 0, "minutes")
            ),
            "check-time": lambda args: service.set_check_time(
                _int_arg(args, 0, "hour"), _int_arg(args, 1, "minute")
            ),
            "status": lambda _args: service.status(),
            "as": self._switch_user,
            "help": self._help,
        }

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------

    def _borrow(self, args: list[str]) -> ServiceResult:
        delay = _int_arg(args, 0, "delay") if args else None
        return self._service.borrow(self.identity, self.channel_id, delay)

    def _owner(self, args: list[str]) -> ServiceResult:
        if not args:
            raise UsageError("missing <id>")
        new_owner = Identity(
            holder_id=args[0], display_name=args[1] if len(args) > 1 else args[0]
        )
        return self._service.transfer(new_owner, self.channel_id)

    def _switch_user(self, args: list[str]) -> None:
        if not args:
            raise UsageError("missing <id>")
        self.identity = Identity(
            holder_id=args[0], display_name=args[1] if len(args) > 1 else args[0]
        )
        name = escape(self.identity.display_name)
        self._console.print(f"[key.field]acting as[/] [key.user]{name}[/]")

    def _help(self, _args: list[str]) -> None:
        self._console.print(escape(HELP_TEXT))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def handle_line(self, line: str) -> ServiceResult | None:
        """Run one command line and return its result (None for local commands)."""
        try:
            words = shlex.split(line)
        except ValueError as exc:
            return self._usage("parse", str(exc))
        if not words:
            return None

        name, args = words[0].lower(), words[1:]
        handler = self._commands.get(name)
        if handler is None:
            return self._usage(name, f"unknown command {name!r} (try 'help')")
        try:
            return handler(args)
        except UsageError as exc:
            return self._usage(name, str(exc))

    def render(self, result: ServiceResult) -> None:
        self._console.print(
            escape(format_result(result, json_output=self._json)),
            soft_wrap=True,
        )

    async def run(self, stream: TextIO) -> None:
        """Read lines from *stream* until EOF or ``quit``."""
        loop = asyncio.get_running_loop()
        self.render(self._service.start())
        try:
            while True:
                line = await loop.run_in_executor(None, stream.readline)
                if not line or line.strip().lower() in ("quit", "exit"):
                    break
                result = self.handle_line(line)
                if result is not None:
                    self.render(result)
        finally:
            self._service.shutdown()
            logger.debug("Console session closed")

    @staticmethod
    def _usage(op: str, message: str) -> ServiceResult:
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code="BAD_COMMAND", message=message),
        )
