"""Borrower identity and the active borrow record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from pydantic import BaseModel


class TimerHandle(Protocol):
    """Anything returned by a timer scheduler that can be cancelled."""

    def cancel(self) -> None: ...


class Identity(BaseModel):
    """Acting user as supplied by the chat platform."""

    model_config = {"frozen": True}

    holder_id: str
    display_name: str

    @property
    def mention(self) -> str:
        return f"<@{self.holder_id}>"


@dataclass
class BorrowerRecord:
    """The one active borrow episode.

    ``reminder_count`` starts at 0 on every new record and goes up by one
    per fired reminder. ``timer_handle`` is the pending reminder timer, if
    reminders are running.
    """

    holder_id: str
    display_name: str
    channel_id: str
    borrowed_at: datetime
    reminder_count: int = 0
    timer_handle: TimerHandle | None = None

    @classmethod
    def for_identity(
        cls,
        identity: Identity,
        channel_id: str,
        borrowed_at: datetime,
    ) -> BorrowerRecord:
        return cls(
            holder_id=identity.holder_id,
            display_name=identity.display_name,
            channel_id=channel_id,
            borrowed_at=borrowed_at,
        )

    @property
    def mention(self) -> str:
        return f"<@{self.holder_id}>"

    def to_dict(self) -> dict[str, object]:
        return {
            "holder_id": self.holder_id,
            "display_name": self.display_name,
            "channel_id": self.channel_id,
            "borrowed_at": self.borrowed_at.isoformat(),
            "reminder_count": self.reminder_count,
            "timer_armed": self.timer_handle is not None,
        }
