"""BorrowerRegistry — the single slot for the active borrower.

INVARIANT: at most one record, and at most one live reminder timer.
Replacing the record always cancels the old record's timer first.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from keyctl.domain.borrower import BorrowerRecord, TimerHandle

logger = logging.getLogger(__name__)


class BorrowerRegistry:
    """Owns the active :class:`BorrowerRecord` and its timer handle."""

    def __init__(self) -> None:
        self._record: BorrowerRecord | None = None
        self.cancel_count = 0

    def get(self) -> BorrowerRecord | None:
        """Current record, or None when nobody holds the key."""
        return self._record

    def set(self, record: BorrowerRecord) -> None:
        """Install *record*, cancelling any timer held by the one it replaces."""
        if self._record is not None:
            self._cancel(self._record)
            logger.debug(
                "Replacing borrower %s with %s",
                self._record.holder_id,
                record.holder_id,
            )
        self._record = record

    def clear(self) -> None:
        """Cancel any active timer and forget the borrower entirely.

        Use :meth:`cancel_timer` instead to pause reminders but keep
        the holder's identity.
        """
        if self._record is None:
            return
        self._cancel(self._record)
        logger.debug("Cleared borrower %s", self._record.holder_id)
        self._record = None

    def cancel_timer(self) -> None:
        """Cancel the current record's timer, keeping the record."""
        if self._record is not None:
            self._cancel(self._record)

    def attach_timer(self, handle: TimerHandle) -> None:
        """Store *handle* on the current record, cancelling the one it replaces."""
        if self._record is None:
            msg = "Cannot attach a timer with no active borrower"
            raise LookupError(msg)
        self._cancel(self._record)
        self._record.timer_handle = handle

    def _cancel(self, record: BorrowerRecord) -> None:
        if record.timer_handle is None:
            return
        record.timer_handle.cancel()
        record.timer_handle = None
        self.cancel_count += 1
