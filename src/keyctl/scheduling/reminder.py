"""ReminderScheduler — self-rescheduling return reminders.

Each fire schedules the next link a full interval later, so changing the
interval between fires only affects links armed after the change.
:meth:`ReminderScheduler.reschedule` realigns the pending link to the
original cadence anchored at ``borrowed_at`` instead of restarting it.

INVARIANT: a new link is never armed before the pending one is cancelled.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from keyctl.domain.custody import CustodyState

if TYPE_CHECKING:
    from keyctl.config.models import Schedule
    from keyctl.domain.borrower import BorrowerRecord, TimerHandle
    from keyctl.scheduling.registry import BorrowerRegistry
    from keyctl.scheduling.timers import Clock, TimerScheduler

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str, str], None]
StateReader = Callable[[], CustodyState]


def reminder_text(record: BorrowerRecord, interval_minutes: int) -> str:
    """Message body for the record's latest reminder."""
    elapsed = interval_minutes * record.reminder_count
    return (
        f"{record.mention} {elapsed} minutes have passed since you borrowed the key. "
        f"Have you forgotten to return it? (reminder #{record.reminder_count})"
    )


def remaining_minutes(
    elapsed_minutes: float,
    reminder_count: int,
    interval_minutes: float,
) -> float:
    """Minutes until reminder ``reminder_count + 1`` is due.

    Zero or negative means that reminder is already overdue.
    """
    next_due_at = (reminder_count + 1) * interval_minutes
    return next_due_at - elapsed_minutes


class ReminderScheduler:
    """Arms, re-arms and cancels the reminder chain for the active borrower.

    Parameters:
        registry: Slot holding the borrower record and its timer handle.
        timers: Timer capability used to schedule each link.
        clock: Source of "now" for elapsed-time math.
        schedule: Live interval and enable flag.
        state: Returns the current custody state at fire time.
        notify: ``notify(channel_id, user_id, text)`` delivery capability.
    """

    def __init__(
        self,
        registry: BorrowerRegistry,
        timers: TimerScheduler,
        clock: Clock,
        schedule: Schedule,
        state: StateReader,
        notify: Notifier,
    ) -> None:
        self._registry = registry
        self._timers = timers
        self._clock = clock
        self._schedule = schedule
        self._state = state
        self._notify = notify

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def arm(self, delay_minutes: float) -> TimerHandle | None:
        """Schedule :meth:`fire` after *delay_minutes* for the active borrower."""
        record = self._registry.get()
        if record is None:
            logger.debug("No borrower; reminder not armed")
            return None
        self._registry.cancel_timer()
        handle = self._timers.call_later(delay_minutes * 60, self.fire)
        self._registry.attach_timer(handle)
        logger.debug("Reminder for %s armed in %.2f minutes", record.holder_id, delay_minutes)
        return handle

    def fire(self) -> None:
        """Send one reminder and arm the next link.

        Returned key, disabled reminders and a missing record are races
        with user actions, not errors: the fire does nothing.
        """
        state = self._state()
        record = self._registry.get()
        if state is CustodyState.RETURNED:
            logger.debug("Key already returned; reminder skipped")
            return
        if not self._schedule.reminders_enabled:
            logger.debug("Reminders disabled; reminder skipped")
            return
        if record is None:
            logger.debug("No borrower record; reminder skipped")
            return

        # The handle that triggered this fire is spent.
        record.timer_handle = None
        record.reminder_count += 1
        interval = self._schedule.reminder_interval_minutes
        try:
            self._notify(record.channel_id, record.holder_id, reminder_text(record, interval))
        except Exception:
            logger.exception("Reminder #%d delivery failed", record.reminder_count)
        else:
            logger.info("Reminder #%d sent to %s", record.reminder_count, record.holder_id)

        if self._registry.get() is record:
            self.arm(interval)

    def reschedule(self, new_interval_minutes: float) -> float | None:
        """Realign the pending link to a new interval.

        The next reminder is due at ``(count + 1) * interval`` minutes after
        ``borrowed_at``. If that moment has already passed, the reminder
        fires now (which arms the link after it).

        Returns the remaining minutes that were computed, or None when
        there is nothing to reschedule.
        """
        record = self._registry.get()
        if record is None or not self._schedule.reminders_enabled:
            return None

        elapsed = (self._clock.now().timestamp() - record.borrowed_at.timestamp()) / 60
        remaining = remaining_minutes(elapsed, record.reminder_count, new_interval_minutes)
        logger.debug(
            "Elapsed %.2f min, next reminder (#%d) in %.2f min",
            elapsed,
            record.reminder_count + 1,
            remaining,
        )

        self._registry.cancel_timer()
        if remaining > 0:
            self.arm(remaining)
        else:
            self.fire()
        return remaining

    def cancel(self) -> None:
        """Cancel the pending link; the borrower record is kept."""
        self._registry.cancel_timer()
