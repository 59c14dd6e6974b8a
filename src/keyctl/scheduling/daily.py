"""DailyCheckScheduler — once-a-day sweep at a configured wall-clock time.

The delay is recomputed from the configured hour/minute on every cycle
rather than ticking every 24h, so a changed check time or a DST shift
lands on the right wall-clock moment.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from keyctl.domain.custody import CustodyState

if TYPE_CHECKING:
    from keyctl.config.models import Schedule
    from keyctl.domain.borrower import BorrowerRecord, TimerHandle
    from keyctl.scheduling.registry import BorrowerRegistry
    from keyctl.scheduling.reminder import Notifier, StateReader
    from keyctl.scheduling.timers import Clock, TimerScheduler

logger = logging.getLogger(__name__)


def next_occurrence(target_hour: int, target_minute: int, now: datetime) -> datetime:
    """The next ``hh:mm:00`` strictly after *now*, in *now*'s timezone."""
    target = now.replace(hour=target_hour, minute=target_minute, second=0, microsecond=0)
    if target <= now:
        target = (target + timedelta(days=1)).replace(
            hour=target_hour, minute=target_minute, fold=0
        )
    return target


def delay_until(target_hour: int, target_minute: int, now: datetime) -> int:
    """Milliseconds from *now* until the next ``target_hour:target_minute``.

    Computed from absolute timestamps, so a DST change between now and the
    target is honoured. Always positive.
    """
    target = next_occurrence(target_hour, target_minute, now)
    return round((target.timestamp() - now.timestamp()) * 1000)


def overdue_text(record: BorrowerRecord) -> str:
    return (
        f"{record.mention} it is past the daily check time and the key "
        "has not been returned yet."
    )


class DailyCheckScheduler:
    """Perpetual daily chain: wait, check, recompute, wait again.

    Parameters:
        registry: Borrower slot read at check time.
        timers: Timer capability for the one-shot waits.
        clock: Source of local "now".
        schedule: Live check time and enable flag.
        state: Returns the current custody state at check time.
        notify: ``notify(channel_id, user_id, text)`` delivery capability.
        operator_channel: Fallback channel when the holder can't be reached.
    """

    def __init__(
        self,
        registry: BorrowerRegistry,
        timers: TimerScheduler,
        clock: Clock,
        schedule: Schedule,
        state: StateReader,
        notify: Notifier,
        *,
        operator_channel: str | None = None,
    ) -> None:
        self._registry = registry
        self._timers = timers
        self._clock = clock
        self._schedule = schedule
        self._state = state
        self._notify = notify
        self._operator_channel = operator_channel
        self._handle: TimerHandle | None = None
        self.next_fire_at: datetime | None = None

    def delay_until(self, target_hour: int, target_minute: int, now: datetime) -> int:
        return delay_until(target_hour, target_minute, now)

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> int:
        """Arm the chain for the next configured check time.

        Returns the delay in milliseconds.
        """
        self.stop()
        now = self._clock.now()
        hour, minute = self._schedule.check_hour, self._schedule.check_minute
        delay_ms = self.delay_until(hour, minute, now)
        self.next_fire_at = next_occurrence(hour, minute, now)
        self._handle = self._timers.call_later(delay_ms / 1000, self._on_timer)
        logger.debug(
            "Next daily check at %s (in %.1f minutes)",
            self.next_fire_at.isoformat(),
            delay_ms / 60000,
        )
        return delay_ms

    def stop(self) -> None:
        """Cancel the pending wait, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.next_fire_at = None

    def reconfigure(self, hour: int, minute: int) -> int:
        """Move the check time and restart the chain from now."""
        self._schedule.check_hour = hour
        self._schedule.check_minute = minute
        return self.start()

    def run_check(self) -> bool:
        """Notify the holder if the key is still out.

        Returns True when a notice was delivered to someone.
        """
        if not self._schedule.daily_check_enabled:
            logger.debug("Daily check disabled; skipped")
            return False

        state = self._state()
        if state is CustodyState.RETURNED:
            logger.debug("Daily check: key is returned")
            return False

        record = self._registry.get()
        if record is None:
            logger.warning("Daily check: key is %s but no borrower is recorded", state)
            return False

        text = overdue_text(record)
        try:
            self._notify(record.channel_id, record.holder_id, text)
        except Exception:
            logger.exception("Daily check notice to %s failed", record.holder_id)
        else:
            logger.info("Daily check notice sent to %s", record.display_name)
            return True

        if self._operator_channel is None:
            return False
        try:
            self._notify(self._operator_channel, record.holder_id, text)
        except Exception:
            logger.exception("Daily check notice to operator channel failed")
            return False
        return True

    def _on_timer(self) -> None:
        self._handle = None
        try:
            self.run_check()
        finally:
            self.start()
