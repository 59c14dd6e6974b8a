"""CustodyService — what a chat binding calls when a user acts.

Each operation follows the same order: read the state, run the state
machine, then on a real change update the borrower slot and arm or
cancel reminders. Actions that do not apply come back as ``NO_CHANGE``
with the unchanged state, so the binding can re-render its controls.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from keyctl.config.models import Schedule
from keyctl.domain.borrower import BorrowerRecord, Identity
from keyctl.domain.custody import (
    CustodyState,
    KeyAction,
    available_actions,
    presence_for,
    transition,
)
from keyctl.scheduling.daily import DailyCheckScheduler
from keyctl.scheduling.registry import BorrowerRegistry
from keyctl.scheduling.reminder import ReminderScheduler
from keyctl.scheduling.timers import LoopScheduler, SystemClock, resolve_timezone
from keyctl.services.base import BaseService
from keyctl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from keyctl.config.settings import KeySettings
    from keyctl.plugins.manager import PluginManager
    from keyctl.scheduling.timers import Clock, TimerScheduler

logger = logging.getLogger(__name__)

READY_TEXT = "Key manager is ready. The key is currently returned."


class CustodyService(BaseService):
    """Single-key custody: state, borrower, reminders and the daily check."""

    def __init__(
        self,
        plugins: PluginManager,
        *,
        clock: Clock,
        timers: TimerScheduler,
        schedule: Schedule | None = None,
        operator_mode: bool = False,
        operator_channel: str | None = None,
    ) -> None:
        super().__init__(plugins)
        self._clock = clock
        self._schedule = schedule or Schedule()
        self._operator_mode = operator_mode
        self._operator_channel = operator_channel
        self._state = CustodyState.RETURNED
        self.registry = BorrowerRegistry()
        self.reminder = ReminderScheduler(
            self.registry,
            timers,
            clock,
            self._schedule,
            state=lambda: self._state,
            notify=self._deliver,
        )
        self.daily_check = DailyCheckScheduler(
            self.registry,
            timers,
            clock,
            self._schedule,
            state=lambda: self._state,
            notify=self._deliver,
            operator_channel=operator_channel,
        )

    @classmethod
    def from_settings(
        cls,
        settings: KeySettings,
        plugins: PluginManager,
        *,
        clock: Clock | None = None,
        timers: TimerScheduler | None = None,
    ) -> CustodyService:
        """Build a service from loaded settings, on the running asyncio loop by default."""
        return cls(
            plugins,
            clock=clock or SystemClock(resolve_timezone(settings.daily_check.timezone)),
            timers=timers or LoopScheduler(),
            schedule=Schedule.from_config(settings.key_config),
            operator_mode=settings.operator.mode,
            operator_channel=settings.operator.channel,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> CustodyState:
        return self._state

    @property
    def reminders_enabled(self) -> bool:
        return self._schedule.reminders_enabled

    @property
    def operator_mode(self) -> bool:
        return self._operator_mode

    @property
    def schedule(self) -> Schedule:
        return self._schedule

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> ServiceResult:
        """Arm the daily chain, publish presence and greet the operator channel."""
        op = "start"
        warnings: list[str] = []
        if not self._plugins.has_notifier():
            warnings.append("No notification plugin registered; reminders will not be delivered")
        self.daily_check.start()
        self._dispatch_event(
            "keyctl_broadcast_presence", {"state_tag": presence_for(self._state)}, warnings
        )
        if self._operator_channel is not None:
            try:
                self._deliver(self._operator_channel, "", READY_TEXT)
            except Exception:
                logger.exception("Ready message to operator channel failed")
                warnings.append("Ready message to operator channel failed")
        return ServiceResult(ok=True, op=op, data=self._snapshot(), warnings=warnings)

    def shutdown(self) -> None:
        """Cancel every pending timer."""
        self.daily_check.stop()
        self.reminder.cancel()

    # ------------------------------------------------------------------
    # Key actions
    # ------------------------------------------------------------------

    def borrow(
        self,
        identity: Identity,
        channel_id: str,
        delay_minutes: int | None = None,
    ) -> ServiceResult:
        """Take the key; the first reminder comes after *delay_minutes*.

        Borrowing while the key is already out moves the pending reminder
        instead (see :meth:`postpone`).
        """
        op = "borrow"
        if delay_minutes is not None and delay_minutes < 0:
            return self._invalid(op, "delay_minutes must be zero or more")

        if self._state is not CustodyState.RETURNED and self.registry.get() is not None:
            return self._postpone(op, delay_minutes)

        previous, warnings = self._state, []
        current = self._apply(KeyAction.BORROW, identity, warnings)
        if current is previous:
            return self._no_change(op, KeyAction.BORROW)

        record = BorrowerRecord.for_identity(identity, channel_id, self._clock.now())
        self.registry.set(record)
        first_in = None
        if self._schedule.reminders_enabled:
            first_in = (
                delay_minutes
                if delay_minutes is not None
                else self._schedule.reminder_interval_minutes
            )
            self.reminder.arm(first_in)
        logger.info("%s borrowed the key", identity.display_name)
        return ServiceResult(
            ok=True,
            op=op,
            data={**self._snapshot(), "first_reminder_in_minutes": first_in},
            warnings=warnings,
        )

    def open(self, identity: Identity) -> ServiceResult:
        """Unlock the room."""
        return self._room_action("open", KeyAction.OPEN, identity)

    def close(self, identity: Identity) -> ServiceResult:
        """Relock the room (the key stays out)."""
        return self._room_action("close", KeyAction.CLOSE, identity)

    def return_key(self, identity: Identity) -> ServiceResult:
        """Hand the key back; the borrower and their reminders are cleared."""
        op = "return"
        previous, warnings = self._state, []
        current = self._apply(KeyAction.RETURN, identity, warnings)
        if current is previous:
            return self._no_change(op, KeyAction.RETURN)
        self.registry.clear()
        logger.info("%s returned the key", identity.display_name)
        return ServiceResult(ok=True, op=op, data=self._snapshot(), warnings=warnings)

    def transfer(self, new_owner: Identity, channel_id: str) -> ServiceResult:
        """Make *new_owner* the holder; their reminder count starts from zero."""
        op = "transfer"
        record = self.registry.get()
        if self._state is CustodyState.RETURNED or record is None:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="NOT_BORROWED",
                    message="The key is not currently borrowed",
                    detail={"state": str(self._state)},
                ),
            )

        previous_holder = record.holder_id
        self.registry.set(BorrowerRecord.for_identity(new_owner, channel_id, self._clock.now()))
        if self._schedule.reminders_enabled:
            self.reminder.arm(self._schedule.reminder_interval_minutes)
        logger.info("Key handed from %s to %s", previous_holder, new_owner.holder_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={**self._snapshot(), "previous_holder_id": previous_holder},
        )

    def postpone(self, delay_minutes: int | None = None) -> ServiceResult:
        """Re-arm the next reminder *delay_minutes* from now (default: one interval)."""
        return self._postpone("postpone", delay_minutes)

    def _postpone(self, op: str, delay_minutes: int | None) -> ServiceResult:
        if delay_minutes is not None and delay_minutes < 0:
            return self._invalid(op, "delay_minutes must be zero or more")
        if self._state is CustodyState.RETURNED or self.registry.get() is None:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="NOT_BORROWED", message="The key is not currently borrowed"
                ),
            )
        if not self._schedule.reminders_enabled:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="REMINDERS_DISABLED", message="Reminders are turned off"),
            )

        delay = delay_minutes
        if delay is None:
            delay = self._schedule.reminder_interval_minutes
        self.reminder.arm(delay)
        return ServiceResult(
            ok=True,
            op=op,
            data={**self._snapshot(), "next_reminder_in_minutes": delay, "postponed": True},
        )

    # ------------------------------------------------------------------
    # Schedule commands
    # ------------------------------------------------------------------

    def toggle_reminders(self) -> ServiceResult:
        """Flip reminders on/off without forgetting the borrower."""
        enabled = not self._schedule.reminders_enabled
        self._schedule.reminders_enabled = enabled
        if not enabled:
            self.reminder.cancel()
        elif self._key_is_out():
            self.reminder.reschedule(self._schedule.reminder_interval_minutes)
        logger.info("Reminders %s", "on" if enabled else "off")
        return ServiceResult(ok=True, op="toggle_reminders", data=self._snapshot())

    def toggle_daily_check(self) -> ServiceResult:
        """Flip the daily check on/off; the daily chain keeps its timing."""
        enabled = not self._schedule.daily_check_enabled
        self._schedule.daily_check_enabled = enabled
        logger.info("Daily check %s", "on" if enabled else "off")
        return ServiceResult(ok=True, op="toggle_daily_check", data=self._snapshot())

    def set_reminder_interval(self, minutes: int) -> ServiceResult:
        """Change the interval; a pending reminder is realigned to it."""
        op = "set_reminder_interval"
        try:
            self._schedule.reminder_interval_minutes = minutes
        except ValidationError:
            return self._invalid(op, "minutes must be between 1 and 1440")

        remaining = None
        if self._key_is_out():
            remaining = self.reminder.reschedule(minutes)
        data = {**self._snapshot(), "rescheduled": remaining is not None}
        if remaining is not None:
            data["next_reminder_in_minutes"] = max(round(remaining, 2), 0)
        return ServiceResult(ok=True, op=op, data=data)

    def set_check_time(self, hour: int, minute: int) -> ServiceResult:
        """Move the daily check and restart its chain."""
        op = "set_check_time"
        try:
            Schedule.model_validate(
                {**self._schedule.model_dump(), "check_hour": hour, "check_minute": minute}
            )
        except ValidationError:
            return self._invalid(op, "hour must be 0-23 and minute 0-59")

        delay_ms = self.daily_check.reconfigure(hour, minute)
        return ServiceResult(
            ok=True,
            op=op,
            data={**self._snapshot(), "next_check_in_ms": delay_ms},
        )

    def status(self) -> ServiceResult:
        """Current custody, borrower and schedule."""
        return ServiceResult(ok=True, op="status", data=self._snapshot())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _deliver(self, channel_id: str, user_id: str, text: str) -> None:
        self._plugins.hook.keyctl_notify(channel_id=channel_id, user_id=user_id, text=text)

    def _key_is_out(self) -> bool:
        return self._state is not CustodyState.RETURNED and self.registry.get() is not None

    def _apply(self, action: KeyAction, identity: Identity, warnings: list[str]) -> CustodyState:
        previous = self._state
        current = transition(previous, action, self._operator_mode)
        if current is previous:
            logger.debug("%s ignored in state %s", action, previous)
            return current
        self._state = current
        self._dispatch_event(
            "keyctl_broadcast_presence", {"state_tag": presence_for(current)}, warnings
        )
        self._dispatch_event(
            "keyctl_post_transition",
            {
                "action": str(action),
                "previous": str(previous),
                "current": str(current),
                "holder_id": identity.holder_id,
            },
            warnings,
        )
        return current

    def _room_action(self, op: str, action: KeyAction, identity: Identity) -> ServiceResult:
        previous, warnings = self._state, []
        current = self._apply(action, identity, warnings)
        if current is previous:
            return self._no_change(op, action)
        return ServiceResult(ok=True, op=op, data=self._snapshot(), warnings=warnings)

    def _no_change(self, op: str, action: KeyAction) -> ServiceResult:
        message = f"Cannot {action} while the key is {self._state}"
        if self._operator_mode and action in (KeyAction.OPEN, KeyAction.CLOSE):
            message = f"Cannot {action} in operator mode"
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(
                code="NO_CHANGE",
                message=message,
                detail={"state": str(self._state), "controls": self._controls()},
            ),
        )

    @staticmethod
    def _invalid(op: str, message: str) -> ServiceResult:
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code="INVALID_VALUE", message=message),
        )

    def _controls(self) -> list[str]:
        return [str(a) for a in available_actions(self._state, self._operator_mode)]

    def _snapshot(self) -> dict[str, Any]:
        record = self.registry.get()
        next_check = self.daily_check.next_fire_at
        return {
            "state": str(self._state),
            "presence": presence_for(self._state),
            "controls": self._controls(),
            "operator_mode": self._operator_mode,
            "borrower": record.to_dict() if record is not None else None,
            "reminders_enabled": self._schedule.reminders_enabled,
            "reminder_interval_minutes": self._schedule.reminder_interval_minutes,
            "daily_check_enabled": self._schedule.daily_check_enabled,
            "check_time": self._schedule.check_time_label,
            "next_check_at": next_check.isoformat() if next_check is not None else None,
        }
