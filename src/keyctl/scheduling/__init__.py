"""Scheduling layer — borrower slot, reminder chain, and daily check.

Schedulers never call a timer primitive directly; they receive a
:class:`~keyctl.scheduling.timers.TimerScheduler` and a
:class:`~keyctl.scheduling.timers.Clock` at construction time.
"""

from keyctl.scheduling.daily import DailyCheckScheduler
from keyctl.scheduling.registry import BorrowerRegistry
from keyctl.scheduling.reminder import ReminderScheduler

__all__ = ["BorrowerRegistry", "DailyCheckScheduler", "ReminderScheduler"]
