"""Read-only schedule queries for the CLI (no running key service needed)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from keyctl.config.models import Schedule
from keyctl.scheduling.daily import delay_until, next_occurrence
from keyctl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from keyctl.config.settings import KeySettings
    from keyctl.scheduling.timers import Clock


def next_check(hour: int, minute: int, clock: Clock) -> ServiceResult:
    """When the daily check at ``hour:minute`` would next run."""
    op = "next_check"
    try:
        Schedule(check_hour=hour, check_minute=minute)
    except ValidationError:
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(
                code="INVALID_VALUE",
                message="hour must be 0-23 and minute 0-59",
                detail={"hour": hour, "minute": minute},
            ),
        )
    now = clock.now()
    delay_ms = delay_until(hour, minute, now)
    return ServiceResult(
        ok=True,
        op=op,
        data={
            "check_time": f"{hour:02d}:{minute:02d}",
            "now": now.isoformat(),
            "next_check_at": next_occurrence(hour, minute, now).isoformat(),
            "delay_ms": delay_ms,
            "delay_minutes": round(delay_ms / 60000, 2),
        },
    )


def describe_settings(settings: KeySettings, clock: Clock) -> ServiceResult:
    """Effective configuration plus the next daily check moment."""
    schedule = Schedule.from_config(settings.key_config)
    upcoming = next_check(schedule.check_hour, schedule.check_minute, clock)
    return ServiceResult(
        ok=True,
        op="status",
        data={
            "config_path": str(settings.config_path) if settings.config_path else None,
            "operator_mode": settings.operator.mode,
            "operator_channel": settings.operator.channel,
            "reminders_enabled": schedule.reminders_enabled,
            "reminder_interval_minutes": schedule.reminder_interval_minutes,
            "daily_check_enabled": schedule.daily_check_enabled,
            "check_time": schedule.check_time_label,
            "timezone": settings.daily_check.timezone,
            "next_check_at": upcoming.data["next_check_at"],
        },
    )
