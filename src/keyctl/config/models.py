"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, keyctl.toml only contains overrides.
An empty (or missing) keyctl.toml gives hourly reminders and a 20:00 check.
"""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

# --- keyctl.toml sections ---


class ReminderConfig(BaseModel):
    """[reminder] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    interval_minutes: int = Field(default=60, ge=1, le=1440)


class DailyCheckConfig(BaseModel):
    """[daily_check] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    hour: int = Field(default=20, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)
    timezone: str | None = None

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            msg = f"Unknown timezone: {value!r}"
            raise ValueError(msg) from exc
        return value


class OperatorConfig(BaseModel):
    """[operator] section.

    ``mode`` is read once at startup. ``channel`` receives the ready
    message and daily-check notices that could not reach the holder.
    """

    model_config = {"frozen": True}

    mode: bool = False
    channel: str | None = None


class KeyConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    reminder: ReminderConfig = Field(default_factory=ReminderConfig)
    daily_check: DailyCheckConfig = Field(default_factory=DailyCheckConfig)
    operator: OperatorConfig = Field(default_factory=OperatorConfig)


# --- Runtime schedule (mutable through service commands) ---


class Schedule(BaseModel):
    """Live reminder and daily-check parameters.

    Seeded from the frozen config at startup. Assignments are validated,
    so an out-of-range interval or check time raises ValidationError and
    leaves the previous value in place.
    """

    model_config = {"validate_assignment": True}

    reminder_interval_minutes: int = Field(default=60, ge=1, le=1440)
    check_hour: int = Field(default=20, ge=0, le=23)
    check_minute: int = Field(default=0, ge=0, le=59)
    reminders_enabled: bool = True
    daily_check_enabled: bool = True

    @classmethod
    def from_config(cls, config: KeyConfig) -> Schedule:
        return cls(
            reminder_interval_minutes=config.reminder.interval_minutes,
            check_hour=config.daily_check.hour,
            check_minute=config.daily_check.minute,
            reminders_enabled=config.reminder.enabled,
            daily_check_enabled=config.daily_check.enabled,
        )

    @property
    def check_time_label(self) -> str:
        return f"{self.check_hour:02d}:{self.check_minute:02d}"
