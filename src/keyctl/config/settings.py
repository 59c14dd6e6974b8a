"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``KEYCTL_*`` prefix
  3. TOML file    — ``keyctl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` fed by
:mod:`keyctl.config.discovery`.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from keyctl.config.discovery import read_config, resolve_config
from keyctl.config.models import (
    DailyCheckConfig,
    KeyConfig,
    OperatorConfig,
    ReminderConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``keyctl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = read_config(toml_path) if toml_path else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class KeySettings(BaseSettings):
    """Unified settings for the keyctl CLI and console binding.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object.

    Attributes:
        config_path: The TOML file the settings were read from, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "KEYCTL_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    reminder: ReminderConfig = Field(default_factory=ReminderConfig)
    daily_check: DailyCheckConfig = Field(default_factory=DailyCheckConfig)
    operator: OperatorConfig = Field(default_factory=OperatorConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @property
    def key_config(self) -> KeyConfig:
        """The TOML-shaped sections as a plain :class:`KeyConfig`."""
        return KeyConfig(
            reminder=self.reminder,
            daily_check=self.daily_check,
            operator=self.operator,
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        operator_mode: bool = False,
        **cli_flags: Any,
    ) -> KeySettings:
        """Construct settings from CLI invocation.

        Discovers ``keyctl.toml`` via walk-up from *start* (or uses the
        explicit *config_path*, which must exist) and merges CLI flags as
        highest-priority overrides. ``--operator-mode`` can only switch operator mode on.
        """
        toml_path = resolve_config(config_path, start)

        _tls.toml_path = toml_path
        try:
            settings = cls(config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None

        if operator_mode and not settings.operator.mode:
            operator = settings.operator.model_copy(update={"mode": True})
            settings = settings.model_copy(update={"operator": operator})
        return settings
