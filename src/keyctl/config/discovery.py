"""Locating and reading ``keyctl.toml``.

Lookup order: the ``--config`` path, then ``KEYCTL_CONFIG``, then a walk up
from the working directory to the filesystem root. A path named explicitly
(flag or env var) must exist; only the walk-up is allowed to come back empty.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

from keyctl.config.models import KeyConfig

CONFIG_FILENAME = "keyctl.toml"
CONFIG_ENV_VAR = "KEYCTL_CONFIG"

SECTIONS = frozenset(KeyConfig.model_fields)


def _explicit(path: str, origin: str) -> Path:
    p = Path(path).expanduser()
    if not p.is_file():
        msg = f"Config file not found: {p} (from {origin})"
        raise click.ClickException(msg)
    return p


def find_config(start: Path | None = None) -> Path | None:
    """``KEYCTL_CONFIG`` if set, else the nearest keyctl.toml above *start*.

    Raises:
        click.ClickException: ``KEYCTL_CONFIG`` names a file that does not exist.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return _explicit(env_path, CONFIG_ENV_VAR)

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_config(config_path: str | None = None, start: Path | None = None) -> Path | None:
    """The config file for this run: ``--config`` wins over discovery."""
    if config_path:
        return _explicit(config_path, "--config")
    return find_config(start)


def read_config(path: Path) -> dict[str, Any]:
    """Parse *path* and check it only holds keyctl's sections.

    Section values are left for the settings models to validate.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc

    unknown = sorted(set(data) - SECTIONS)
    if unknown:
        names = ", ".join(f"[{name}]" for name in unknown)
        expected = ", ".join(f"[{name}]" for name in sorted(SECTIONS))
        msg = f"Unknown section {names} in {path}; expected {expected}"
        raise click.ClickException(msg)
    return data
