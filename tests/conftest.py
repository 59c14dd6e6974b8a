"""Shared pytest fixtures and test helpers for keyctl tests."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path

import pytest
from click.testing import CliRunner

from keyctl.config.models import Schedule
from keyctl.domain.borrower import Identity
from keyctl.plugins.hookspecs import hookimpl
from keyctl.plugins.manager import PluginManager
from keyctl.scheduling.timers import VirtualClock, VirtualScheduler
from keyctl.services.custody import CustodyService

START = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class RecordingPlugin:
    """Plugin that records every hook call; can be told to fail deliveries."""

    def __init__(self) -> None:
        self.notifications: list[tuple[str, str, str]] = []
        self.presence: list[str] = []
        self.transitions: list[tuple[str, str, str, str | None]] = []
        self.fail_channels: set[str] = set()

    @hookimpl
    def keyctl_notify(self, channel_id: str, user_id: str, text: str) -> None:
        if channel_id in self.fail_channels:
            raise ConnectionError(f"channel {channel_id} unreachable")
        self.notifications.append((channel_id, user_id, text))

    @hookimpl
    def keyctl_broadcast_presence(self, state_tag: str) -> None:
        self.presence.append(state_tag)

    @hookimpl
    def keyctl_post_transition(
        self,
        action: str,
        previous: str,
        current: str,
        holder_id: str | None,
    ) -> None:
        self.transitions.append((action, previous, current, holder_id))


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Generator[None]:
    """Undo configure_logging() calls made by CLI invocations."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    key_level = logging.getLogger("keyctl").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("keyctl").setLevel(key_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock(START)


@pytest.fixture
def timers(clock: VirtualClock) -> VirtualScheduler:
    return VirtualScheduler(clock)


@pytest.fixture
def schedule() -> Schedule:
    return Schedule(reminder_interval_minutes=60, check_hour=20, check_minute=0)


@pytest.fixture
def recorder() -> RecordingPlugin:
    return RecordingPlugin()


@pytest.fixture
def plugins(recorder: RecordingPlugin) -> PluginManager:
    pm = PluginManager()
    pm.register_plugin(recorder, name="recorder")
    return pm


@pytest.fixture
def service(
    plugins: PluginManager,
    clock: VirtualClock,
    timers: VirtualScheduler,
    schedule: Schedule,
) -> Generator[CustodyService]:
    """Custody service on virtual time, operator mode off."""
    svc = CustodyService(plugins, clock=clock, timers=timers, schedule=schedule)
    try:
        yield svc
    finally:
        svc.shutdown()


@pytest.fixture
def new_york_local(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Switch the process local zone to US Eastern for the test.

    A POSIX rule string, so libc needs no zone database to honour it.
    """
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "EST5EDT,M3.2.0,M11.1.0")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def alice() -> Identity:
    return Identity(holder_id="1001", display_name="alice")


@pytest.fixture
def bob() -> Identity:
    return Identity(holder_id="1002", display_name="bob")


@pytest.fixture
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from an empty temp dir with no KEYCTL_* environment leaking in.

    Use via ``@pytest.mark.usefixtures("_isolated_config")`` on command test
    classes.
    """
    for name in list(os.environ):
        if name.startswith("KEYCTL_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
