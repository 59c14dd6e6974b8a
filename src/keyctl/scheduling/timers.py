"""Clock and timer capabilities injected into the schedulers.

Real runs use :class:`SystemClock` and :class:`LoopScheduler` (asyncio
``call_later`` on the running loop). Tests and dry runs use
:class:`VirtualClock` with :class:`VirtualScheduler`, which fire timers
in due order only when time is advanced explicitly.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo

from keyctl.domain.borrower import TimerHandle

logger = logging.getLogger(__name__)


class Clock(Protocol):
    """Source of timezone-aware "now"."""

    def now(self) -> datetime: ...


class TimerScheduler(Protocol):
    """Schedules a one-shot callback and returns a cancellable handle."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


def resolve_timezone(name: str | None) -> tzinfo | None:
    """IANA zone for *name*, or None for the system local zone (:data:`LOCAL`)."""
    return ZoneInfo(name) if name else None


# --- Real implementations ---


class LocalTimezone(tzinfo):
    """The system local zone, with the UTC offset looked up per wall time.

    ``datetime.now().astimezone()`` pins today's offset, so arithmetic that
    crosses a DST change lands an hour off. This zone asks the OS again for
    every wall time it is given.
    """

    def utcoffset(self, dt: datetime | None) -> timedelta | None:
        return None if dt is None else self._resolve(dt).utcoffset()

    def dst(self, dt: datetime | None) -> timedelta | None:
        return None

    def tzname(self, dt: datetime | None) -> str | None:
        return None if dt is None else self._resolve(dt).tzname()

    def fromutc(self, dt: datetime) -> datetime:
        wall = dt.replace(tzinfo=UTC).astimezone()
        local = wall.replace(tzinfo=self)
        if local.utcoffset() != wall.utcoffset():
            local = local.replace(fold=1)
        return local

    @staticmethod
    def _resolve(dt: datetime) -> datetime:
        return dt.replace(tzinfo=None).astimezone()

    def __repr__(self) -> str:
        return "LocalTimezone()"


LOCAL = LocalTimezone()


class SystemClock:
    """Wall clock in *tz* (system local zone when None)."""

    def __init__(self, tz: tzinfo | None = None) -> None:
        self._tz = tz

    def now(self) -> datetime:
        if self._tz is None:
            return datetime.now(LOCAL)
        return datetime.now(self._tz)


class LoopScheduler:
    """TimerScheduler backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(delay, 0.0), callback)


# --- Deterministic implementations ---


def _after(moment: datetime, seconds: float) -> datetime:
    """*moment* plus *seconds* of elapsed time, expressed in *moment*'s zone."""
    return (moment.astimezone(UTC) + timedelta(seconds=seconds)).astimezone(moment.tzinfo)


class VirtualClock:
    """Clock whose time only moves when told to."""

    def __init__(self, start: datetime) -> None:
        if start.tzinfo is None:
            msg = "VirtualClock needs a timezone-aware start time"
            raise ValueError(msg)
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = moment


class VirtualTimer:
    """Handle returned by :class:`VirtualScheduler`."""

    def __init__(self, due: datetime, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class VirtualScheduler:
    """Run-to-completion timer queue driven by :meth:`advance`.

    Timers due at the same instant fire in the order they were armed.
    Callbacks may arm new timers; those fire within the same advance if
    they fall due before its end.
    """

    def __init__(self, clock: VirtualClock) -> None:
        self._clock = clock
        self._queue: list[tuple[float, int, VirtualTimer]] = []
        self._seq = itertools.count()
        self.fired = 0

    def call_later(self, delay: float, callback: Callable[[], None]) -> VirtualTimer:
        due = _after(self._clock.now(), max(delay, 0.0))
        timer = VirtualTimer(due, callback)
        heapq.heappush(self._queue, (due.timestamp(), next(self._seq), timer))
        return timer

    @property
    def pending(self) -> list[VirtualTimer]:
        """Live timers in due order."""
        return [t for _, _, t in sorted(self._queue) if not t.cancelled()]

    def advance(self, seconds: float) -> int:
        """Move time forward by *seconds*, firing everything that falls due.

        Returns the number of callbacks run.
        """
        target = _after(self._clock.now(), seconds)
        ran = 0
        while self._queue and self._queue[0][0] <= target.timestamp():
            _, _, timer = heapq.heappop(self._queue)
            if timer.cancelled():
                continue
            if timer.due.timestamp() > self._clock.now().timestamp():
                self._clock.set(timer.due)
            timer.callback()
            ran += 1
        self._clock.set(target)
        self.fired += ran
        return ran

    def advance_minutes(self, minutes: float) -> int:
        return self.advance(minutes * 60)
