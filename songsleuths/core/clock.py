from __future__ import annotations

import time


class Clock:
    """Source of wall-clock time in epoch seconds."""

    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> int:
        return int(time.time())


class FixedClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, now: int) -> None:
        self._now = int(now)

    def now(self) -> int:
        return self._now

    def set(self, now: int) -> None:
        self._now = int(now)

    def advance(self, seconds: int) -> None:
        self._now += int(seconds)


_system_clock = SystemClock()


def get_clock() -> Clock:
    return _system_clock
