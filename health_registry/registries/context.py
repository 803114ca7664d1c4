"""Call context: who is calling and when."""

import time
from dataclasses import dataclass

# Opaque caller identity, authenticated by the surrounding environment
Principal = str


@dataclass(frozen=True)
class CallContext:
    """Caller identity and current time, captured once per operation."""
    caller: Principal
    now: int


class SystemClock:
    """Wall clock in whole unix seconds."""

    def now(self) -> int:
        return int(time.time())


class FixedClock:
    """Manually driven clock for tests and scripted runs."""

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        self._now = timestamp

    def advance(self, seconds: int) -> int:
        """Move the clock forward and return the new time."""
        self._now += seconds
        return self._now
