"""
Elapsed-time clocks for the motion core.

Each motion owns one Clock; a Clock reads seconds from a time source
(``time.perf_counter`` by default, or a ManualTimeSource in headless runs).
"""

import time


class ManualTimeSource:
    """Time source that only moves when told to (tests, presets, simulate)."""

    def __init__(self, start: float = 0.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> float:
        if not dt >= 0:   # also rejects NaN
            raise ValueError(f"advance: dt must be >= 0, got {dt}")
        self.now += dt
        return self.now


class Clock:
    """Seconds since a reference instant."""

    def __init__(self, time_source=time.perf_counter):
        self.time_source = time_source
        self._ref = time_source()

    def reset(self) -> None:
        self._ref = self.time_source()

    def elapsed(self) -> float:
        return self.time_source() - self._ref

    def __repr__(self) -> str:
        return f"Clock(elapsed={self.elapsed():.4f})"
