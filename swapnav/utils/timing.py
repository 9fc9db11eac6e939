"""Per-phase timing for navigations."""

from __future__ import annotations

import time


class PhaseClock:
    """Records how long each navigation phase took.

    Entering a phase closes the previous one, so a navigation only needs
    ``enter(phase)`` at each boundary and ``stop()`` at the end.
    """

    def __init__(self) -> None:
        self._laps: dict[str, float] = {}
        self._started = time.monotonic()
        self._lap_start: float | None = None
        self._current: str | None = None

    def enter(self, phase: str) -> None:
        self.stop()
        self._current = phase
        self._lap_start = time.monotonic()

    def stop(self) -> float:
        """Close the current phase and return its duration."""
        if self._lap_start is None or self._current is None:
            return 0.0
        elapsed = time.monotonic() - self._lap_start
        self._laps[self._current] = elapsed
        self._lap_start = None
        self._current = None
        return elapsed

    @property
    def laps(self) -> dict[str, float]:
        return dict(self._laps)

    @property
    def total(self) -> float:
        """Wall-clock time since the clock was created."""
        return time.monotonic() - self._started
