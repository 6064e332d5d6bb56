"""Host collaborators: the cycle counter and usage meter the runtime reads."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@runtime_checkable
class Host(Protocol):
    """What the runtime needs from the environment that drives it.

    ``current_cycle`` must never decrease and advances exactly once between
    calls to ``Runtime.run()``. ``usage_fraction`` reports how much of this
    cycle's allotment is already spent and may be queried any number of times.
    """

    def current_cycle(self) -> int: ...

    def usage_fraction(self) -> float: ...


def _check_fraction(value: float, *, name: str) -> float:
    fraction = float(value)
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")
    return fraction


@dataclass
class ManualHost:
    """Deterministic host whose cycle and usage are driven by hand."""

    cycle: int = 0
    usage: float = 0.0

    def __post_init__(self) -> None:
        if self.cycle < 0:
            raise ValueError("cycle must be >= 0")
        self.usage = _check_fraction(self.usage, name="usage")

    def current_cycle(self) -> int:
        return self.cycle

    def usage_fraction(self) -> float:
        return self.usage

    def advance(self, cycles: int = 1) -> int:
        """Move to a later cycle; usage starts over at zero."""
        if cycles < 0:
            raise ValueError("cycles must be >= 0")
        self.cycle += cycles
        self.usage = 0.0
        return self.cycle

    def charge(self, fraction: float) -> float:
        """Spend part of the current cycle's allotment."""
        if fraction < 0.0:
            raise ValueError("fraction must be >= 0")
        self.usage = min(1.0, self.usage + fraction)
        return self.usage

    def set_usage(self, fraction: float) -> float:
        self.usage = _check_fraction(fraction, name="usage")
        return self.usage


@dataclass
class WallClockHost:
    """Host that meters each cycle against a wall-clock allotment.

    Call ``begin_cycle()`` at the top of every host loop iteration, before
    ``Runtime.run()``.
    """

    cycle_seconds: float
    time_fn: Callable[[], float] = time.perf_counter
    cycle: int = 0
    _started_at: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.cycle_seconds <= 0:
            raise ValueError(f"cycle_seconds must be > 0, got {self.cycle_seconds}")
        self._started_at = self.time_fn()

    def begin_cycle(self) -> int:
        self.cycle += 1
        self._started_at = self.time_fn()
        return self.cycle

    def current_cycle(self) -> int:
        return self.cycle

    def usage_fraction(self) -> float:
        elapsed = self.time_fn() - self._started_at
        return min(1.0, max(0.0, elapsed / self.cycle_seconds))


__all__ = [
    "Host",
    "ManualHost",
    "WallClockHost",
]
