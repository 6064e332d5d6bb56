"""Cycle-based suspension.

These park the calling computation until the host's cycle counter reaches a
target:
- park_until: resume once ``current_cycle() >= target_cycle``
- delay: resume ``cycles`` cycles from now
- yield_cycle: resume in the next cycle
- yield_now: resume later in this cycle, after the tasks already queued

Usage:
    async def harvester():
        while True:
            harvest()
            await delay(10)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tickrun._validators import ensure_cycle
from tickrun.handle import RuntimeHandle, current_handle
from tickrun.suspend import PENDING, Poll, Ready, Suspendable, YieldNow

if TYPE_CHECKING:
    from tickrun.wake_registry import TimerSlot
    from tickrun.waker import Waker


class ParkUntil(Suspendable):
    """Suspend until the host reaches ``target_cycle``.

    A target that is already due completes on the first poll without ever
    touching the wake registry. Otherwise the first poll registers the waker
    under the target cycle; later pending polls only swap the waker.
    """

    def __init__(self, target_cycle: int, handle: RuntimeHandle) -> None:
        self.target_cycle = ensure_cycle(target_cycle, name="target_cycle")
        self._handle = handle
        self._slot: TimerSlot | None = None

    @property
    def registered(self) -> bool:
        return self._slot is not None

    def poll(self, waker: Waker) -> Poll:
        registry = self._handle.registry
        if self._handle.host.current_cycle() >= self.target_cycle:
            if self._slot is not None:
                registry.cancel(self._slot)
                self._slot = None
            return Ready(None)
        if self._slot is None:
            self._slot = registry.schedule(self.target_cycle, waker.clone())
        elif not registry.replace(self._slot, waker.clone()):
            # Fired, but the host cycle has not caught up; register again.
            self._slot = registry.schedule(self.target_cycle, waker.clone())
        return PENDING

    def release(self) -> None:
        if self._slot is not None:
            self._handle.registry.cancel(self._slot)
            self._slot = None

    def __repr__(self) -> str:
        return f"ParkUntil(target_cycle={self.target_cycle})"


def park_until(target_cycle: int) -> ParkUntil:
    """Suspend the calling computation until ``current_cycle() >= target_cycle``.

    Raises:
        NoActiveSchedulerError: if no runtime is live.
    """
    return ParkUntil(target_cycle, current_handle("park_until"))


def delay(cycles: int) -> ParkUntil:
    """Suspend for ``cycles`` cycles. ``delay(0)`` completes immediately."""
    ensure_cycle(cycles, name="cycles")
    handle = current_handle("delay")
    return ParkUntil(handle.host.current_cycle() + cycles, handle)


def yield_cycle() -> ParkUntil:
    """Suspend until the next cycle."""
    handle = current_handle("yield_cycle")
    return ParkUntil(handle.host.current_cycle() + 1, handle)


def yield_now() -> YieldNow:
    return YieldNow()


def current_cycle() -> int:
    return current_handle("current_cycle").host.current_cycle()


__all__ = [
    "ParkUntil",
    "current_cycle",
    "delay",
    "park_until",
    "yield_cycle",
    "yield_now",
]
