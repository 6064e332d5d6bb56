"""Cycle-indexed registry of wakers waiting for a future cycle."""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from threading import Lock
from typing import TYPE_CHECKING

from tickrun._validators import ensure_cycle

if TYPE_CHECKING:
    from tickrun.waker import Waker

Bucket = list["Waker | None"]


@dataclass(frozen=True)
class TimerSlot:
    """Position of one registration: its cycle and index within that cycle's bucket."""

    cycle: int
    index: int
    bucket: Bucket = field(repr=False, compare=False)


class WakeRegistry:
    """Ordered map from target cycle to the wakers registered for it.

    Cycles fire in ascending order and, within a cycle, in registration order.
    A fired cycle is removed from the map, so each registration wakes at most
    once. Cancelling a registration leaves an empty slot (a tombstone) instead
    of shifting the bucket, keeping every other ``TimerSlot`` valid.
    """

    def __init__(self) -> None:
        self._buckets: dict[int, Bucket] = {}
        self._cycles: list[int] = []
        self._lock = Lock()

    def schedule(self, target_cycle: int, waker: Waker) -> TimerSlot:
        ensure_cycle(target_cycle, name="target_cycle")
        with self._lock:
            bucket = self._buckets.get(target_cycle)
            if bucket is None:
                bucket = []
                self._buckets[target_cycle] = bucket
                heapq.heappush(self._cycles, target_cycle)
            bucket.append(waker)
            return TimerSlot(cycle=target_cycle, index=len(bucket) - 1, bucket=bucket)

    def replace(self, slot: TimerSlot, waker: Waker) -> bool:
        """Swap the waker of a pending slot. Returns False if the slot already fired."""
        with self._lock:
            if self._buckets.get(slot.cycle) is not slot.bucket:
                return False
            slot.bucket[slot.index] = waker
            return True

    def cancel(self, slot: TimerSlot) -> None:
        with self._lock:
            slot.bucket[slot.index] = None

    def fire_due(self, current_cycle: int) -> int:
        """Remove every cycle <= ``current_cycle`` and wake its live slots.

        Wakers run after the lock is released, so they may touch the registry.

        Returns:
            Number of wakers invoked.
        """
        due: list[Bucket] = []
        with self._lock:
            while self._cycles and self._cycles[0] <= current_cycle:
                cycle = heapq.heappop(self._cycles)
                due.append(self._buckets.pop(cycle))

        fired = 0
        for bucket in due:
            for waker in bucket:
                if waker is None:
                    continue
                waker.wake()
                fired += 1
        return fired

    def next_due(self) -> int | None:
        with self._lock:
            if not self._cycles:
                return None
            return self._cycles[0]

    def pending_cycles(self) -> list[int]:
        with self._lock:
            return sorted(self._buckets)

    def clear(self) -> None:
        with self._lock:
            for bucket in self._buckets.values():
                bucket[:] = [None] * len(bucket)
            self._buckets.clear()
            self._cycles.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(
                1
                for bucket in self._buckets.values()
                for waker in bucket
                if waker is not None
            )


__all__ = [
    "TimerSlot",
    "WakeRegistry",
]
