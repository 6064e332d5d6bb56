"""Suspension protocol shared by every wake source.

A computation suspends by awaiting (or, in a plain generator, yielding) a
``Suspendable``. The task driving it calls ``poll(waker)``:

- ``Ready(value)`` resumes the computation right away with ``value``
  (or raises ``Ready.error`` at the suspension point).
- ``PENDING`` parks the task. The suspendable has kept the waker and invokes
  it once the task can make progress; the task then polls it again.

Usage:
    async def worker():
        await park_until(105)   # coroutine style
        return "done"

    def legacy_worker():
        yield park_until(105)   # generator style
        return "done"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Generator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from tickrun.waker import Waker


@dataclass(frozen=True)
class Ready:
    """A completed poll, carrying the value (or error) to resume with."""

    value: Any = None
    error: BaseException | None = None


class _Pending:
    __slots__ = ()

    def __repr__(self) -> str:
        return "PENDING"


PENDING = _Pending()

Poll = Union[Ready, _Pending]


class Suspendable(ABC):
    """A value a computation can suspend on."""

    @abstractmethod
    def poll(self, waker: Waker) -> Poll:
        """Report readiness; when pending, arrange for ``waker`` to be invoked."""

    def release(self) -> None:
        """Drop any wake registration; called when the waiting task is cancelled."""

    def __await__(self) -> Generator[Suspendable, Any, Any]:
        result = yield self
        return result

    __iter__ = __await__


class YieldNow(Suspendable):
    """Give other ready tasks a turn, resuming later in the same cycle if budget allows."""

    def __init__(self) -> None:
        self._yielded = False

    def poll(self, waker: Waker) -> Poll:
        if self._yielded:
            return Ready(None)
        self._yielded = True
        waker.wake()
        return PENDING


__all__ = [
    "PENDING",
    "Poll",
    "Ready",
    "Suspendable",
    "YieldNow",
]
