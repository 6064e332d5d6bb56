"""Wake handles: the capability to make a parked task runnable again."""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tickrun.ready_queue import ReadyQueue
    from tickrun.task import Task


class Waker:
    """Pushes its task back onto the ready queue when invoked.

    A waker refers to the queue weakly and never owns the task's progress, so
    it can be cloned and handed to any wake source. Waking a task that is
    already queued, already finished, or whose runtime is gone does nothing.
    """

    __slots__ = ("_task", "_queue_ref")

    def __init__(self, task: Task, queue: ReadyQueue) -> None:
        self._task = task
        self._queue_ref: weakref.ref[ReadyQueue] = weakref.ref(queue)

    def wake(self) -> None:
        queue = self._queue_ref()
        if queue is None:
            return
        self._task.schedule(queue)

    def clone(self) -> Waker:
        clone = Waker.__new__(Waker)
        clone._task = self._task
        clone._queue_ref = self._queue_ref
        return clone

    def will_wake(self, other: Waker) -> bool:
        """True if both wakers resume the same task on the same queue."""
        return self._task is other._task and self._queue_ref() is other._queue_ref()

    def __repr__(self) -> str:
        return f"Waker(task={self._task!r})"


__all__ = [
    "Waker",
]
