"""FIFO of tasks that are ready to be resumed."""

from __future__ import annotations

from collections import deque
from threading import Lock
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tickrun.task import Task


class ReadyQueue:
    """Runnable tasks in the order they became ready.

    Any waker may push; only the runtime pops. Once closed, pushes are dropped,
    which is how wakers that outlive their runtime become no-ops.
    """

    def __init__(self) -> None:
        self._items: deque[Task] = deque()
        self._lock = Lock()
        self._closed = False

    def push(self, task: Task) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._items.append(task)
            return True

    def try_pop(self) -> Task | None:
        """Take the oldest ready task, or None if there is none. Never blocks."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._items.clear()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def is_empty(self) -> bool:
        with self._lock:
            return not self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


__all__ = [
    "ReadyQueue",
]
