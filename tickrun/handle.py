"""Process-wide registration of the live runtime.

``spawn`` and ``park_until`` are called from deep inside computations, where
threading a runtime reference through every call is impractical, so the live
runtime publishes a handle here. At most one handle is registered at a time.
"""

from __future__ import annotations

import itertools
import threading
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tickrun.errors import AlreadyRegisteredError, NoActiveSchedulerError

if TYPE_CHECKING:
    from tickrun.host import Host
    from tickrun.ready_queue import ReadyQueue
    from tickrun.task import Task
    from tickrun.wake_registry import WakeRegistry


@dataclass(eq=False)
class RuntimeHandle:
    """What wake sources need from the live runtime."""

    queue: ReadyQueue
    registry: WakeRegistry
    host: Host
    tasks: weakref.WeakValueDictionary[int, Task] = field(
        default_factory=weakref.WeakValueDictionary, repr=False
    )
    _spawn_order: itertools.count = field(default_factory=itertools.count, repr=False)

    def track(self, task: Task) -> None:
        self.tasks[next(self._spawn_order)] = task

    def live_tasks(self) -> list[Task]:
        """Tracked tasks that are still referenced, in spawn order."""
        return [task for _, task in sorted(self.tasks.items(), key=lambda item: item[0])]


_CURRENT: RuntimeHandle | None = None
_CURRENT_LOCK = threading.Lock()


def register(handle: RuntimeHandle) -> None:
    global _CURRENT
    with _CURRENT_LOCK:
        if _CURRENT is not None:
            raise AlreadyRegisteredError()
        _CURRENT = handle


def unregister(handle: RuntimeHandle) -> None:
    """Clear the registration, if ``handle`` is still the registered one."""
    global _CURRENT
    with _CURRENT_LOCK:
        if _CURRENT is handle:
            _CURRENT = None


def current_handle(operation: str) -> RuntimeHandle:
    with _CURRENT_LOCK:
        handle = _CURRENT
    if handle is None:
        raise NoActiveSchedulerError(operation)
    return handle


def has_active_runtime() -> bool:
    with _CURRENT_LOCK:
        return _CURRENT is not None


__all__ = [
    "RuntimeHandle",
    "current_handle",
    "has_active_runtime",
    "register",
    "unregister",
]
