"""The per-cycle scheduler.

Runtime.run() is called by the host once per cycle, after the host has
advanced its cycle counter:
1. Wake every task whose timer is due (key <= current cycle).
2. Resume ready tasks in FIFO order while usage stays within the budget.

The budget is only checked between resumptions. A task that runs long inside
a single step is never interrupted; the runtime only refuses to start another
one once the usage fraction is above ``budget_fraction``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import TypeVar

from tickrun._validators import ensure_computation
from tickrun.config import RuntimeConfig
from tickrun.errors import RuntimeClosedError
from tickrun.handle import RuntimeHandle, current_handle, register, unregister
from tickrun.host import Host
from tickrun.ready_queue import ReadyQueue
from tickrun.task import Computation, JoinHandle, Task
from tickrun.time import ParkUntil
from tickrun.wake_registry import WakeRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CycleReport:
    """What one call to Runtime.run() did."""

    cycle: int
    timers_fired: int
    resumed: int
    completed: int
    queued: int
    budget_exhausted: bool


def _spawn(handle: RuntimeHandle, computation: Computation[T]) -> JoinHandle[T]:
    ensure_computation(computation, name="computation")
    task: Task[T] = Task(computation, handle.queue)
    handle.track(task)
    task.schedule(handle.queue)
    return JoinHandle(task)


def spawn(computation: Computation[T]) -> JoinHandle[T]:
    """Queue a computation on the live runtime.

    Raises:
        NoActiveSchedulerError: if no runtime is live.
    """
    return _spawn(current_handle("spawn"), computation)


class Runtime:
    """Cooperative, budget-aware scheduler driven once per host cycle.

    Constructing a Runtime registers it as the process's live runtime;
    ``close()`` (or leaving a ``with`` block) releases it. Only one may be live
    at a time.

    Example:
        host = ManualHost(cycle=100)
        with Runtime(host) as runtime:
            runtime.spawn(worker())
            while running:
                host.advance()
                runtime.run()
    """

    def __init__(self, host: Host, config: RuntimeConfig | None = None) -> None:
        if not isinstance(host, Host):
            raise TypeError(
                f"host must provide current_cycle() and usage_fraction(), got {type(host).__name__}"
            )
        self._host = host
        self._config = config or RuntimeConfig()
        self._queue = ReadyQueue()
        self._registry = WakeRegistry()
        self._handle = RuntimeHandle(queue=self._queue, registry=self._registry, host=host)
        register(self._handle)
        self._closed = False
        logger.debug(
            "Registered tickrun runtime (budget_fraction=%s)", self._config.budget_fraction
        )

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    @property
    def host(self) -> Host:
        return self._host

    @property
    def closed(self) -> bool:
        return self._closed

    def queued(self) -> int:
        """Number of tasks waiting on the ready queue."""
        return len(self._queue)

    def parked(self) -> int:
        """Number of live timer registrations."""
        return len(self._registry)

    def spawn(self, computation: Computation[T]) -> JoinHandle[T]:
        self._ensure_open()
        return _spawn(self._handle, computation)

    def park_until(self, target_cycle: int) -> ParkUntil:
        self._ensure_open()
        return ParkUntil(target_cycle, self._handle)

    def run(self) -> CycleReport:
        """Run one cycle's worth of work."""
        self._ensure_open()
        cycle = self._host.current_cycle()
        fired = self._registry.fire_due(cycle)

        budget = self._config.budget_fraction
        resumed = 0
        completed = 0
        budget_exhausted = False
        while True:
            if self._host.usage_fraction() > budget:
                budget_exhausted = True
                break
            task = self._queue.try_pop()
            if task is None:
                break
            if task.done():
                # cancelled while queued
                continue
            resumed += 1
            if task.run():
                completed += 1

        report = CycleReport(
            cycle=cycle,
            timers_fired=fired,
            resumed=resumed,
            completed=completed,
            queued=len(self._queue),
            budget_exhausted=budget_exhausted,
        )
        logger.debug(
            "Cycle %d: fired=%d resumed=%d completed=%d queued=%d budget_exhausted=%s",
            report.cycle,
            report.timers_fired,
            report.resumed,
            report.completed,
            report.queued,
            report.budget_exhausted,
        )
        return report

    def close(self) -> None:
        """Cancel outstanding tasks and release the process-wide registration."""
        if self._closed:
            return
        self._closed = True
        first_error: Exception | None = None
        try:
            for task in self._handle.live_tasks():
                try:
                    task.cancel()
                except Exception as exc:
                    if first_error is None:
                        first_error = exc
        finally:
            self._queue.close()
            self._registry.clear()
            unregister(self._handle)
            logger.debug("Released tickrun runtime")
        if first_error is not None:
            raise first_error

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeClosedError("Runtime is closed")

    def __enter__(self) -> Runtime:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = [
    "CycleReport",
    "Runtime",
    "spawn",
]
