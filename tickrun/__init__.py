"""
tickrun - a cooperative, budget-aware task runtime for tick-driven hosts.

The host calls ``Runtime.run()`` once per cycle. Work is written as ordinary
coroutines (or generators) that suspend on cycle timers or on each other, and
the runtime resumes as many of them as the per-cycle budget allows.

Example:
    >>> from tickrun import ManualHost, Runtime, delay, spawn
    >>>
    >>> async def worker():
    ...     await delay(5)
    ...     return "done"
    >>>
    >>> host = ManualHost()
    >>> with Runtime(host) as runtime:
    ...     handle = spawn(worker())
    ...     for _ in range(6):
    ...         runtime.run()
    ...         host.advance()
"""

from tickrun.config import BUDGET_FRACTION_ENV_KEY, Builder, RuntimeConfig
from tickrun.errors import (
    AlreadyRegisteredError,
    NoActiveSchedulerError,
    RuntimeClosedError,
    TaskCancelledError,
    TaskNotFinishedError,
    TickRunError,
)
from tickrun.handle import has_active_runtime
from tickrun.host import Host, ManualHost, WallClockHost
from tickrun.runtime import CycleReport, Runtime, spawn
from tickrun.suspend import PENDING, Poll, Ready, Suspendable, YieldNow
from tickrun.task import JoinHandle, TaskStatus
from tickrun.time import ParkUntil, current_cycle, delay, park_until, yield_cycle, yield_now
from tickrun.waker import Waker

__all__ = [
    "AlreadyRegisteredError",
    "BUDGET_FRACTION_ENV_KEY",
    "Builder",
    "CycleReport",
    "Host",
    "JoinHandle",
    "ManualHost",
    "NoActiveSchedulerError",
    "PENDING",
    "ParkUntil",
    "Poll",
    "Ready",
    "Runtime",
    "RuntimeClosedError",
    "RuntimeConfig",
    "Suspendable",
    "TaskCancelledError",
    "TaskNotFinishedError",
    "TaskStatus",
    "TickRunError",
    "WallClockHost",
    "Waker",
    "YieldNow",
    "current_cycle",
    "delay",
    "has_active_runtime",
    "park_until",
    "spawn",
    "yield_cycle",
    "yield_now",
]
