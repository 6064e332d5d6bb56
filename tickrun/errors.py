"""tickrun error types."""

from __future__ import annotations


class TickRunError(Exception):
    """Base class for all tickrun errors."""


class AlreadyRegisteredError(TickRunError, RuntimeError):
    """Raised when a Runtime is constructed while another one is still live.

    Only one runtime may exist per process: every runtime would read the same
    host cycle counter and usage meter, so a second one is a programming error.

    Example:
        >>> first = Runtime(host)
        >>> Runtime(host)  # AlreadyRegisteredError
        >>>
        >>> # Fix: release the first runtime before creating another
        >>> first.close()
        >>> second = Runtime(host)
    """

    def __init__(self) -> None:
        super().__init__(
            "Only one tickrun Runtime can be live at a time\n"
            "Hint: call `close()` on the existing runtime (or leave its `with` block) first"
        )


class NoActiveSchedulerError(TickRunError, RuntimeError):
    """Raised when spawn/park_until is used while no Runtime is live."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"{operation}() requires a live tickrun Runtime\n"
            "Hint: construct a `Runtime(host)` before spawning or parking computations"
        )


class RuntimeClosedError(TickRunError, RuntimeError):
    """Raised when a closed Runtime is used again."""


class TaskNotFinishedError(TickRunError):
    """Raised when the result of a task is requested before it completed."""


class TaskCancelledError(TickRunError):
    """Raised when the result of a cancelled task is requested or awaited."""


__all__ = [
    "AlreadyRegisteredError",
    "NoActiveSchedulerError",
    "RuntimeClosedError",
    "TaskCancelledError",
    "TaskNotFinishedError",
    "TickRunError",
]
