"""Tasks: computations driven by the runtime, and the handles that observe them."""

from __future__ import annotations

from collections.abc import Coroutine, Generator
from enum import Enum
from types import TracebackType
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union, cast

from tickrun.errors import TaskCancelledError, TaskNotFinishedError
from tickrun.suspend import PENDING, Poll, Ready, Suspendable
from tickrun.waker import Waker

if TYPE_CHECKING:
    from tickrun.ready_queue import ReadyQueue

T = TypeVar("T")

Computation = Union[Coroutine[Any, Any, T], Generator[Any, Any, T]]


class TaskStatus(Enum):
    PENDING = "pending"
    FINISHED = "finished"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not TaskStatus.PENDING


class Task(Generic[T]):
    """Drives one computation between suspension points.

    The task owns the coroutine (or generator) and the suspendable it is
    currently parked on. Its waker is the only way back onto the ready queue.
    Exceptions raised by the computation are stored on the task rather than
    propagated, and surface through its ``JoinHandle``.
    """

    def __init__(self, computation: Computation[T], queue: ReadyQueue) -> None:
        self._computation = computation
        self._waker = Waker(self, queue)
        self._awaiting: Suspendable | None = None
        self._scheduled = False
        self._running = False
        self._status = TaskStatus.PENDING
        self._result: T | None = None
        self._error: BaseException | None = None
        self._error_traceback: TracebackType | None = None
        self._join_wakers: list[Waker] = []

    @property
    def status(self) -> TaskStatus:
        return self._status

    @property
    def name(self) -> str:
        return getattr(self._computation, "__qualname__", type(self._computation).__name__)

    def done(self) -> bool:
        return self._status.is_terminal

    def schedule(self, queue: ReadyQueue) -> None:
        """Put the task on ``queue`` unless it is already there or finished."""
        if self._scheduled or self._status.is_terminal:
            return
        if queue.push(self):
            self._scheduled = True

    def run(self) -> bool:
        """Resume until the next pending suspension or completion.

        Returns:
            True if the task is finished (in any terminal status).
        """
        self._scheduled = False
        if self._status.is_terminal:
            return True
        self._running = True
        try:
            return self._step()
        finally:
            self._running = False

    def _step(self) -> bool:
        outcome: Ready = Ready(None)
        while True:
            if self._awaiting is None:
                try:
                    if outcome.error is not None:
                        yielded = self._computation.throw(outcome.error)
                    else:
                        yielded = self._computation.send(outcome.value)
                except StopIteration as stop:
                    self._finish(TaskStatus.FINISHED, result=stop.value)
                    return True
                except Exception as exc:
                    self._finish(TaskStatus.FAILED, error=exc)
                    return True
                if not isinstance(yielded, Suspendable):
                    outcome = Ready(
                        error=TypeError(
                            f"computation yielded {type(yielded).__name__}, "
                            "expected a Suspendable (did you mean `await park_until(...)`?)"
                        )
                    )
                    continue
                self._awaiting = yielded
            awaiting = self._awaiting
            try:
                poll = awaiting.poll(self._waker)
            except Exception as exc:
                self._awaiting = None
                outcome = Ready(error=exc)
                continue
            if poll is PENDING:
                return False
            self._awaiting = None
            if not isinstance(poll, Ready):
                outcome = Ready(
                    error=TypeError(
                        f"{type(awaiting).__name__}.poll() returned {type(poll).__name__}, "
                        "expected Ready or PENDING"
                    )
                )
                continue
            outcome = poll

    def cancel(self) -> bool:
        """Stop the computation for good. Returns False if it already finished."""
        if self._status.is_terminal:
            return False
        if self._running:
            raise RuntimeError(f"task {self.name!r} cannot cancel itself while running")
        if self._awaiting is not None:
            self._awaiting.release()
            self._awaiting = None
        try:
            self._computation.close()
        finally:
            self._finish(TaskStatus.CANCELLED)
        return True

    def add_join_waker(self, waker: Waker) -> None:
        if any(existing.will_wake(waker) for existing in self._join_wakers):
            return
        self._join_wakers.append(waker.clone())

    def outcome(self) -> Ready:
        if self._status is TaskStatus.CANCELLED:
            return Ready(error=TaskCancelledError(f"task {self.name!r} was cancelled"))
        if self._status is TaskStatus.FAILED:
            error = cast(BaseException, self._error)
            # traceback as of the failure; each throw or raise appends to it
            return Ready(error=error.with_traceback(self._error_traceback))
        if self._status is TaskStatus.FINISHED:
            return Ready(self._result)
        raise TaskNotFinishedError(f"task {self.name!r} has not finished")

    def _finish(
        self,
        status: TaskStatus,
        *,
        result: T | None = None,
        error: BaseException | None = None,
    ) -> None:
        self._status = status
        self._result = result
        self._error = error
        self._error_traceback = error.__traceback__ if error is not None else None
        join_wakers, self._join_wakers = self._join_wakers, []
        for waker in join_wakers:
            waker.wake()

    def __repr__(self) -> str:
        return f"Task({self.name!r}, status={self._status.value})"


class JoinHandle(Suspendable, Generic[T]):
    """Handle returned by ``spawn``.

    Awaiting it suspends the caller until the task finishes and returns its
    result (or raises its exception).
    """

    def __init__(self, task: Task[T]) -> None:
        self._task = task

    def done(self) -> bool:
        return self._task.done()

    def cancelled(self) -> bool:
        return self._task.status is TaskStatus.CANCELLED

    @property
    def status(self) -> TaskStatus:
        return self._task.status

    def result(self) -> T:
        outcome = self._task.outcome()
        if outcome.error is not None:
            raise outcome.error
        return outcome.value

    def exception(self) -> BaseException | None:
        outcome = self._task.outcome()
        return outcome.error

    def cancel(self) -> bool:
        return self._task.cancel()

    def poll(self, waker: Waker) -> Poll:
        if self._task.done():
            return self._task.outcome()
        self._task.add_join_waker(waker)
        return PENDING

    def __repr__(self) -> str:
        return f"JoinHandle({self._task!r})"


__all__ = [
    "Computation",
    "JoinHandle",
    "Task",
    "TaskStatus",
]
