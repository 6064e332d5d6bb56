"""Tests for task driving, join handles and cancellation."""

from __future__ import annotations

import pytest

from tickrun import (
    ManualHost,
    Runtime,
    TaskCancelledError,
    TaskNotFinishedError,
    Suspendable,
    TaskStatus,
    delay,
    park_until,
    spawn,
    yield_now,
)
from tickrun.ready_queue import ReadyQueue
from tickrun.task import Task
from tickrun.waker import Waker


class _FailingPoll(Suspendable):
    def poll(self, waker: Waker) -> object:
        raise ValueError("sensor offline")


class _BadPoll(Suspendable):
    def poll(self, waker: Waker) -> object:
        return 42


def _traceback_depth(error: BaseException) -> int:
    depth = 0
    tb = error.__traceback__
    while tb is not None:
        depth += 1
        tb = tb.tb_next
    return depth


class TestJoinHandle:
    def test_parent_awaits_child_across_cycles(self, host: ManualHost) -> None:
        async def child() -> int:
            await delay(2)
            return 7

        async def parent() -> int:
            value = await spawn(child())
            return value * 2

        with Runtime(host) as runtime:
            handle = spawn(parent())
            runtime.run()
            assert handle.status is TaskStatus.PENDING

            host.advance()
            runtime.run()
            assert not handle.done()

            host.advance()
            report = runtime.run()

            assert handle.result() == 14
            assert report.resumed == 2
            assert report.completed == 2

    def test_awaiting_finished_task_returns_immediately(self, runtime: Runtime) -> None:
        async def child() -> str:
            return "ready"

        child_handle = spawn(child())
        runtime.run()
        assert child_handle.done()

        async def parent() -> str:
            return await child_handle

        parent_handle = spawn(parent())
        report = runtime.run()

        assert parent_handle.result() == "ready"
        assert report.resumed == 1

    def test_child_exception_is_raised_in_awaiting_parent(self, runtime: Runtime) -> None:
        async def child() -> None:
            await yield_now()
            raise LookupError("missing")

        async def parent() -> str:
            try:
                await spawn(child())
            except LookupError as exc:
                return f"caught {exc}"
            return "not caught"

        handle = spawn(parent())
        runtime.run()

        assert handle.result() == "caught missing"

    def test_several_waiters_on_one_task(self, runtime: Runtime, host: ManualHost) -> None:
        async def child() -> int:
            await park_until(1)
            return 3

        child_handle = spawn(child())

        async def waiter() -> int:
            return await child_handle

        waiters = [spawn(waiter()) for _ in range(3)]
        runtime.run()
        host.advance()
        runtime.run()

        assert [w.result() for w in waiters] == [3, 3, 3]

    def test_result_before_completion_raises(self, runtime: Runtime) -> None:
        async def waiter() -> None:
            await park_until(10)

        handle = spawn(waiter())
        with pytest.raises(TaskNotFinishedError, match="has not finished"):
            handle.result()
        with pytest.raises(TaskNotFinishedError):
            handle.exception()

    def test_exception_is_none_on_success(self, runtime: Runtime) -> None:
        async def ok() -> int:
            return 1

        handle = spawn(ok())
        runtime.run()
        assert handle.exception() is None
        assert handle.status is TaskStatus.FINISHED


class TestCancel:
    def test_cancel_queued_task_before_it_runs(self, runtime: Runtime) -> None:
        log: list[str] = []

        async def never() -> None:
            log.append("ran")

        handle = spawn(never())
        assert handle.cancel()

        report = runtime.run()

        assert log == []
        assert report.resumed == 0
        assert handle.cancelled()
        with pytest.raises(TaskCancelledError, match="was cancelled"):
            handle.result()
        assert not handle.cancel()

    def test_cancel_runs_cleanup(self, runtime: Runtime) -> None:
        log: list[str] = []

        async def guarded() -> None:
            try:
                await park_until(100)
            finally:
                log.append("cleanup")

        handle = spawn(guarded())
        runtime.run()
        handle.cancel()

        assert log == ["cleanup"]
        assert runtime.parked() == 0

    def test_awaiting_cancelled_task_raises(self, runtime: Runtime) -> None:
        async def child() -> None:
            await park_until(100)

        child_handle = spawn(child())

        async def parent() -> str:
            try:
                await child_handle
            except TaskCancelledError:
                return "cancelled"
            return "finished"

        parent_handle = spawn(parent())
        runtime.run()

        child_handle.cancel()
        runtime.run()

        assert parent_handle.result() == "cancelled"

    def test_task_cannot_cancel_itself(self, runtime: Runtime) -> None:
        handles = []

        async def suicidal() -> None:
            handles[0].cancel()

        handles.append(spawn(suicidal()))
        runtime.run()

        assert isinstance(handles[0].exception(), RuntimeError)


class TestTaskDriving:
    def test_yielding_a_non_suspendable_fails_the_task(self, runtime: Runtime) -> None:
        def bad():
            yield 42

        handle = spawn(bad())
        runtime.run()

        assert handle.status is TaskStatus.FAILED
        with pytest.raises(TypeError, match="expected a Suspendable"):
            handle.result()

    def test_computation_may_recover_from_bad_yield(self, runtime: Runtime) -> None:
        def forgiving():
            try:
                yield "oops"
            except TypeError:
                return "recovered"
            return "unexpected"

        handle = spawn(forgiving())
        runtime.run()

        assert handle.result() == "recovered"

    def test_schedule_is_idempotent_while_queued(self) -> None:
        async def noop() -> None:
            return None

        queue = ReadyQueue()
        task = Task(noop(), queue)
        task.schedule(queue)
        task.schedule(queue)

        assert len(queue) == 1
        popped = queue.try_pop()
        assert popped is task
        assert popped.run()
        assert task.done()

        task.schedule(queue)
        assert queue.is_empty()

    def test_poll_error_is_raised_at_the_suspension_point(self, runtime: Runtime) -> None:
        log: list[str] = []

        async def reader() -> str:
            try:
                await _FailingPoll()
            except ValueError as exc:
                return f"caught {exc}"
            return "not caught"

        async def sibling() -> None:
            log.append("sibling")

        handle = spawn(reader())
        spawn(sibling())
        report = runtime.run()

        assert handle.result() == "caught sensor offline"
        assert log == ["sibling"]
        assert report.completed == 2

    def test_uncaught_poll_error_fails_only_that_task(self, runtime: Runtime) -> None:
        async def reader() -> None:
            await _FailingPoll()

        async def sibling() -> int:
            return 5

        failed = spawn(reader())
        ok = spawn(sibling())
        runtime.run()

        assert failed.status is TaskStatus.FAILED
        assert isinstance(failed.exception(), ValueError)
        assert ok.result() == 5

    def test_poll_returning_garbage_fails_the_task(self, runtime: Runtime) -> None:
        async def reader() -> None:
            await _BadPoll()

        handle = spawn(reader())
        runtime.run()

        assert handle.status is TaskStatus.FAILED
        with pytest.raises(
            TypeError, match=r"_BadPoll.poll\(\) returned int, expected Ready or PENDING"
        ):
            handle.result()


class TestFailureTraceback:
    def test_repeated_result_calls_do_not_grow_the_traceback(self, runtime: Runtime) -> None:
        async def boom() -> None:
            raise LookupError("gone")

        handle = spawn(boom())
        runtime.run()

        depths = []
        for _ in range(3):
            with pytest.raises(LookupError) as excinfo:
                handle.result()
            depths.append(_traceback_depth(excinfo.value))

        assert depths[0] == depths[1] == depths[2]

    def test_each_joiner_sees_the_traceback_from_the_failure(
        self, runtime: Runtime, host: ManualHost
    ) -> None:
        async def child() -> None:
            await park_until(1)
            raise LookupError("gone")

        child_handle = spawn(child())
        depths: list[int] = []

        async def joiner() -> None:
            try:
                await child_handle
            except LookupError as exc:
                depths.append(_traceback_depth(exc))

        joiners = [spawn(joiner()) for _ in range(3)]
        runtime.run()
        host.advance()
        runtime.run()

        assert all(j.done() for j in joiners)
        assert len(depths) == 3
        assert depths[0] == depths[1] == depths[2]
