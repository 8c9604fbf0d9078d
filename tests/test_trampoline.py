"""
Tests for the trampoline driver.

These tests verify:
1. Base case and deep recursion past the interpreter recursion limit
2. Stack depth bookkeeping and step classification
3. Usage errors (double issue, orphaned calls, stalled frames)
4. Nested drives and single consumption of result cells
5. Failure propagation and unwinding
"""

from __future__ import annotations

import logging
import sys

import pytest

from heaprec import (
    Err,
    IncorrectRecursionError,
    Ok,
    RecursionDepthExceededError,
    RecursionUsageError,
    ResultCell,
    StalledFrameError,
    StepKind,
    Trampoline,
    TrampolineConfig,
    drive_result,
    drive_to_completion,
    recurse_into,
)
from heaprec.slot import active_slot
from heaprec.trampoline import DriveSnapshot
from tests.computations import leaf, pow_mod, pow_mod_iterative

DEEP = 200_000


# ============================================
# Base case & depth
# ============================================


class TestBaseCase:

    def test_returns_value_without_recursion(self) -> None:
        trampoline = Trampoline(TrampolineConfig())

        assert trampoline.drive(leaf(42)) == 42
        assert trampoline.stack_depth == 0
        assert trampoline.last_stats.steps == 1
        assert trampoline.last_stats.max_depth == 1

    def test_module_entry_point(self) -> None:
        assert drive_to_completion(leaf("value")) == "value"

    def test_rejects_started_generator(self) -> None:
        def gen():
            yield
            return 1

        g = gen()
        next(g)
        with pytest.raises(ValueError, match="already been started"):
            drive_to_completion(g)


class TestDeepRecursion:

    def test_pow_mod_past_recursion_limit(self) -> None:
        assert DEEP > sys.getrecursionlimit() * 10

        result = drive_to_completion(pow_mod(2, DEEP, 1_000_000))

        assert result == pow_mod_iterative(2, DEEP, 1_000_000)
        assert result == pow(2, DEEP, 1_000_000)

    @pytest.mark.slow
    def test_pow_mod_ten_million(self) -> None:
        result = drive_to_completion(pow_mod(2, 10_000_000, 1_000_000))
        assert result == pow_mod_iterative(2, 10_000_000, 1_000_000)

    def test_depth_matches_recursion(self) -> None:
        depths: list[int] = []
        trampoline = Trampoline(
            TrampolineConfig(), on_step=lambda snapshot: depths.append(snapshot.depth)
        )
        n = 1_000

        trampoline.drive(pow_mod(3, n, 1_000))

        stats = trampoline.last_stats
        assert max(depths) == n + 1
        assert stats.max_depth == n + 1
        assert stats.frames_pushed == n + 1
        # every non-leaf frame spawns once and finishes once
        assert stats.steps == 2 * n + 1
        assert stats.cooperative_yields == 0
        assert depths[-1] == 0
        assert trampoline.stack_depth == 0
        assert stats.duration_ns is not None

    def test_steps_resume_child_before_parent(self) -> None:
        snapshots: list[DriveSnapshot] = []
        trampoline = Trampoline(TrampolineConfig(), on_step=snapshots.append)

        trampoline.drive(pow_mod(2, 2, 100))

        assert [s.kind for s in snapshots] == [
            StepKind.SPAWN,
            StepKind.SPAWN,
            StepKind.DONE,
            StepKind.DONE,
            StepKind.DONE,
        ]
        assert [s.depth for s in snapshots] == [2, 3, 2, 1, 0]

    def test_cooperative_yield_resumes_same_frame(self) -> None:
        def pauses():
            yield
            yield
            return "ok"

        trampoline = Trampoline(TrampolineConfig())

        assert trampoline.drive(pauses()) == "ok"
        assert trampoline.last_stats.cooperative_yields == 2
        assert trampoline.last_stats.steps == 3

    def test_sequential_calls_from_one_frame(self) -> None:
        def tree_sum(depth: int):
            if depth == 0:
                return 1
            left = yield recurse_into(tree_sum(depth - 1))
            right = yield recurse_into(tree_sum(depth - 1))
            return left + right

        assert drive_to_completion(tree_sum(10)) == 2**10


# ============================================
# Usage errors
# ============================================


class TestUsageErrors:

    def test_double_issue_raises_incorrect_recursion(self) -> None:
        closed: list[str] = []

        def double_issue():
            try:
                recurse_into(leaf(1))
                recurse_into(leaf(2))
                yield
            finally:
                closed.append("double_issue")

        def parent():
            try:
                return (yield recurse_into(double_issue()))
            finally:
                closed.append("parent")

        trampoline = Trampoline(TrampolineConfig())
        with pytest.raises(IncorrectRecursionError, match="incorrect recursion"):
            trampoline.drive(parent())

        assert closed == ["double_issue", "parent"]
        assert trampoline.stack_depth == 0

    def test_returning_with_pending_call_raises(self) -> None:
        def forgets():
            recurse_into(leaf(1))
            return 0
            yield  # noqa: B901

        with pytest.raises(IncorrectRecursionError, match="without suspending"):
            drive_to_completion(forgets())

    def test_waiting_on_foreign_cell_stalls(self) -> None:
        def stalls():
            yield ResultCell()

        with pytest.raises(StalledFrameError, match="no pending frame will fill"):
            drive_to_completion(stalls())

    def test_recurse_outside_drive(self) -> None:
        with pytest.raises(RecursionUsageError, match="outside of a running drive"):
            recurse_into(leaf())

    def test_same_trampoline_is_not_reentrant(self) -> None:
        trampoline = Trampoline(TrampolineConfig())

        def reenters():
            trampoline.drive(leaf())
            yield

        with pytest.raises(RecursionUsageError, match="already driving"):
            trampoline.drive(reenters())
        assert trampoline.stack_depth == 0

    def test_drive_result_captures_usage_error(self) -> None:
        def double_issue():
            recurse_into(leaf())
            recurse_into(leaf())
            yield

        result = drive_result(double_issue())

        assert result.is_err()
        assert isinstance(result.error, IncorrectRecursionError)


# ============================================
# Re-entrancy & result cells
# ============================================


class TestNestedDrives:

    def test_nested_drive_inside_frame(self) -> None:
        def outer(n: int):
            if n == 0:
                return 0
            inner_value = drive_to_completion(pow_mod(3, 50, 1_000))
            rest = yield recurse_into(outer(n - 1))
            return rest + inner_value

        assert drive_to_completion(outer(100)) == 100 * pow(3, 50, 1_000)

    def test_nested_drive_keeps_pending_outer_call(self) -> None:
        def interleaved(n: int):
            if n == 0:
                return []
            # the outer call is waiting in the slot while a nested drive runs
            handle = recurse_into(interleaved(n - 1))
            nested = drive_to_completion(pow_mod(2, n + 500, 1_000_007))
            rest = yield handle
            return rest + [nested]

        n = 200
        expected = [pow(2, k + 500, 1_000_007) for k in range(1, n + 1)]

        assert drive_to_completion(interleaved(n)) == expected


class TestSingleConsumption:

    def test_each_cell_taken_exactly_once(self) -> None:
        cells: list[ResultCell] = []

        def counted(n: int):
            if n == 0:
                return 0
            handle = recurse_into(counted(n - 1))
            cells.append(handle)
            value = yield handle
            assert handle.taken
            return value + 1

        assert drive_to_completion(counted(500)) == 500
        assert len(cells) == 500
        assert all(cell.taken and not cell.ready for cell in cells)
        assert all(not cell.poll() for cell in cells)


# ============================================
# Failures
# ============================================


class TestFailures:

    def test_user_exception_propagates_and_unwinds(self) -> None:
        closed: list[int] = []
        error = ValueError("boom")

        def failing(n: int):
            try:
                if n == 0:
                    raise error
                return (yield recurse_into(failing(n - 1)))
            finally:
                closed.append(n)

        trampoline = Trampoline(TrampolineConfig())
        with pytest.raises(ValueError) as exc_info:
            trampoline.drive(failing(3))

        assert exc_info.value is error
        assert closed == [0, 1, 2, 3]
        assert trampoline.stack_depth == 0

    def test_unexpected_yield_value(self) -> None:
        def bad():
            yield "not a handle"

        with pytest.raises(TypeError, match="yielded str"):
            drive_to_completion(bad())

    def test_max_depth_guard(self) -> None:
        config = TrampolineConfig(max_depth=10)

        with pytest.raises(RecursionDepthExceededError) as exc_info:
            drive_to_completion(pow_mod(2, 20, 1_000), config=config)

        assert exc_info.value.max_depth == 10
        assert exc_info.value.actual_depth == 11

    def test_max_depth_is_inclusive(self) -> None:
        config = TrampolineConfig(max_depth=21)
        assert drive_to_completion(pow_mod(2, 20, 1_000), config=config) == pow(2, 20, 1_000)

    def test_drive_result_ok_and_err(self) -> None:
        def raises():
            raise KeyError("k")
            yield  # noqa: B901

        ok = drive_result(pow_mod(2, 10, 1_000))
        err = drive_result(raises())

        assert ok == Ok(24)
        assert ok.unwrap() == 24
        assert isinstance(err, Err)
        assert isinstance(err.error, KeyError)
        assert err.unwrap_or(-1) == -1
        with pytest.raises(KeyError):
            err.unwrap()

    def test_drive_result_carries_stats(self) -> None:
        ok = drive_result(pow_mod(2, 10, 1_000))

        assert ok.stats is not None
        assert ok.stats.steps == 21
        assert ok.stats.max_depth == 11
        assert ok.stats.failed_depth is None

    def test_drive_result_err_reports_failed_depth(self) -> None:
        def failing(n: int):
            if n == 0:
                raise ValueError("bottom")
            return (yield recurse_into(failing(n - 1)))

        err = drive_result(failing(3))

        assert isinstance(err, Err)
        assert isinstance(err.error, ValueError)
        assert err.stats is not None
        assert err.failed_depth == 4
        assert err.stats.steps == 4

    def test_closing_steps_early_restores_slot(self) -> None:
        stepper = Trampoline().steps(pow_mod(2, 10, 1_000))
        next(stepper)
        assert active_slot() is not None

        stepper.close()

        with pytest.raises(RecursionUsageError):
            active_slot()


class TestLogging:

    def test_trace_logs_each_step(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="heaprec.trampoline")

        drive_to_completion(pow_mod(2, 2, 10), config=TrampolineConfig(trace=True))

        messages = [record.getMessage() for record in caplog.records]
        assert "step 1: StepSpawn depth=2" in messages
        assert "step 5: StepDone depth=0" in messages
        assert any(m.startswith("drive finished: 5 steps") for m in messages)

    def test_no_step_logs_without_trace(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="heaprec.trampoline")

        drive_to_completion(pow_mod(2, 2, 10), config=TrampolineConfig())

        assert not any(r.getMessage().startswith("step ") for r in caplog.records)
