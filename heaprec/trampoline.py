"""
Trampoline driver with an explicit, heap-resident frame stack.

The driver never calls into a child frame from a parent frame. Instead every
recursive call is handed over through the active ``HandoffSlot`` and pushed
onto a list; the loop always resumes the top entry. Native stack usage stays
constant regardless of recursion depth.

Key properties:
- Frames resume in strict LIFO order
- One step per loop iteration, classified as done / spawn / yield
- Exceptions from user code close every remaining frame, then propagate
- Nested drives get their own stack and slot
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Union

from heaprec.config import ENV_CONFIG, TrampolineConfig
from heaprec.errors import (
    IncorrectRecursionError,
    InvalidFrameStateError,
    RecursionDepthExceededError,
    RecursionUsageError,
    StalledFrameError,
)
from heaprec.frame import WrappedComputation
from heaprec.poll import NOOP_NOTIFIER, Ready
from heaprec.result import Err, Ok, Result
from heaprec.slot import HandoffSlot, install_slot

logger = logging.getLogger(__name__)


# ============================================
# Step Results
# ============================================

@dataclass(frozen=True)
class StepDone:
    """Top frame returned; its value is already in its cell."""


@dataclass(frozen=True)
class StepSpawn:
    """Top frame issued a recursive call; ``child`` becomes the new top."""
    child: WrappedComputation[Any]


@dataclass(frozen=True)
class StepYield:
    """Top frame paused without a child; resume it again."""


StepResult = Union[StepDone, StepSpawn, StepYield]

_STEP_DONE = StepDone()
_STEP_YIELD = StepYield()


class StepKind(Enum):
    DONE = auto()
    SPAWN = auto()
    YIELD = auto()


_KINDS: dict[type, StepKind] = {
    StepDone: StepKind.DONE,
    StepSpawn: StepKind.SPAWN,
    StepYield: StepKind.YIELD,
}


def step_frame(frame: WrappedComputation[Any], slot: HandoffSlot) -> StepResult:
    """Resume ``frame`` once and classify what happened."""
    try:
        polled = frame.resume(NOOP_NOTIFIER)
    except BaseException:
        orphan = slot.drain()
        if orphan is not None:
            orphan.close()
        raise

    child = slot.drain()
    if isinstance(polled, Ready):
        if child is not None:
            child.close()
            raise IncorrectRecursionError(
                "incorrect recursion: frame returned without suspending on its recursive call"
            )
        return _STEP_DONE
    if child is not None:
        return StepSpawn(child)

    awaiting = frame.awaiting
    if awaiting is not None and not awaiting.ready:
        raise StalledFrameError(
            f"{frame!r} is suspended on {awaiting!r}, which no pending frame will fill"
        )
    return _STEP_YIELD


# ============================================
# Stats & Observability
# ============================================

@dataclass
class DriveStats:
    """
    Counters for one drive.

    All updates are O(1) and happen on the driving thread only.
    """

    steps: int = 0
    frames_pushed: int = 0
    # High-water mark of the explicit stack, root frame included
    max_depth: int = 0
    cooperative_yields: int = 0
    # Stack depth when an error ended the drive, None on success
    failed_depth: int | None = None

    start_time_ns: int | None = None
    end_time_ns: int | None = None

    @property
    def duration_ns(self) -> int | None:
        if self.start_time_ns is not None and self.end_time_ns is not None:
            return self.end_time_ns - self.start_time_ns
        return None


@dataclass(frozen=True)
class DriveSnapshot:
    """State after one step, handed to ``on_step`` callbacks."""
    step: int
    depth: int
    kind: StepKind


# ============================================
# Trampoline
# ============================================

class Trampoline:
    """
    Runs one suspendable computation to completion on an explicit stack.

    A ``Trampoline`` drives one computation at a time. Starting another
    drive from inside a frame is supported through a separate instance
    (``drive_to_completion`` creates one per call).
    """

    def __init__(
        self,
        config: TrampolineConfig | None = None,
        *,
        on_step: Callable[[DriveSnapshot], None] | None = None,
    ) -> None:
        self.config = config if config is not None else ENV_CONFIG
        self._on_step = on_step
        self._stack: list[WrappedComputation[Any]] = []
        self.last_stats: DriveStats | None = None

    @property
    def stack_depth(self) -> int:
        return len(self._stack)

    def drive(self, computation: Any) -> Any:
        """Run ``computation`` (an unstarted generator or ``RecursiveCall``) and return its value."""
        stepper = self.steps(computation)
        while True:
            try:
                next(stepper)
            except StopIteration as stop:
                return stop.value

    def steps(self, computation: Any) -> Generator[StepResult, None, Any]:
        """
        Drive ``computation`` one step per iteration.

        Yields each ``StepResult`` and returns the computation's value. Closing
        the generator early unwinds every frame still on the stack.

        The handoff slot is installed in the current ``contextvars`` context
        on the first step. Exhaust or ``close()`` the generator in that same
        context; one left for the garbage collector to finalize elsewhere
        fails to restore the slot with ``ValueError``.
        """
        if self._stack:
            raise RecursionUsageError(
                "Trampoline is already driving a computation; "
                "use drive_to_completion() for nested drives"
            )

        root, cell = WrappedComputation.wrap(computation)
        stats = DriveStats(start_time_ns=time.perf_counter_ns())
        self.last_stats = stats
        logger.debug("drive started: %r", root)

        with install_slot() as slot:
            try:
                self._push(root, stats)
                while self._stack:
                    yield self._advance(slot, stats)
            except BaseException as exc:
                stats.failed_depth = len(self._stack)
                logger.debug(
                    "drive failed at depth %d with %s, unwinding",
                    len(self._stack),
                    type(exc).__name__,
                )
                self._unwind()
                raise
            finally:
                stats.end_time_ns = time.perf_counter_ns()

        logger.debug(
            "drive finished: %d steps, %d frames, max depth %d",
            stats.steps,
            stats.frames_pushed,
            stats.max_depth,
        )

        polled = cell.poll(NOOP_NOTIFIER)
        if not isinstance(polled, Ready):
            raise InvalidFrameStateError("root frame finished without producing a value")
        return polled.value

    def _advance(self, slot: HandoffSlot, stats: DriveStats) -> StepResult:
        stats.steps += 1
        result = step_frame(self._stack[-1], slot)

        if isinstance(result, StepDone):
            self._stack.pop()
        elif isinstance(result, StepSpawn):
            self._push(result.child, stats)
        else:
            stats.cooperative_yields += 1

        if self.config.trace:
            logger.debug(
                "step %d: %s depth=%d", stats.steps, type(result).__name__, len(self._stack)
            )
        if self._on_step is not None:
            self._on_step(DriveSnapshot(stats.steps, len(self._stack), _KINDS[type(result)]))
        return result

    def _push(self, frame: WrappedComputation[Any], stats: DriveStats) -> None:
        depth = len(self._stack) + 1
        max_depth = self.config.max_depth
        if max_depth is not None and depth > max_depth:
            frame.close()
            raise RecursionDepthExceededError(max_depth, depth)
        self._stack.append(frame)
        stats.frames_pushed += 1
        if depth > stats.max_depth:
            stats.max_depth = depth

    def _unwind(self) -> None:
        """Close frames top-down so their ``finally`` blocks run."""
        while self._stack:
            frame = self._stack.pop()
            try:
                frame.close()
            except Exception:
                # the error that triggered the unwind is the one that propagates
                logger.debug("error while closing %r", frame, exc_info=True)


def drive_to_completion(computation: Any, *, config: TrampolineConfig | None = None) -> Any:
    """
    Run a recursive computation to completion and return its value.

    Usage:
        def pow_mod(base, n, mod):
            if n == 0:
                return 1
            rest = yield recurse_into(pow_mod(base, n - 1, mod))
            return base * rest % mod

        drive_to_completion(pow_mod(2, 10_000_000, 1_000_000))

    Can be called from inside a running frame; the nested drive has its own
    stack and leaves the outer drive's handoff slot untouched.
    """
    return Trampoline(config).drive(computation)


def drive_result(computation: Any, *, config: TrampolineConfig | None = None) -> Result[Any]:
    """
    Like ``drive_to_completion`` but returns ``Ok(value)`` or ``Err(exception)``.

    Both carry the drive's ``DriveStats``; ``Err.failed_depth`` is the stack
    depth at the failing step.
    """
    trampoline = Trampoline(config)
    try:
        value = trampoline.drive(computation)
    except Exception as exc:
        return Err(exc, trampoline.last_stats)
    return Ok(value, trampoline.last_stats)


__all__ = [
    "DriveSnapshot",
    "DriveStats",
    "StepDone",
    "StepKind",
    "StepResult",
    "StepSpawn",
    "StepYield",
    "Trampoline",
    "drive_result",
    "drive_to_completion",
    "step_frame",
]
