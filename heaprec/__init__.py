"""
heaprec: run deep recursion on the heap.

Write the recursive function as a generator, issue each recursive call with
``recurse_into`` (or ``.recurse()`` on a ``@recursive`` call) and ``yield``
the returned handle. Start the outermost call with ``drive_to_completion``
(or ``.start_recursion()``). Recursion depth is then limited by memory rather
than by the interpreter's recursion limit.

    @recursive
    def pow_mod(base: int, n: int, mod: int):
        if n == 0:
            return 1
        rest = yield pow_mod(base, n - 1, mod).recurse()
        return base * rest % mod

    pow_mod(2, 10_000_000, 1_000_000).start_recursion()
"""

from heaprec.aio import async_drive
from heaprec.cell import ResultCell
from heaprec.config import DEFAULT_CONFIG, ENV_CONFIG, TrampolineConfig
from heaprec.errors import (
    CellStateError,
    HeapRecursionError,
    IncorrectRecursionError,
    InvalidFrameStateError,
    RecursionDepthExceededError,
    RecursionUsageError,
    StalledFrameError,
)
from heaprec.frame import FrameState, WrappedComputation
from heaprec.poll import NOOP_NOTIFIER, PENDING, NoopNotifier, Notifier, Pending, Ready
from heaprec.recursion import RecursiveCall, RecursiveFunction, recurse_into, recursive
from heaprec.result import Err, Ok, Result
from heaprec.slot import HandoffSlot
from heaprec.trampoline import (
    DriveSnapshot,
    DriveStats,
    StepKind,
    Trampoline,
    drive_result,
    drive_to_completion,
)

__all__ = [
    "CellStateError",
    "DEFAULT_CONFIG",
    "ENV_CONFIG",
    "DriveSnapshot",
    "DriveStats",
    "Err",
    "FrameState",
    "HandoffSlot",
    "HeapRecursionError",
    "IncorrectRecursionError",
    "InvalidFrameStateError",
    "NOOP_NOTIFIER",
    "NoopNotifier",
    "Notifier",
    "Ok",
    "PENDING",
    "Pending",
    "Ready",
    "RecursionDepthExceededError",
    "RecursionUsageError",
    "RecursiveCall",
    "RecursiveFunction",
    "Result",
    "ResultCell",
    "StalledFrameError",
    "StepKind",
    "Trampoline",
    "TrampolineConfig",
    "WrappedComputation",
    "async_drive",
    "drive_result",
    "drive_to_completion",
    "recurse_into",
    "recursive",
]
