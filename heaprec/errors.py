from __future__ import annotations


class HeapRecursionError(Exception):
    """Base class for all errors raised by the trampoline itself."""


class RecursionUsageError(HeapRecursionError):
    """Raised when the recurse/suspend contract is broken by calling code."""


class IncorrectRecursionError(RecursionUsageError):
    """A frame issued a second recursive call before the first was scheduled."""

    def __init__(self, message: str = "incorrect recursion") -> None:
        super().__init__(message)


class StalledFrameError(RecursionUsageError):
    """The top frame waits on a result that nothing on the stack will produce."""


class CellStateError(RecursionUsageError):
    """A result cell was written more than once."""


class InvalidFrameStateError(HeapRecursionError):
    """Raised when attempting an invalid operation on a frame."""


class RecursionDepthExceededError(HeapRecursionError):
    """
    Raised when the explicit stack would grow past ``TrampolineConfig.max_depth``.
    """

    def __init__(self, max_depth: int, actual_depth: int) -> None:
        super().__init__(
            f"Recursion depth {actual_depth} exceeds configured max_depth={max_depth}\n"
            f"Hint: raise the limit via `TrampolineConfig(max_depth=...)` "
            f"or the HEAPREC_MAX_DEPTH environment variable"
        )
        self.max_depth = max_depth
        self.actual_depth = actual_depth


__all__ = [
    "CellStateError",
    "HeapRecursionError",
    "IncorrectRecursionError",
    "InvalidFrameStateError",
    "RecursionDepthExceededError",
    "RecursionUsageError",
    "StalledFrameError",
]
