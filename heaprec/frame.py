"""
Wrapped computations: one recursion frame on the explicit stack.

A wrapped computation owns a generator together with the result cell its
caller will read. To the driver it looks like a computation producing
nothing; its real value is delivered into the cell on completion.
"""

from __future__ import annotations

import inspect
from collections.abc import Generator
from enum import Enum, auto
from typing import Any, Generic, TypeVar

from heaprec.cell import ResultCell
from heaprec.errors import InvalidFrameStateError
from heaprec.poll import NOOP_NOTIFIER, PENDING, Notifier, Pending, PollResult, Ready

T = TypeVar("T")


class FrameState(Enum):
    """Lifecycle state of a wrapped computation."""
    ACTIVE = auto()      # Frame can be resumed
    COMPLETED = auto()   # Generator returned, value is in the cell
    FAILED = auto()      # Generator raised
    CLOSED = auto()      # Frame was unwound after a failure elsewhere


def to_generator(computation: Any) -> Generator[Any, Any, Any]:
    """Return the unstarted generator behind ``computation``."""
    if hasattr(computation, "to_generator"):
        computation = computation.to_generator()
    if not inspect.isgenerator(computation):
        raise TypeError(
            f"Cannot convert {type(computation).__name__} to a suspendable computation; "
            "expected a generator or an object with to_generator()"
        )
    if inspect.getgeneratorstate(computation) != inspect.GEN_CREATED:
        raise ValueError("computation has already been started")
    return computation


class WrappedComputation(Generic[T]):
    """
    Drives an inner generator and writes its return value into a ``ResultCell``.

    Each ``resume`` either:
    - polls the handle the generator is suspended on and reports ``PENDING``
      while the child result is missing,
    - or advances the generator by one yield, sending in the child result.

    Yielding a ``ResultCell`` suspends on it; a bare ``yield`` is a
    cooperative pause. The generator's return value goes into the cell and
    the frame reports ``Ready(None)``.
    """

    __slots__ = ("_generator", "_cell", "_awaiting", "state")

    def __init__(self, generator: Generator[Any, Any, T], cell: ResultCell[T]) -> None:
        self._generator = generator
        self._cell = cell
        self._awaiting: ResultCell[Any] | None = None
        self.state = FrameState.ACTIVE

    @classmethod
    def wrap(cls, computation: Any) -> tuple[WrappedComputation[Any], ResultCell[Any]]:
        cell: ResultCell[Any] = ResultCell()
        return cls(to_generator(computation), cell), cell

    @property
    def cell(self) -> ResultCell[T]:
        return self._cell

    @property
    def awaiting(self) -> ResultCell[Any] | None:
        """The handle this frame is suspended on, if any."""
        return self._awaiting

    def resume(self, notifier: Notifier = NOOP_NOTIFIER) -> PollResult:
        if self.state != FrameState.ACTIVE:
            raise InvalidFrameStateError(f"Cannot resume frame in state {self.state}")

        send_value: Any = None
        if self._awaiting is not None:
            polled = self._awaiting.poll(notifier)
            if isinstance(polled, Pending):
                return PENDING
            self._awaiting = None
            send_value = polled.value

        try:
            yielded = self._generator.send(send_value)
        except StopIteration as stop:
            self.state = FrameState.COMPLETED
            self._cell.put(stop.value)
            return Ready(None)
        except BaseException:
            self.state = FrameState.FAILED
            raise

        if isinstance(yielded, ResultCell):
            self._awaiting = yielded
            return PENDING
        if yielded is None:
            return PENDING

        self.close()
        self.state = FrameState.FAILED
        raise TypeError(
            f"recursive frame yielded {type(yielded).__name__}; "
            "yield the handle returned by recurse_into() or a bare `yield`"
        )

    def close(self) -> None:
        """Close the generator so its ``finally`` blocks run."""
        if self.state == FrameState.ACTIVE:
            try:
                self._generator.close()
            finally:
                self.state = FrameState.CLOSED

    def __repr__(self) -> str:
        name = getattr(self._generator, "__qualname__", type(self._generator).__name__)
        return f"<WrappedComputation {name} {self.state.name}>"


__all__ = ["FrameState", "WrappedComputation", "to_generator"]
