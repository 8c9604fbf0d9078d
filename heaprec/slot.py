"""
Handoff slot: the mailbox between a recursive call site and the driver.

Each drive installs its own slot in a context variable. A frame running under
that drive offers at most one child per suspension; the driver drains it right
after the frame suspends.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from heaprec.errors import IncorrectRecursionError, RecursionUsageError

if TYPE_CHECKING:
    from heaprec.frame import WrappedComputation


class HandoffSlot:
    """Holds at most one pending child computation."""

    __slots__ = ("_item",)

    def __init__(self) -> None:
        self._item: WrappedComputation[Any] | None = None

    def offer(self, item: WrappedComputation[Any]) -> None:
        if self._item is not None:
            raise IncorrectRecursionError(
                "incorrect recursion: a frame issued a second recursive call "
                "before suspending on the first one"
            )
        self._item = item

    def drain(self) -> WrappedComputation[Any] | None:
        item, self._item = self._item, None
        return item

    @property
    def occupied(self) -> bool:
        return self._item is not None

    def __repr__(self) -> str:
        return f"<HandoffSlot {'occupied' if self._item is not None else 'empty'}>"


_active_slot: ContextVar[HandoffSlot | None] = ContextVar("heaprec_active_slot", default=None)


def active_slot() -> HandoffSlot:
    """Return the slot of the drive running in the current context."""
    slot = _active_slot.get()
    if slot is None:
        raise RecursionUsageError(
            "recurse_into() called outside of a running drive\n"
            "Hint: start the outermost call with drive_to_completion() or .start_recursion()"
        )
    return slot


@contextmanager
def install_slot() -> Iterator[HandoffSlot]:
    """Install a fresh slot for one drive, restoring the previous one afterwards."""
    slot = HandoffSlot()
    token = _active_slot.set(slot)
    try:
        yield slot
    finally:
        _active_slot.reset(token)


__all__ = ["HandoffSlot", "active_slot", "install_slot"]
