"""Single-slot result storage shared between a child frame and its caller."""

from __future__ import annotations

from typing import Generic, TypeVar

from heaprec.errors import CellStateError
from heaprec.poll import NOOP_NOTIFIER, PENDING, Notifier, PollResult, Ready

T = TypeVar("T")

_EMPTY = object()


class ResultCell(Generic[T]):
    """
    Write-once, take-once holder for a child computation's result.

    The wrapped child writes with ``put`` when it finishes. The parent frame
    yields the cell to suspend on it and receives the value on the first
    successful ``poll``; later polls report ``PENDING`` again.
    """

    __slots__ = ("_value", "_written", "_taken")

    def __init__(self) -> None:
        self._value: object = _EMPTY
        self._written = False
        self._taken = False

    def put(self, value: T) -> None:
        if self._written:
            raise CellStateError("result cell was already written")
        self._value = value
        self._written = True

    def poll(self, notifier: Notifier = NOOP_NOTIFIER) -> PollResult:
        if self._value is _EMPTY:
            return PENDING
        value = self._value
        self._value = _EMPTY
        self._taken = True
        return Ready(value)

    @property
    def ready(self) -> bool:
        """True when a value has been written and not yet taken."""
        return self._value is not _EMPTY

    @property
    def taken(self) -> bool:
        return self._taken

    def __repr__(self) -> str:
        if self._taken:
            status = "taken"
        elif self._written:
            status = "ready"
        else:
            status = "empty"
        return f"<ResultCell {status}>"


__all__ = ["ResultCell"]
