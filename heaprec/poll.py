"""
Poll results and the notifier handed to every resumption.

A resumption either finishes (``Ready``) or suspends (``PENDING``). The
trampoline never waits on outside events, so the notifier it passes along is
a no-op: nothing ever needs waking.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ready(Generic[T]):
    """The computation finished with ``value``."""
    value: T


class Pending:
    """The computation is suspended; resume it again later."""

    _instance: Pending | None = None

    def __new__(cls) -> Pending:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"

    def __bool__(self) -> bool:
        return False


PENDING = Pending()

PollResult = Union[Ready[Any], Pending]


class Notifier(Protocol):
    """Wake capability passed through each resumption."""

    def wake(self) -> None: ...

    def wake_by_ref(self) -> None: ...


class NoopNotifier:
    """Notifier for a driver that re-polls unconditionally."""

    def wake(self) -> None:
        pass

    def wake_by_ref(self) -> None:
        pass

    def __repr__(self) -> str:
        return "NoopNotifier()"


NOOP_NOTIFIER = NoopNotifier()


__all__ = [
    "NOOP_NOTIFIER",
    "NoopNotifier",
    "Notifier",
    "PENDING",
    "Pending",
    "PollResult",
    "Ready",
]
