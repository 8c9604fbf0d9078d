"""
Drive outcomes for callers that treat failures as values.

``drive_result`` returns ``Ok`` or ``Err`` instead of raising. Both carry the
``DriveStats`` of the drive that produced them; an ``Err`` also knows how deep
the explicit stack was when the error surfaced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from heaprec.trampoline import DriveStats

T = TypeVar("T")
U = TypeVar("U")


class Result(Generic[T]):
    __slots__ = ()

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def unwrap(self) -> T:
        """Return the drive's value, or re-raise the error that ended it."""
        if isinstance(self, Ok):
            return self.value
        assert isinstance(self, Err)
        raise self.error

    def unwrap_or(self, default: U) -> T | U:
        if isinstance(self, Ok):
            return self.value
        return default

    def __bool__(self) -> bool:
        return self.is_ok()


@dataclass(frozen=True)
class Ok(Result[T]):
    """The drive finished; ``value`` is the root frame's return value."""
    value: T
    stats: DriveStats | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Err(Result[T]):
    """The drive stopped on ``error``; remaining frames were already closed."""
    error: Exception
    stats: DriveStats | None = field(default=None, compare=False, repr=False)

    @property
    def failed_depth(self) -> int | None:
        """Stack depth (root included) at the step that raised."""
        if self.stats is None:
            return None
        return self.stats.failed_depth


__all__ = ["Err", "Ok", "Result"]
