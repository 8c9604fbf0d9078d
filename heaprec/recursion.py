"""
Recursive call sites and the @recursive decorator.

A recursive frame is a generator. Wherever it would call itself it instead
hands the nested computation to the driver and suspends on the returned
handle::

    def depth(node):
        if node is None:
            return 0
        below = yield recurse_into(depth(node.child))
        return below + 1

Only one recursive call may be pending per frame: yield the handle before
issuing the next ``recurse_into``.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Generator
from functools import update_wrapper
from typing import Any, Generic, ParamSpec, TypeVar

from heaprec.cell import ResultCell
from heaprec.config import TrampolineConfig
from heaprec.frame import WrappedComputation
from heaprec.slot import active_slot
from heaprec.trampoline import drive_to_completion

P = ParamSpec("P")
T = TypeVar("T")


def recurse_into(computation: Any) -> ResultCell[Any]:
    """
    Schedule ``computation`` as the next nested frame and return its handle.

    The caller must ``yield`` the handle right away; the yield evaluates to the
    nested computation's return value.

    Raises:
        IncorrectRecursionError: a recursive call from the same frame is still
            waiting to be picked up by the driver.
        RecursionUsageError: no drive is running in the current context.
    """
    slot = active_slot()
    wrapped, cell = WrappedComputation.wrap(computation)
    slot.offer(wrapped)
    return cell


class RecursiveCall(Generic[T]):
    """A deferred call of a ``@recursive`` function; nothing runs until driven."""

    __slots__ = ("function", "args", "kwargs")

    def __init__(
        self, function: RecursiveFunction[..., T], args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> None:
        self.function = function
        self.args = args
        self.kwargs = kwargs

    def to_generator(self) -> Generator[Any, Any, T]:
        return self.function.make_generator(*self.args, **self.kwargs)

    def recurse(self) -> ResultCell[T]:
        """Issue this call as a nested frame of the running drive."""
        return recurse_into(self)

    def start_recursion(self, *, config: TrampolineConfig | None = None) -> T:
        """Drive this call as the outermost frame and return its value."""
        return drive_to_completion(self, config=config)

    run = start_recursion

    def __repr__(self) -> str:
        return f"<RecursiveCall {self.function.__qualname__}>"


class RecursiveFunction(Generic[P, T]):
    """Callable wrapper returning ``RecursiveCall`` objects instead of running."""

    def __init__(self, func: Callable[P, Any]) -> None:
        self.original_func = func
        update_wrapper(self, func)

    def make_generator(self, *args: Any, **kwargs: Any) -> Generator[Any, Any, T]:
        gen_or_value = self.original_func(*args, **kwargs)
        if inspect.isgenerator(gen_or_value):
            return gen_or_value
        return _completed(gen_or_value)

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> RecursiveCall[T]:
        return RecursiveCall(self, args, kwargs)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        bound = self.original_func.__get__(instance, owner)
        return RecursiveFunction(bound)


def _completed(value: T) -> Generator[Any, Any, T]:
    return value
    yield  # noqa: B901


def recursive(func: Callable[P, Any]) -> RecursiveFunction[P, T]:
    """
    Mark a generator function as a heap-recursive computation.

    Calling the decorated function builds a lazy ``RecursiveCall``. Use
    ``.recurse()`` inside a frame to issue a nested call and
    ``.start_recursion()`` at the outermost call site.

    Usage:
        @recursive
        def pow_mod(base: int, n: int, mod: int):
            if n == 0:
                return 1
            rest = yield pow_mod(base, n - 1, mod).recurse()
            return base * rest % mod

        pow_mod(2, 10_000_000, 1_000_000).start_recursion()

    A decorated function that contains no ``yield`` becomes a computation that
    completes on its first resume.
    """

    return RecursiveFunction(func)


__all__ = ["RecursiveCall", "RecursiveFunction", "recurse_into", "recursive"]
