"""
Async entry point for long drives inside an event loop.

The drive itself stays synchronous and single-threaded; ``async_drive`` only
gives the loop a chance to run other tasks every ``yield_every`` steps.
"""

from __future__ import annotations

import asyncio
from typing import Any

from heaprec.config import TrampolineConfig
from heaprec.trampoline import Trampoline


async def async_drive(
    computation: Any,
    *,
    config: TrampolineConfig | None = None,
    yield_every: int = 1000,
) -> Any:
    """
    Drive ``computation`` to completion, awaiting ``asyncio.sleep(0)`` periodically.

    Each task has its own context, so drives awaited concurrently from
    separate tasks keep separate handoff slots.
    """
    if yield_every < 1:
        raise ValueError("yield_every must be >= 1")

    stepper = Trampoline(config).steps(computation)
    steps = 0
    try:
        while True:
            try:
                next(stepper)
            except StopIteration as stop:
                return stop.value
            steps += 1
            if steps % yield_every == 0:
                await asyncio.sleep(0)
    finally:
        stepper.close()


__all__ = ["async_drive"]
