"""Step-by-step tracing for small drives."""

from __future__ import annotations

from typing import Any

from loguru import logger

from heaprec.config import TrampolineConfig
from heaprec.trampoline import DriveSnapshot, StepKind, Trampoline

trace_logger = logger.bind(component="trampoline")


def debug_drive(
    computation: Any,
    *,
    config: TrampolineConfig | None = None,
    max_steps: int = 10_000,
) -> Any:
    """
    Drive ``computation`` while logging every step through loguru.

    Raises ``RuntimeError`` once ``max_steps`` steps have run without the
    drive finishing; the remaining frames are closed first.
    """

    def log_step(snapshot: DriveSnapshot) -> None:
        if snapshot.kind is StepKind.SPAWN:
            trace_logger.debug("step {}: push, depth={}", snapshot.step, snapshot.depth)
        elif snapshot.kind is StepKind.DONE:
            trace_logger.debug("step {}: pop, depth={}", snapshot.step, snapshot.depth)
        else:
            trace_logger.debug("step {}: yield, depth={}", snapshot.step, snapshot.depth)

    trampoline = Trampoline(config, on_step=log_step)
    stepper = trampoline.steps(computation)
    trace_logger.debug("initial: {!r}", computation)
    try:
        steps_taken = 0
        while True:
            # an empty stack means the next call only collects the value
            if steps_taken == max_steps and trampoline.stack_depth > 0:
                break
            try:
                next(stepper)
            except StopIteration as stop:
                trace_logger.debug("done: {!r}", stop.value)
                return stop.value
            steps_taken += 1
    finally:
        stepper.close()

    raise RuntimeError(f"debug_drive exceeded max_steps ({max_steps})")


__all__ = ["debug_drive"]
