"""
Trampoline configuration.

Defaults can be overridden from the environment:

- ``HEAPREC_MAX_DEPTH``: positive integer cap on the explicit stack depth.
- ``HEAPREC_TRACE``: ``1``/``true``/``yes`` logs every driver step at DEBUG.

The environment is read once, when this module is imported, into
``ENV_CONFIG``; a ``Trampoline`` built without an explicit config uses it.
An invalid value therefore fails the import instead of every drive.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

_TRUTHY = ("1", "true", "yes")
_FALSY = ("", "0", "false", "no")


@dataclass(frozen=True)
class TrampolineConfig:
    # None means the stack may grow until memory runs out
    max_depth: int | None = None
    trace: bool = False

    def __post_init__(self) -> None:
        if self.max_depth is not None and self.max_depth < 1:
            raise ValueError("max_depth must be >= 1 or None")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TrampolineConfig:
        """Build a config from ``HEAPREC_*`` variables (``os.environ`` by default)."""
        env = os.environ if environ is None else environ

        raw_depth = env.get("HEAPREC_MAX_DEPTH", "").strip()
        max_depth: int | None = None
        if raw_depth:
            try:
                max_depth = int(raw_depth)
            except ValueError:
                raise ValueError(
                    f"HEAPREC_MAX_DEPTH must be an integer, got {raw_depth!r}"
                ) from None

        raw_trace = env.get("HEAPREC_TRACE", "").strip().lower()
        if raw_trace in _TRUTHY:
            trace = True
        elif raw_trace in _FALSY:
            trace = False
        else:
            raise ValueError(f"HEAPREC_TRACE must be a boolean flag, got {raw_trace!r}")

        return cls(max_depth=max_depth, trace=trace)


DEFAULT_CONFIG = TrampolineConfig()
ENV_CONFIG = TrampolineConfig.from_env()


__all__ = ["DEFAULT_CONFIG", "ENV_CONFIG", "TrampolineConfig"]
