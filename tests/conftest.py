"""Shared pytest hooks: tests marked ``slow`` are skipped unless HEAPREC_RUN_SLOW is set."""

import os

import pytest


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.environ.get("HEAPREC_RUN_SLOW", "").lower() in ("1", "true", "yes"):
        return
    skip_slow = pytest.mark.skip(reason="set HEAPREC_RUN_SLOW=1 to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)
