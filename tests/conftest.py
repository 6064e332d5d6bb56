"""
Pytest configuration for tickrun tests.

Provides a deterministic host and a runtime that is always released, so no
test leaks the process-wide registration into the next one.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from tickrun import ManualHost, Runtime, has_active_runtime


@pytest.fixture(autouse=True)
def _no_leaked_runtime() -> Iterator[None]:
    assert not has_active_runtime(), "a previous test leaked a live Runtime"
    yield
    assert not has_active_runtime(), "test left a live Runtime behind"


@pytest.fixture
def host() -> ManualHost:
    return ManualHost()


@pytest.fixture
def runtime(host: ManualHost) -> Iterator[Runtime]:
    runtime = Runtime(host)
    try:
        yield runtime
    finally:
        runtime.close()
