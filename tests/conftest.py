"""Shared test fixtures for timetrace."""

from __future__ import annotations

from collections.abc import Callable

import pytest


class FakeClock:
    """Deterministic monotonic clock advancing by ``step`` ns per call."""

    def __init__(self, start: int = 1_000_000, step: int = 1_500) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def clock() -> Callable[[], int]:
    """A fake clock starting at 1ms and advancing 1.5us per reading."""
    return FakeClock()
