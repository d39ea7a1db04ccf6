"""Shared pytest fixtures."""

import pytest


class FakeClock:
    """Manually advanced time source, in seconds."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Create a fresh FakeClock for each test."""
    return FakeClock()


@pytest.fixture
def users() -> dict:
    """A small user table keyed by id."""
    return {
        7: {"id": 7, "name": "A"},
        8: {"id": 8, "name": "B"},
    }
