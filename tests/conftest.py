"""Shared fixtures: a fake clock whose sleep advances time instantly."""

import pytest


class FakeClock:
    """Deterministic clock; sleep() only moves time forward and records the wait."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock(start=1_000_000.0)
