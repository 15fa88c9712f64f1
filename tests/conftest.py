from __future__ import annotations

import pytest

from idle_logout import IdleSessionTracker, MemoryUserStore, TrackerSettings


class FakeClock:
    def __init__(self, now: int = 1000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def set(self, now: int) -> None:
        self.now = now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryUserStore:
    return MemoryUserStore()


@pytest.fixture
def tracker(store, clock) -> IdleSessionTracker:
    return IdleSessionTracker(store, TrackerSettings(idle_time_seconds=1800), clock=clock)
