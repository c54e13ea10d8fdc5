"""Root test configuration for periodiq tests."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

import pytest

from periodiq.core.models.config import Rounding, SchedulerConfig
from periodiq.core.scheduler.service import Scheduler


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line('markers', 'unit: Unit tests (no external resources)')
    config.addinivalue_line('markers', 'slow: Long-running tests')


class FakeClock:
    """Virtual clock: `wait` advances time by the request plus optional jitter."""

    def __init__(
        self,
        start: float = 0.0,
        jitter: Iterable[float] | Callable[[], float] | None = None,
    ) -> None:
        self.now = start
        self.waits: list[float] = []
        self._jitter: Callable[[], float] | None
        if jitter is None or callable(jitter):
            self._jitter = jitter
        else:
            values: Iterator[float] = iter(jitter)
            self._jitter = lambda: next(values, 0.0)

    def time(self) -> float:
        return self.now

    def wait(self, duration: float) -> None:
        self.waits.append(duration)
        self.now += duration
        if self._jitter is not None:
            self.now += self._jitter()

    def advance(self, duration: float) -> None:
        """Move time forward without going through the scheduler."""
        self.now += duration


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_scheduler(clock: FakeClock) -> Callable[..., Scheduler]:
    """Build a Scheduler driven by the `clock` fixture."""

    def _make(
        quantum_size: float = 5.0,
        rounding: Rounding = Rounding.FLOOR,
        fake_clock: FakeClock | None = None,
    ) -> Scheduler:
        source = fake_clock or clock
        return Scheduler(
            SchedulerConfig(
                quantum_size=quantum_size,
                time_source=source.time,
                waiter=source.wait,
                rounding=rounding,
            )
        )

    return _make


@pytest.fixture
def make_clock() -> type[FakeClock]:
    """Expose FakeClock for tests that need a jittered or offset clock."""
    return FakeClock
