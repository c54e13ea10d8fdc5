# periodiq/core/scheduler/projection.py
from __future__ import annotations
import math
from periodiq.core.models.config import Rounding


class Projection:
    """
    Maps real durations onto an integer tick grid and back.

    `to_tick` rounds with the configured rule; `error` is what that
    rounding lost. Under FLOOR the error is always in [0, quantum_size),
    under CEIL it is in (-quantum_size, 0]. Either way it is carried into
    the next period instead of being discarded.
    """

    def __init__(self, quantum_size: float, rounding: Rounding = Rounding.FLOOR):
        if quantum_size <= 0:
            raise ValueError(f'quantum_size must be > 0, got {quantum_size!r}')
        self.quantum_size = quantum_size
        self.rounding = rounding

    def to_tick(self, duration: float) -> int:
        if self.rounding is Rounding.FLOOR:
            return self._floor(duration)
        return self._ceil(duration)

    def to_duration(self, tick: int) -> float:
        return tick * self.quantum_size

    def error(self, duration: float) -> float:
        """Rounding remainder of projecting `duration` onto the grid."""
        return duration - self.to_duration(self.to_tick(duration))

    def elapsed_ticks(self, now: float) -> int:
        """Whole ticks that have fully elapsed at `now`, regardless of rounding."""
        return self._floor(now)

    # The division can round across an integer, so both helpers correct
    # the result against the exact product to keep the error sign.

    def _floor(self, value: float) -> int:
        tick = math.floor(value / self.quantum_size)
        if tick * self.quantum_size > value:
            tick -= 1
        return tick

    def _ceil(self, value: float) -> int:
        tick = math.ceil(value / self.quantum_size)
        if tick * self.quantum_size < value:
            tick += 1
        return tick

    def __repr__(self) -> str:
        return (
            f'Projection(quantum_size={self.quantum_size!r}, '
            f'rounding={self.rounding.value!r})'
        )
