# periodiq/core/models/config.py
from __future__ import annotations
import math
import time
from enum import Enum
from typing import Callable
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Self
from periodiq.core.defaults import DEFAULT_QUANTUM_SIZE
from periodiq.core.errors import (
    ConfigurationError,
    ErrorCode,
    ValidationReport,
    raise_collected,
)


class Rounding(str, Enum):
    """How durations are rounded onto the tick grid."""

    FLOOR = 'floor'  # Drift-compensated default; ticks under-count real time.
    CEIL = 'ceil'  # Never fire early; ticks over-count real time.


class SchedulerConfig(BaseModel):
    """
    Scheduler configuration.

    Fields:
        - quantum_size: Tick granularity, same unit as event periods
        - time_source: Zero-argument callable returning "now"
        - waiter: Callable that blocks for the given duration
        - rounding: Quantization rule for event periods

    Examples:
        - Wall clock, 5 second ticks: SchedulerConfig()
        - Virtual time: SchedulerConfig(time_source=clock.now, waiter=clock.advance)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    quantum_size: float = Field(
        default=DEFAULT_QUANTUM_SIZE, description='Tick granularity (must be > 0)'
    )
    time_source: Callable[[], float] = Field(
        default=time.time, description='Returns the current time'
    )
    waiter: Callable[[float], None] = Field(
        default=time.sleep, description='Blocks for the requested duration'
    )
    rounding: Rounding = Field(
        default=Rounding.FLOOR, description='Quantization rule for periods'
    )

    @model_validator(mode='after')
    def validate_quantum_size(self) -> Self:
        """Ensure the quantum is a finite, strictly positive number."""
        report = ValidationReport('config')
        if not math.isfinite(self.quantum_size) or self.quantum_size <= 0:
            report.add(
                ConfigurationError(
                    message='quantum_size must be a finite number greater than 0',
                    code=ErrorCode.CONFIG_INVALID_QUANTUM,
                    notes=[f'quantum_size={self.quantum_size!r}'],
                    help_text='use a positive tick size, e.g. quantum_size=5.0',
                )
            )
        raise_collected(report)
        return self
