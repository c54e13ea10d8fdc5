"""periodiq - quantized, drift-compensated in-process scheduling"""

# Install formatted error display on import
from .core.errors import install_error_handler as _install_error_handler

_install_error_handler()

from .core.scheduler import Scheduler, RunResult, Schedule, Event, Projection
from .core.models.config import SchedulerConfig, Rounding
from .core.types.status import EventStatus
from .core.defaults import DEFAULT_QUANTUM_SIZE
from .core.errors import (
    PeriodiqError,
    ConfigurationError,
    ErrorCode,
    ValidationReport,
    MultipleValidationErrors,
    SchedulingError,
    MissedScheduleError,
    EmptyScheduleError,
)
from .core.logging import get_logger, set_default_level

__all__ = [
    # Core
    'Scheduler',
    'SchedulerConfig',
    'Rounding',
    'RunResult',
    'DEFAULT_QUANTUM_SIZE',
    # Engine parts
    'Schedule',
    'Event',
    'EventStatus',
    'Projection',
    # Errors
    'PeriodiqError',
    'ConfigurationError',
    'ErrorCode',
    'ValidationReport',
    'MultipleValidationErrors',
    'SchedulingError',
    'MissedScheduleError',
    'EmptyScheduleError',
    # Logging
    'get_logger',
    'set_default_level',
]
