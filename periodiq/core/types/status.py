# core/types/status.py
"""
Core types and enums used throughout the library.
This module should not import from other library modules.
"""

from enum import Enum


class EventStatus(Enum):
    """Lifecycle of a scheduled event"""

    SCHEDULED = 'scheduled'  # Waiting in a tick bucket.

    FIRING = 'firing'  # Drained; its callback is being invoked.

    DISCARDED = 'discarded'  # Dropped from the schedule; never fires again.

    @property
    def is_terminal(self) -> bool:
        """Whether this status represents a final state (no further transitions)."""
        return self is EventStatus.DISCARDED
