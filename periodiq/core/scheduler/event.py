# periodiq/core/scheduler/event.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Optional
from periodiq.core.scheduler.projection import Projection
from periodiq.core.types.status import EventStatus

EventCallback = Callable[[], Any]


@dataclass(eq=False)
class Event:
    """
    A schedule entry, also the handle returned to the caller.

    Fields:
        - period: Nominal interval between firings
        - repeat: Reinsert after firing (False = one-shot)
        - group: Optional tag for bulk cancellation (None = ungrouped)
        - callback: Zero-argument callable invoked on firing
        - tick_offset: Ticks until the next firing, relative to the base tick
        - accumulated_error: Rounding remainder carried into the next period

    Events compare by identity.
    """

    period: float
    repeat: bool
    group: Optional[Hashable]
    callback: EventCallback = field(repr=False)
    tick_offset: int
    accumulated_error: float
    status: EventStatus = EventStatus.SCHEDULED
    fire_count: int = 0
    _stopped: bool = field(default=False, init=False, repr=False)

    @classmethod
    def create(
        cls,
        projection: Projection,
        period: float,
        callback: EventCallback,
        repeat: bool = False,
        group: Optional[Hashable] = None,
    ) -> Event:
        """Quantize `period` and build a new scheduled event."""
        return cls(
            period=period,
            repeat=repeat,
            group=group,
            callback=callback,
            tick_offset=projection.to_tick(period),
            accumulated_error=projection.error(period),
        )

    def requantize(self, projection: Projection) -> None:
        """Fold the carried error into the period and quantize again.

        Must run on every firing of a repeating event so the long-run
        average interval stays equal to `period`.
        """
        effective = self.period + self.accumulated_error
        self.tick_offset = projection.to_tick(effective)
        self.accumulated_error = projection.error(effective)

    def stop(self) -> None:
        """Stop the event. Idempotent; removal from the schedule is lazy."""
        self._stopped = True

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def label(self) -> str:
        """Human-readable name for log lines."""
        name = getattr(self.callback, '__qualname__', None) or repr(self.callback)
        kind = 'every' if self.repeat else 'after'
        return f'{name} ({kind} {self.period}s)'
