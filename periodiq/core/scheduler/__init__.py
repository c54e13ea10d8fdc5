"""
Quantized scheduler engine.

Main components:
- Scheduler: Admits events and runs batched firing passes
- Schedule: Tick-keyed event storage
- Event: Schedule entry and caller handle
- Projection: Real time <-> tick mapping

Example usage:
    from periodiq.core.scheduler import Scheduler

    scheduler = Scheduler()
    scheduler.every(60, refresh_cache)
    scheduler.run_forever()
"""

from periodiq.core.scheduler.service import Scheduler, RunResult
from periodiq.core.scheduler.schedule import Schedule
from periodiq.core.scheduler.event import Event
from periodiq.core.scheduler.projection import Projection

__all__ = [
    'Scheduler',
    'RunResult',
    'Schedule',
    'Event',
    'Projection',
]
