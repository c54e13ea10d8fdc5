# periodiq/core/scheduler/schedule.py
from __future__ import annotations
from heapq import heapify, heappop, heappush
from typing import Hashable, Iterable, Optional
from periodiq.core.scheduler.event import Event
from periodiq.core.types.status import EventStatus


class Schedule:
    """
    Events keyed by absolute tick.

    Each tick holds its events in insertion order, which is also their
    firing order. A tick key never maps to an empty bucket; it is removed
    as soon as the bucket empties. Ticks are kept in a min-heap alongside
    the buckets so the earliest tick is found without sorting.
    """

    def __init__(self) -> None:
        self._buckets: dict[int, list[Event]] = {}
        self._ticks: list[int] = []

    def insert(self, tick: int, event: Event) -> None:
        event.status = EventStatus.SCHEDULED
        bucket = self._buckets.get(tick)
        if bucket is None:
            self._buckets[tick] = [event]
            heappush(self._ticks, tick)
        else:
            bucket.append(event)

    def earliest_live_tick(self) -> Optional[int]:
        """
        Return the earliest tick holding at least one event that is not stopped.

        Stopped events met on the way are purged, and buckets they leave
        empty are deleted.
        """
        while self._ticks:
            tick = self._ticks[0]
            live = _without_stopped(self._buckets[tick])
            if live:
                self._buckets[tick] = live
                return tick
            heappop(self._ticks)
            del self._buckets[tick]
        return None

    def drain_due(self, tick: int) -> list[tuple[int, list[Event]]]:
        """
        Remove and return every bucket whose key is <= `tick`.

        Buckets come back in ascending tick order. Events already stopped
        are dropped instead of returned; the rest keep their insertion order.
        """
        drained: list[tuple[int, list[Event]]] = []
        while self._ticks and self._ticks[0] <= tick:
            due_tick = heappop(self._ticks)
            events = _without_stopped(self._buckets.pop(due_tick))
            if events:
                drained.append((due_tick, events))
        return drained

    def compact_groups(self, groups: Iterable[Hashable]) -> int:
        """Remove every event whose group is in `groups`. Returns how many went."""
        cancelled = set(groups)
        if not cancelled:
            return 0

        removed = 0
        for tick in list(self._buckets):
            kept: list[Event] = []
            for event in self._buckets[tick]:
                if event.group is not None and event.group in cancelled:
                    event.status = EventStatus.DISCARDED
                    removed += 1
                else:
                    kept.append(event)
            if kept:
                self._buckets[tick] = kept
            else:
                del self._buckets[tick]

        if removed:
            self._ticks = list(self._buckets)
            heapify(self._ticks)
        return removed

    def __len__(self) -> int:
        """Number of tick buckets."""
        return len(self._buckets)

    def __contains__(self, tick: object) -> bool:
        return tick in self._buckets


def _without_stopped(events: list[Event]) -> list[Event]:
    live: list[Event] = []
    for event in events:
        if event.stopped:
            event.status = EventStatus.DISCARDED
        else:
            live.append(event)
    return live
