# periodiq/core/scheduler/service.py
from __future__ import annotations
import math
from collections import deque
from numbers import Real
from typing import Any, Callable, Hashable, NamedTuple, Optional
from periodiq.core.errors import (
    ConfigurationError,
    EmptyScheduleError,
    ErrorCode,
    MissedScheduleError,
    ValidationReport,
    raise_collected,
)
from periodiq.core.logging import get_logger
from periodiq.core.models.config import SchedulerConfig
from periodiq.core.scheduler.event import Event, EventCallback
from periodiq.core.scheduler.projection import Projection
from periodiq.core.scheduler.schedule import Schedule
from periodiq.core.types.status import EventStatus

logger = get_logger('scheduler')

ErrorHandler = Callable[[Exception], Any]


class RunResult(NamedTuple):
    """Outcome of one run pass.

    `errors` holds the missed-schedule error first (if any), then
    callback failures in firing order.
    """

    results: list[Any]
    errors: list[Exception]

    @property
    def ok(self) -> bool:
        return not self.errors


class Scheduler:
    """
    Fires one-shot and recurring callbacks on a quantized time grid.

    Time is cut into ticks of `quantum_size`; every event due within the
    same tick fires in the same pass, so the process wakes at most once
    per tick. Repeating events carry their rounding error forward, which
    keeps their long-run average interval equal to the nominal period.

    Single-threaded and cooperative: `run()` blocks once in the injected
    waiter, callbacks run synchronously on the caller's thread, and
    `stop()` / `unschedule_group()` take effect no later than the next
    `run()` or `is_empty()` call. Calls from several threads need
    external locking.
    """

    def __init__(self, config: Optional[SchedulerConfig] = None):
        self.config = config or SchedulerConfig()
        self.projection = Projection(self.config.quantum_size, self.config.rounding)
        self._schedule = Schedule()
        self._pending_groups: set[Hashable] = set()
        self._stop_requested = False

        logger.debug(
            f'Scheduler initialized with quantum_size={self.config.quantum_size}, '
            f'rounding={self.config.rounding.value}'
        )

    @property
    def quantum_size(self) -> float:
        return self.config.quantum_size

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def schedule(
        self,
        period: float,
        callback: EventCallback,
        *,
        repeat: bool = False,
        group: Optional[Hashable] = None,
    ) -> Event:
        """
        Schedule `callback` to fire after `period`.

        Args:
            period: Non-negative interval, in the time source's unit
            callback: Zero-argument callable; its return value is collected
            repeat: Keep firing every `period` until stopped
            group: Optional tag for unschedule_group()

        Returns:
            The event handle; call `stop()` on it to cancel.

        Raises:
            ConfigurationError: If period or callback is invalid
            MultipleValidationErrors: If both are invalid
        """
        self._validate_schedule_call(period, callback, repeat)

        event = Event.create(
            self.projection, period, callback, repeat=repeat, group=group,
        )
        tick = self.current_tick() + event.tick_offset
        self._schedule.insert(tick, event)

        logger.debug(f'Scheduled {event.label}', extra={'tick': tick})
        return event

    def after(
        self,
        period: float,
        callback: EventCallback,
        group: Optional[Hashable] = None,
    ) -> Event:
        """Fire `callback` once, `period` from now."""
        return self.schedule(period, callback, repeat=False, group=group)

    def every(
        self,
        period: float,
        callback: EventCallback,
        group: Optional[Hashable] = None,
    ) -> Event:
        """Fire `callback` every `period`, first time `period` from now."""
        return self.schedule(period, callback, repeat=True, group=group)

    def _validate_schedule_call(
        self, period: Any, callback: Any, repeat: bool,
    ) -> None:
        report = ValidationReport('schedule')

        if isinstance(period, bool) or not isinstance(period, Real):
            report.add(
                ConfigurationError(
                    message='period must be a real number',
                    code=ErrorCode.SCHEDULE_INVALID_PERIOD,
                    notes=[f'got {type(period).__name__}: {period!r}'],
                    help_text='pass the interval as int or float, e.g. 30 or 12.5',
                )
            )
        elif not math.isfinite(period) or period < 0:
            report.add(
                ConfigurationError(
                    message='period must be finite and non-negative',
                    code=ErrorCode.SCHEDULE_INVALID_PERIOD,
                    notes=[f'period={period!r}'],
                )
            )
        elif repeat and period == 0:
            report.add(
                ConfigurationError(
                    message='repeating events need a period greater than 0',
                    code=ErrorCode.SCHEDULE_INVALID_PERIOD,
                    notes=['a zero period would fire on every pass without waiting'],
                    help_text='use after(0, callback) for a single immediate firing',
                )
            )

        if not callable(callback):
            report.add(
                ConfigurationError(
                    message='callback must be callable',
                    code=ErrorCode.SCHEDULE_INVALID_CALLBACK,
                    notes=[f'got {type(callback).__name__}: {callback!r}'],
                    help_text='pass a zero-argument function or lambda',
                )
            )

        raise_collected(report)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def unschedule_group(self, group: Hashable) -> None:
        """
        Cancel every event tagged with `group`.

        Deferred: the events are removed at the start of the next `run()`
        (or in `is_empty()` / `next_run_time()`), so this is safe to call
        from inside a firing callback.
        """
        if group is None:
            raise ConfigurationError(
                message='cannot unschedule the None group',
                code=ErrorCode.SCHEDULE_INVALID_GROUP,
                notes=['None marks ungrouped events'],
                help_text='stop() individual events instead',
            )
        self._pending_groups.add(group)
        logger.debug(f'Group {group!r} marked for removal')

    def _apply_pending_groups(self) -> None:
        if not self._pending_groups:
            return
        groups, self._pending_groups = self._pending_groups, set()
        removed = self._schedule.compact_groups(groups)
        logger.debug(f'Removed {removed} event(s) for groups {sorted(map(repr, groups))}')

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def current_tick(self) -> int:
        return self.projection.to_tick(self._now())

    def is_empty(self) -> bool:
        """True when no live event remains anywhere in the schedule."""
        self._apply_pending_groups()
        return self._schedule.earliest_live_tick() is None

    def next_run_time(self) -> Optional[float]:
        """Real time at which the next pass is due, or None when empty."""
        self._apply_pending_groups()
        tick = self._schedule.earliest_live_tick()
        if tick is None:
            return None
        return self.projection.to_duration(tick)

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def run(self) -> RunResult:
        """
        Wait for the earliest due tick and fire everything due by then.

        Returns:
            RunResult(results, errors). Results are callback return values
            in firing order. Errors start with one MissedScheduleError when
            the pass began late, followed by callback failures.

        Raises:
            EmptyScheduleError: If no live events remain
        """
        self._apply_pending_groups()

        earliest_tick = self._schedule.earliest_live_tick()
        if earliest_tick is None:
            raise EmptyScheduleError()

        errors: list[Exception] = []
        wait_time = self.projection.to_duration(earliest_tick) - self._now()
        if wait_time < 0:
            logger.warning(
                f'Missed schedule by {-wait_time:.3f}s',
                extra={'tick': earliest_tick},
            )
            # Raised and caught so handlers get a traceback pointing here.
            try:
                raise MissedScheduleError(-wait_time)
            except MissedScheduleError as missed:
                errors.append(missed)
            wait_time = 0.0

        self._wait(wait_time)

        # The waiter may return early or late: nothing may be due yet,
        # or several ticks may have come due at once.
        now_tick = self.projection.elapsed_ticks(self._now())
        due = self._schedule.drain_due(now_tick)
        if not due:
            logger.debug(
                f'Woke before tick {earliest_tick}', extra={'tick': now_tick}
            )

        pending = deque(
            (tick, event) for tick, events in due for event in events
        )
        results: list[Any] = []
        try:
            while pending:
                tick, event = pending.popleft()
                self._fire(event, tick, results, errors)
        finally:
            # A callback escaped with a BaseException (KeyboardInterrupt,
            # SystemExit): put whatever did not fire back in its bucket.
            for tick, event in pending:
                self._schedule.insert(tick, event)

        return RunResult(results, errors)

    def _fire(
        self,
        event: Event,
        tick: int,
        results: list[Any],
        errors: list[Exception],
    ) -> None:
        event.status = EventStatus.FIRING
        event.fire_count += 1
        try:
            results.append(event.callback())
        except Exception as e:
            logger.error(
                f'Callback {event.label} failed: {type(e).__name__}: {e}',
                extra={'tick': tick},
            )
            errors.append(e)
        finally:
            self._settle(event, tick)

    def _settle(self, event: Event, tick: int) -> None:
        """Reschedule a fired event, or discard it."""
        if event.repeat and not event.stopped:
            # Base on the bucket's tick, not now_tick, so a late pass does
            # not shift the event's cadence.
            event.requantize(self.projection)
            self._schedule.insert(tick + event.tick_offset, event)
        else:
            event.status = EventStatus.DISCARDED

    def run_forever(self, error_handler: Optional[ErrorHandler] = None) -> int:
        """
        Run passes until the schedule is empty or a stop is requested.

        Args:
            error_handler: Called once per collected error, in order

        Returns:
            Number of passes completed
        """
        self._stop_requested = False
        logger.info('Starting scheduler loop')

        passes = 0
        while not self._stop_requested:
            try:
                result = self.run()
            except EmptyScheduleError:
                logger.info('Schedule is empty, leaving scheduler loop')
                break
            passes += 1
            if error_handler is not None:
                for error in result.errors:
                    error_handler(error)
        else:
            logger.info('Stop requested, leaving scheduler loop')

        return passes

    def request_stop(self) -> None:
        """Ask run_forever() to return after the current pass."""
        self._stop_requested = True

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def _now(self) -> float:
        return self.config.time_source()

    def _wait(self, duration: float) -> None:
        if duration < 0:
            raise ValueError(f'wait time must be non-negative, got {duration!r}')
        self.config.waiter(duration)
