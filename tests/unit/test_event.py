"""Tests for Event construction, drift compensation and stop state."""

from __future__ import annotations

import pytest

from periodiq.core.scheduler.event import Event
from periodiq.core.scheduler.projection import Projection
from periodiq.core.types.status import EventStatus

pytestmark = pytest.mark.unit


def _noop() -> None:
    return None


class TestEventCreate:
    """Tests for Event.create()."""

    def test_quantizes_period(self) -> None:
        event = Event.create(Projection(5.0), 12, _noop, repeat=True)

        assert event.period == 12
        assert event.tick_offset == 2
        assert event.accumulated_error == 2.0
        assert event.repeat is True
        assert event.group is None

    def test_defaults_to_one_shot_scheduled(self) -> None:
        event = Event.create(Projection(5.0), 9.5, _noop)

        assert event.repeat is False
        assert event.status is EventStatus.SCHEDULED
        assert event.fire_count == 0
        assert event.stopped is False

    def test_keeps_group_tag(self) -> None:
        event = Event.create(Projection(5.0), 10, _noop, group=('cache', 1))
        assert event.group == ('cache', 1)

    def test_events_compare_by_identity(self) -> None:
        p = Projection(5.0)
        a = Event.create(p, 10, _noop)
        b = Event.create(p, 10, _noop)
        assert a != b
        assert a == a
        assert len({a, b}) == 2


class TestEventRequantize:
    """Tests for the error-carrying reschedule step."""

    def test_carries_error_across_firings(self) -> None:
        """Period 12 on a 5s grid: offsets 2,2,3,2,3,2 with errors 2,4,1,3,0,2."""
        p = Projection(5.0)
        event = Event.create(p, 12, _noop, repeat=True)

        offsets = [event.tick_offset]
        errors = [event.accumulated_error]
        for _ in range(5):
            event.requantize(p)
            offsets.append(event.tick_offset)
            errors.append(event.accumulated_error)

        assert offsets == [2, 2, 3, 2, 3, 2]
        assert errors == [2.0, 4.0, 1.0, 3.0, 0.0, 2.0]

    def test_exact_period_has_no_error(self) -> None:
        p = Projection(5.0)
        event = Event.create(p, 15, _noop, repeat=True)
        for _ in range(10):
            event.requantize(p)
            assert event.tick_offset == 3
            assert event.accumulated_error == 0.0

    def test_period_below_quantum_still_advances_on_average(self) -> None:
        """A 2s period on a 5s grid alternates 0- and 1-tick offsets totalling 2s each."""
        p = Projection(5.0)
        event = Event.create(p, 2, _noop, repeat=True)

        total_ticks = event.tick_offset
        for _ in range(99):
            event.requantize(p)
            total_ticks += event.tick_offset

        # 100 firings * 2s = 200s = 40 ticks, give or take the carried error
        assert total_ticks in (39, 40)

    def test_period_is_immutable_under_requantize(self) -> None:
        p = Projection(5.0)
        event = Event.create(p, 12, _noop, repeat=True)
        event.requantize(p)
        assert event.period == 12


class TestEventStop:
    """Tests for Event.stop() / Event.stopped."""

    def test_stop_sets_flag(self) -> None:
        event = Event.create(Projection(5.0), 10, _noop)
        event.stop()
        assert event.stopped is True

    def test_stop_is_idempotent(self) -> None:
        event = Event.create(Projection(5.0), 10, _noop)
        event.stop()
        event.stop()
        assert event.stopped is True

    def test_stop_does_not_change_status(self) -> None:
        """Removal is lazy; status only changes when the schedule drops the event."""
        event = Event.create(Projection(5.0), 10, _noop)
        event.stop()
        assert event.status is EventStatus.SCHEDULED


class TestEventLabel:
    """Tests for the log label."""

    def test_label_uses_callback_name(self) -> None:
        event = Event.create(Projection(5.0), 12, _noop, repeat=True)
        assert event.label == '_noop (every 12s)'

    def test_label_for_one_shot(self) -> None:
        event = Event.create(Projection(5.0), 9.5, _noop)
        assert event.label == '_noop (after 9.5s)'

    def test_label_falls_back_to_repr(self) -> None:
        class Job:
            def __call__(self) -> None:
                return None

            def __repr__(self) -> str:
                return '<Job>'

        event = Event.create(Projection(5.0), 1, Job())
        assert event.label == '<Job> (after 1s)'
