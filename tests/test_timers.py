"""Tests for TimerQueue and DeterministicRNG.

Covers:
- Callbacks fire in (due, insertion) order, only once due
- Cancelled callbacks are skipped; cancel_all clears everything
- Callbacks scheduled while draining fire in the same pass only if due
- RNG draws are pure functions of (seed, domain, entity, tick)
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from combat_ai.core.enums import Domain
from combat_ai.engine.timers import TimerQueue
from combat_ai.systems.rng import DeterministicRNG


class TestTimerQueue:
    def test_fires_in_due_then_insertion_order(self):
        timers = TimerQueue()
        fired = []
        timers.schedule(2.0, lambda: fired.append("late"))
        timers.schedule(1.0, lambda: fired.append("first"))
        timers.schedule(1.0, lambda: fired.append("second"))
        assert timers.run_due(0.5) == 0
        assert timers.run_due(1.0) == 2
        assert fired == ["first", "second"]
        timers.run_due(5.0)
        assert fired == ["first", "second", "late"]
        assert len(timers) == 0

    def test_cancelled_callback_is_skipped(self):
        timers = TimerQueue()
        fired = []
        item = timers.schedule(1.0, lambda: fired.append("x"), label="x")
        item.cancelled = True
        assert timers.run_due(2.0) == 0
        assert fired == []

    def test_cancel_all(self):
        timers = TimerQueue()
        timers.schedule(1.0, lambda: None, label="a")
        timers.schedule(2.0, lambda: None, label="b")
        assert timers.pending_labels() == ["a", "b"]
        assert timers.cancel_all() == 2
        assert timers.run_due(10.0) == 0

    def test_rescheduling_during_drain(self):
        timers = TimerQueue()
        fired = []

        def chain():
            fired.append("chain")
            timers.schedule(1.0, lambda: fired.append("due now"))
            timers.schedule(3.0, lambda: fired.append("later"))

        timers.schedule(1.0, chain)
        timers.run_due(1.0)
        assert fired == ["chain", "due now"]
        assert timers.pending_labels() == [""]


class TestDeterministicRNG:
    def test_same_inputs_same_value(self):
        a = DeterministicRNG(42)
        b = DeterministicRNG(42)
        assert a.next_float(Domain.AIM_JITTER, 3, 17) == b.next_float(Domain.AIM_JITTER, 3, 17)

    def test_domains_are_independent(self):
        rng = DeterministicRNG(42)
        assert rng.next_float(Domain.AIM_JITTER, 1, 1) != rng.next_float(Domain.SPAWN, 1, 1)

    def test_int_range_inclusive(self):
        rng = DeterministicRNG(5)
        values = {rng.next_int(Domain.PATROL, 1, t, 0, 2) for t in range(200)}
        assert values == {0, 1, 2}

    def test_inside_unit_sphere(self):
        rng = DeterministicRNG(9)
        for t in range(100):
            assert rng.inside_unit_sphere(Domain.SPAWN, 0, t).length() <= 1.0 + 1e-9
