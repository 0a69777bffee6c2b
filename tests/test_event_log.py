"""Tests for the combat event feed.

Covers:
- Filtering by tick, category and agent, newest last
- Bounded window evicts the oldest events but keeps lifetime totals
- reset clears both
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from combat_ai.utils.event_log import EventLog, SimEvent


def _events():
    return [
        SimEvent(0, "spawn", "boss-1 spawned", (1,)),
        SimEvent(0, "spawn", "tower-2 spawned", (2,)),
        SimEvent(3, "decision", "boss-1 chose aggressive_attack", (1,), {"cached": False}),
        SimEvent(5, "tower", "tower-2 engaged", (2,)),
    ]


class TestQuery:
    def test_publish_returns_batch_size(self):
        log = EventLog()
        assert log.publish(_events()) == 4
        assert len(log) == 4

    def test_filters_combine(self):
        log = EventLog()
        log.publish(_events())
        assert [e.tick for e in log.query(since_tick=3)] == [3, 5]
        assert [e.message for e in log.query(category="spawn")] == ["boss-1 spawned", "tower-2 spawned"]
        assert [e.category for e in log.query(agent_id=1)] == ["spawn", "decision"]
        assert log.query(since_tick=1, category="spawn") == []

    def test_limit_keeps_newest(self):
        log = EventLog()
        log.publish(_events())
        assert [e.tick for e in log.query(limit=2)] == [3, 5]


class TestWindow:
    def test_eviction_keeps_totals(self):
        log = EventLog(capacity=2)
        log.publish(_events())
        assert len(log) == 2
        assert [e.category for e in log.query()] == ["decision", "tower"]
        assert log.totals() == {"spawn": 2, "decision": 1, "tower": 1}

    def test_reset(self):
        log = EventLog()
        log.publish(_events())
        log.reset()
        assert len(log) == 0
        assert log.totals() == {}
