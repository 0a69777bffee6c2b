"""Combat event feed shared between the engine thread and API readers."""

from __future__ import annotations

import threading
from collections import Counter, deque
from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True, slots=True)
class SimEvent:
    """One combat event: spawn, state change, decision, tower fire, rung change."""

    tick: int
    category: str
    message: str
    entity_ids: tuple[int, ...] = ()
    metadata: dict | None = None

    def involves(self, agent_id: int) -> bool:
        return agent_id in self.entity_ids


class EventLog:
    """Recent combat events plus lifetime totals per category.

    The engine thread publishes one tick's batch at a time; readers filter a
    copy under the same lock. Totals survive eviction from the window and
    are only cleared by ``reset``.
    """

    __slots__ = ("_events", "_totals", "_lock")

    def __init__(self, capacity: int = 5000) -> None:
        self._events: deque[SimEvent] = deque(maxlen=capacity)
        self._totals: Counter[str] = Counter()
        self._lock = threading.Lock()

    def publish(self, events: Iterable[SimEvent]) -> int:
        count = 0
        with self._lock:
            for event in events:
                self._events.append(event)
                self._totals[event.category] += 1
                count += 1
        return count

    def query(
        self,
        since_tick: int = 0,
        category: str | None = None,
        agent_id: int | None = None,
        limit: int | None = None,
    ) -> list[SimEvent]:
        """Events at or after *since_tick*, optionally one category or one agent, newest last."""
        with self._lock:
            matched = [
                e for e in self._events
                if e.tick >= since_tick
                and (category is None or e.category == category)
                and (agent_id is None or e.involves(agent_id))
            ]
        if limit is not None:
            return matched[-limit:]
        return matched

    def totals(self) -> dict[str, int]:
        with self._lock:
            return dict(self._totals)

    def reset(self) -> None:
        with self._lock:
            self._events.clear()
            self._totals.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
