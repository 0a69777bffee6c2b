"""Timer queue — delayed one-shot callbacks evaluated once per tick."""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(order=True, slots=True)
class ScheduledCallback:
    due: float
    seq: int
    label: str = field(compare=False)
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class TimerQueue:
    """Min-heap of callbacks ordered by (due time, insertion order).

    Callbacks scheduled while ``run_due`` is draining are eligible in the
    same pass only if already due.
    """

    __slots__ = ("_heap", "_counter")

    def __init__(self) -> None:
        self._heap: list[ScheduledCallback] = []
        self._counter = itertools.count()

    def schedule(self, due: float, callback: Callable[[], None], label: str = "") -> ScheduledCallback:
        item = ScheduledCallback(due=due, seq=next(self._counter), label=label, callback=callback)
        heapq.heappush(self._heap, item)
        return item

    def run_due(self, now: float) -> int:
        """Fire every callback due at or before *now*. Returns the number fired."""
        fired = 0
        while self._heap and self._heap[0].due <= now:
            item = heapq.heappop(self._heap)
            if item.cancelled:
                continue
            item.callback()
            fired += 1
        return fired

    def cancel_all(self) -> int:
        count = sum(1 for item in self._heap if not item.cancelled)
        self._heap.clear()
        return count

    def pending_labels(self) -> list[str]:
        return [item.label for item in sorted(self._heap) if not item.cancelled]

    def __len__(self) -> int:
        return sum(1 for item in self._heap if not item.cancelled)
