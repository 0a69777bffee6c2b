"""Decision cache — exact-match fingerprint → tactic memo with FIFO eviction."""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass

from combat_ai.core.enums import Tactic

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DecisionCacheEntry:
    fingerprint: str
    tactic: Tactic
    created_at: float
    use_count: int = 1


class DecisionCache:
    """Bounded, insertion-ordered cache.

    At most one entry per fingerprint.  When an insert pushes the size past
    capacity, the oldest *inserted* entry is evicted; hits do not refresh
    an entry's position.
    """

    __slots__ = ("_entries", "_capacity", "hits", "misses", "evictions")

    def __init__(self, capacity: int = 50) -> None:
        if capacity < 1:
            raise ValueError("decision cache capacity must be positive")
        self._entries: OrderedDict[str, DecisionCacheEntry] = OrderedDict()
        self._capacity = capacity
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._entries

    def get(self, fingerprint: str) -> Tactic | None:
        """Return the cached tactic and bump its use count, or None on a miss."""
        entry = self._entries.get(fingerprint)
        if entry is None:
            self.misses += 1
            return None
        entry.use_count += 1
        self.hits += 1
        return entry.tactic

    def peek(self, fingerprint: str) -> DecisionCacheEntry | None:
        """Entry lookup without counting a use."""
        return self._entries.get(fingerprint)

    def store(self, fingerprint: str, tactic: Tactic, now: float) -> DecisionCacheEntry:
        existing = self._entries.get(fingerprint)
        if existing is not None:
            existing.tactic = tactic
            return existing

        entry = DecisionCacheEntry(fingerprint=fingerprint, tactic=tactic, created_at=now)
        self._entries[fingerprint] = entry
        while len(self._entries) > self._capacity:
            old_key, _old = self._entries.popitem(last=False)
            self.evictions += 1
            logger.debug("Decision cache evicted %s", old_key)
        return entry

    def oldest(self) -> str | None:
        return next(iter(self._entries), None)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict:
        return {
            "size": len(self._entries),
            "capacity": self._capacity,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }
