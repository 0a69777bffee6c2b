"""Tests for the boss DecisionCache.

Covers:
- Hit returns the stored tactic and bumps use_count
- One entry per fingerprint
- FIFO eviction once capacity is exceeded; hits do not refresh order
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from combat_ai.ai.decision_cache import DecisionCache
from combat_ai.core.enums import Tactic


def test_miss_then_hit():
    cache = DecisionCache()
    assert cache.get("0.5_20_10_ENGAGING") is None
    cache.store("0.5_20_10_ENGAGING", Tactic.AREA_DENIAL, now=1.0)
    assert cache.get("0.5_20_10_ENGAGING") == Tactic.AREA_DENIAL
    assert cache.peek("0.5_20_10_ENGAGING").use_count == 2
    assert cache.hits == 1
    assert cache.misses == 1


def test_store_same_fingerprint_keeps_single_entry():
    cache = DecisionCache()
    cache.store("k", Tactic.AREA_DENIAL, now=0.0)
    cache.store("k", Tactic.AGGRESSIVE_ATTACK, now=1.0)
    assert len(cache) == 1
    assert cache.peek("k").tactic == Tactic.AGGRESSIVE_ATTACK


def test_fifty_first_insert_evicts_oldest():
    cache = DecisionCache(capacity=50)
    for i in range(51):
        cache.store(f"key{i}", Tactic.AREA_DENIAL, now=float(i))
    assert len(cache) == 50
    assert "key0" not in cache
    assert "key50" in cache
    assert cache.oldest() == "key1"
    assert cache.evictions == 1


def test_hit_does_not_refresh_eviction_order():
    cache = DecisionCache(capacity=2)
    cache.store("a", Tactic.AREA_DENIAL, now=0.0)
    cache.store("b", Tactic.AREA_DENIAL, now=1.0)
    assert cache.get("a") is not None
    cache.store("c", Tactic.AREA_DENIAL, now=2.0)
    assert "a" not in cache
    assert "b" in cache and "c" in cache


def test_stats_dict():
    cache = DecisionCache(capacity=3)
    cache.store("a", Tactic.SPECIAL_ABILITY, now=0.0)
    stats = cache.stats()
    assert stats == {"size": 1, "capacity": 3, "hits": 0, "misses": 0, "evictions": 0}
