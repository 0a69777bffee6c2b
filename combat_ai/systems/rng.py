"""Domain-separated deterministic RNG using xxhash.

Every random draw in the combat core (aim jitter, patrol order, audio clip
choice, spawn offsets) is a pure function of the session seed and its
inputs, so a session replays identically for the same seed.

Formula: RNG_Value = Hash(Seed, Domain, EntityID, Tick)
"""

from __future__ import annotations

import math
import struct

import xxhash

from combat_ai.core.enums import Domain
from combat_ai.core.models import Vector3


class DeterministicRNG:
    """Stateless domain-separated pseudo-random number generator.

    Each call is a pure function of (seed, domain, entity_id, tick), with
    no internal mutable state, therefore fully thread-safe.
    """

    __slots__ = ("_seed",)

    _MAX_UINT64 = (1 << 64) - 1

    def __init__(self, seed: int) -> None:
        self._seed = seed

    @property
    def seed(self) -> int:
        return self._seed

    def _hash(self, domain: Domain, entity_id: int, tick: int) -> int:
        payload = struct.pack("<qiqi", self._seed, domain.value, entity_id, tick)
        return xxhash.xxh64(payload).intdigest()

    def next_float(self, domain: Domain, entity_id: int, tick: int) -> float:
        """Return a deterministic float in [0.0, 1.0)."""
        return self._hash(domain, entity_id, tick) / (self._MAX_UINT64 + 1)

    def next_int(self, domain: Domain, entity_id: int, tick: int, low: int, high: int) -> int:
        """Return a deterministic integer in [low, high] inclusive."""
        f = self.next_float(domain, entity_id, tick)
        return low + int(f * (high - low + 1))

    def next_bool(self, domain: Domain, entity_id: int, tick: int, probability: float = 0.5) -> bool:
        """Return True with the given probability."""
        return self.next_float(domain, entity_id, tick) < probability

    def inside_unit_sphere(self, domain: Domain, entity_id: int, tick: int) -> Vector3:
        """Deterministic point uniformly distributed inside the unit sphere."""
        u = self.next_float(domain, entity_id, tick * 3)
        v = self.next_float(domain, entity_id, tick * 3 + 1)
        w = self.next_float(domain, entity_id, tick * 3 + 2)
        theta = 2.0 * math.pi * u
        phi = math.acos(2.0 * v - 1.0)
        r = w ** (1.0 / 3.0)
        sin_phi = math.sin(phi)
        return Vector3(
            r * sin_phi * math.cos(theta),
            r * math.cos(phi),
            r * sin_phi * math.sin(theta),
        )
