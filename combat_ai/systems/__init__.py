"""Engine systems: deterministic RNG and encounter spawning."""

from combat_ai.systems.rng import DeterministicRNG
from combat_ai.systems.spawner import EncounterSpawner

__all__ = ["DeterministicRNG", "EncounterSpawner"]
