"""Enumerations used throughout the combat core."""

from __future__ import annotations

from enum import Enum, IntEnum, unique


@unique
class BossState(IntEnum):
    """Finite-state-machine states for the boss."""

    SPAWNING = 0
    HUNTING = 1
    ENGAGING = 2
    RETREATING = 3
    CHANNELING = 4
    STUNNED = 5
    DEFEATED = 6        # Terminal


@unique
class BossType(IntEnum):
    """Strategy tag carried into the situation context."""

    AGGRESSIVE = 0
    TACTICAL = 1
    DEFENSIVE = 2
    ADAPTIVE = 3


@unique
class EnemyState(IntEnum):
    """Finite-state-machine states for generic enemies."""

    IDLE = 0
    PATROL = 1
    TRACKING = 2
    ATTACKING = 3
    RETREATING = 4
    DEAD = 5            # Terminal


@unique
class EnemyType(IntEnum):
    """Behavioral variant of a generic enemy."""

    SOLDIER = 0         # Melee-seeking
    ARCHER = 1          # Ranged-kiting
    GUARD = 2           # Stationary


@unique
class TowerState(IntEnum):
    """Coarse tower status (towers have no real state machine)."""

    IDLE = 0
    ENGAGED = 1
    DESTROYED = 2       # Terminal


@unique
class TowerAIType(IntEnum):
    """Smart-tower behavioral archetypes."""

    ADAPTIVE = 0
    COORDINATOR = 1
    PREDICTOR = 2
    AMBUSHER = 3


@unique
class AgentKind(IntEnum):
    """Roster categories, also used for kill reports."""

    ENEMY = 0
    TOWER = 1
    BOSS = 2


class Tactic(str, Enum):
    """Tactics the boss decision layer can choose."""

    AGGRESSIVE_ATTACK = "aggressive_attack"
    DEFENSIVE_RETREAT = "defensive_retreat"
    SPECIAL_ABILITY = "special_ability"
    TACTICAL_REPOSITION = "tactical_reposition"
    AREA_DENIAL = "area_denial"


@unique
class Domain(IntEnum):
    """RNG domains for deterministic randomness isolation."""

    AIM_JITTER = 0
    PATROL = 1
    AUDIO = 2
    SPAWN = 3
    FLIGHT = 4
