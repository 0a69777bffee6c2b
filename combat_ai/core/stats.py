"""Per-agent combat statistics and the stat table they are loaded from.

Stats are plain mutable dataclasses: an agent gets a private copy at spawn
and only the difficulty controller mutates it afterwards.  The table of
named templates is a pydantic dataclass so it can be validated straight
from JSON configuration.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path

from pydantic import TypeAdapter, ValidationError
from pydantic.dataclasses import dataclass as pydantic_dataclass

from combat_ai.core.enums import BossType, EnemyType, TowerAIType
from combat_ai.core.errors import ConfigurationError


@dataclass(slots=True)
class BossStats:
    """Mutable boss statistics."""

    # --- Core ---
    max_health: float = 500.0
    armor: float = 25.0
    regeneration_rate: float = 2.0          # HP per second, paused while retreating

    # --- Decision layer ---
    boss_type: BossType = BossType.ADAPTIVE
    ai_decision_interval: float = 12.0
    emergency_decision_interval: float = 5.0
    use_decision_cache: bool = True

    # --- Movement ---
    move_speed: float = 8.0
    combat_speed: float = 12.0
    retreat_speed: float = 15.0
    rotation_speed: float = 90.0            # Degrees per second

    # --- Attacks ---
    primary_attack_damage: float = 40.0
    special_attack_damage: float = 80.0
    primary_attack_cooldown: float = 3.0
    special_attack_cooldown: float = 8.0
    detection_range: float = 60.0
    attack_range: float = 25.0
    projectile_speed: float = 30.0

    def copy(self) -> BossStats:
        return replace(self)


@dataclass(slots=True)
class EnemyStats:
    """Mutable generic-enemy statistics."""

    enemy_type: EnemyType = EnemyType.SOLDIER
    max_health: float = 100.0
    armor: float = 0.0

    # Acquisition hysteresis: enter at detection, leave beyond lose
    detection_range: float = 30.0
    lose_target_range: float = 50.0

    move_speed: float = 3.5
    run_speed: float = 5.5
    rotation_speed: float = 180.0

    attack_range: float = 2.0
    preferred_distance: float = 15.0        # Archer kiting band
    attack_damage: float = 20.0
    attack_cooldown: float = 2.0
    projectile_speed: float = 20.0

    patrol_wait_time: float = 2.0
    patrol_in_order: bool = True

    def copy(self) -> EnemyStats:
        return replace(self)


@dataclass(slots=True)
class TowerStats:
    """Mutable plain-tower statistics."""

    max_health: float = 150.0
    armor: float = 5.0
    detection_range: float = 50.0
    fire_rate: float = 1.0                  # Shots per second
    projectile_speed: float = 25.0
    damage: float = 10.0
    lead_target: bool = True
    max_turn_speed: float = 90.0            # Degrees per second

    def copy(self) -> TowerStats:
        return replace(self)


@dataclass(slots=True)
class SmartTowerStats:
    """Mutable smart-tower statistics."""

    ai_type: TowerAIType = TowerAIType.ADAPTIVE
    max_health: float = 200.0
    armor: float = 5.0
    detection_range: float = 45.0
    fire_rate: float = 1.2
    projectile_speed: float = 30.0
    damage: float = 15.0
    max_turn_speed: float = 120.0

    # Learning
    learning_rate: float = 0.1
    history_size: int = 100
    adaptation_interval: float = 5.0
    min_adaptation_samples: int = 10

    # Coordination
    coordination_range: float = 60.0
    communication_interval: float = 2.0

    # Prediction
    use_prediction: bool = True
    use_intercept_course: bool = True
    prediction_accuracy: float = 0.8
    max_prediction_time: float = 3.0

    def copy(self) -> SmartTowerStats:
        return replace(self)


# ---------------------------------------------------------------------------
# Stat table
# ---------------------------------------------------------------------------

@pydantic_dataclass
class StatTable:
    """Named stat templates referenced by difficulty rungs and the spawner."""

    bosses: dict[str, BossStats] = field(default_factory=dict)
    enemies: dict[str, EnemyStats] = field(default_factory=dict)
    towers: dict[str, TowerStats] = field(default_factory=dict)
    smart_towers: dict[str, SmartTowerStats] = field(default_factory=dict)

    def has_template(self, name: str) -> bool:
        return any(name in group for group in (self.bosses, self.enemies, self.towers, self.smart_towers))

    def template_names(self) -> set[str]:
        return set(self.bosses) | set(self.enemies) | set(self.towers) | set(self.smart_towers)


_STAT_TABLE_ADAPTER = TypeAdapter(StatTable)


def default_stat_table() -> StatTable:
    """The stock templates shipped with the game."""
    return StatTable(
        bosses={
            "warlord": BossStats(),
            "tactician": BossStats(boss_type=BossType.TACTICAL, max_health=420.0, armor=20.0,
                                   ai_decision_interval=10.0),
        },
        enemies={
            "soldier": EnemyStats(),
            "archer": EnemyStats(enemy_type=EnemyType.ARCHER, max_health=70.0,
                                 attack_range=25.0, attack_damage=12.0, attack_cooldown=1.5),
            "guard": EnemyStats(enemy_type=EnemyType.GUARD, max_health=160.0, armor=8.0,
                                attack_range=20.0, attack_damage=15.0),
        },
        towers={
            "turret": TowerStats(),
        },
        smart_towers={
            "adaptive_tower": SmartTowerStats(),
            "coordinator_tower": SmartTowerStats(ai_type=TowerAIType.COORDINATOR),
            "predictor_tower": SmartTowerStats(ai_type=TowerAIType.PREDICTOR),
            "ambusher_tower": SmartTowerStats(ai_type=TowerAIType.AMBUSHER),
        },
    )


def parse_stat_table(data: dict) -> StatTable:
    """Validate a decoded JSON object into a StatTable."""
    try:
        return _STAT_TABLE_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid stat table: {exc.error_count()} error(s)") from exc


def load_stat_table(path: str | Path) -> StatTable:
    """Read a stat table from a JSON file."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"cannot read stat table {path}: {exc}") from exc
    return parse_stat_table(data)
