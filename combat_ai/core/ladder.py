"""Difficulty ladder — ordered, immutable rungs.

Each ``DifficultyLevel`` names the encounter templates it spawns and the
multiplicative modifiers it applies to live agents.  Rungs are pydantic
dataclasses so a ladder can be loaded and validated from JSON.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import Field, TypeAdapter, ValidationError
from pydantic.dataclasses import dataclass as pydantic_dataclass

from combat_ai.core.errors import ConfigurationError
from combat_ai.core.stats import StatTable


@pydantic_dataclass(frozen=True)
class DifficultyLevel:
    """One rung of the difficulty ladder."""

    name: str
    rating: int = Field(5, ge=1, le=10)

    # Encounter templates (names in the StatTable)
    enemy_templates: tuple[str, ...] = ()
    tower_templates: tuple[str, ...] = ()
    boss_templates: tuple[str, ...] = ()

    # Modifiers
    health_multiplier: float = 1.0
    damage_multiplier: float = 1.0
    speed_multiplier: float = 1.0
    tower_accuracy_bonus: float = Field(0.0, ge=0.0, le=1.0)
    ai_decision_speed_bonus: float = 0.0     # Seconds shaved off decision cadences

    # Spawn budgets
    max_enemies: int = 10
    max_towers: int = 3
    spawn_delay: float = 2.0                 # Seconds between gradual enemy spawns
    enable_smart_towers: bool = False


DEFAULT_LADDER: tuple[DifficultyLevel, ...] = (
    DifficultyLevel(
        name="Easy", rating=2,
        enemy_templates=("soldier", "soldier", "archer"),
        tower_templates=("turret",),
        health_multiplier=0.8, damage_multiplier=0.75, speed_multiplier=0.9,
        max_enemies=3, max_towers=1, spawn_delay=3.0,
    ),
    DifficultyLevel(
        name="Normal", rating=5,
        enemy_templates=("soldier", "soldier", "archer", "guard"),
        tower_templates=("turret", "adaptive_tower"),
        max_enemies=4, max_towers=2,
        enable_smart_towers=True,
    ),
    DifficultyLevel(
        name="Hard", rating=7,
        enemy_templates=("soldier", "soldier", "archer", "archer", "guard"),
        tower_templates=("adaptive_tower", "coordinator_tower", "coordinator_tower"),
        boss_templates=("tactician",),
        health_multiplier=1.25, damage_multiplier=1.2, speed_multiplier=1.1,
        tower_accuracy_bonus=0.05, ai_decision_speed_bonus=2.0,
        max_enemies=5, max_towers=3, spawn_delay=1.5,
        enable_smart_towers=True,
    ),
    DifficultyLevel(
        name="Nightmare", rating=10,
        enemy_templates=("soldier", "soldier", "soldier", "archer", "archer", "guard"),
        tower_templates=("predictor_tower", "ambusher_tower", "coordinator_tower"),
        boss_templates=("warlord",),
        health_multiplier=1.6, damage_multiplier=1.5, speed_multiplier=1.2,
        tower_accuracy_bonus=0.1, ai_decision_speed_bonus=4.0,
        max_enemies=6, max_towers=3, spawn_delay=1.0,
        enable_smart_towers=True,
    ),
)


_LADDER_ADAPTER = TypeAdapter(list[DifficultyLevel])


def validate_ladder(ladder: tuple[DifficultyLevel, ...] | list[DifficultyLevel],
                    stat_table: StatTable) -> tuple[DifficultyLevel, ...]:
    """Check a ladder is usable against *stat_table*; raise ConfigurationError if not."""
    if not ladder:
        raise ConfigurationError("difficulty ladder is empty")
    known = stat_table.template_names()
    for level in ladder:
        for name in (*level.enemy_templates, *level.tower_templates, *level.boss_templates):
            if name not in known:
                raise ConfigurationError(f"rung {level.name!r} references unknown template {name!r}")
    return tuple(ladder)


def load_ladder(path: str | Path) -> tuple[DifficultyLevel, ...]:
    """Read a ladder (a JSON array of rungs) from disk."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return tuple(_LADDER_ADAPTER.validate_python(data))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"cannot read ladder {path}: {exc}") from exc
    except ValidationError as exc:
        raise ConfigurationError(f"invalid ladder: {exc.error_count()} error(s)") from exc
