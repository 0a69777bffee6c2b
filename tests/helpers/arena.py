"""CombatArena — E2E test fixture for the combat core.

Creates a CombatSession on a SandboxHost with difficulty adaptation off and
no encounters spawned, so tests place exactly the agents they need.

Usage:
    arena = CombatArena()
    arena.set_player((0, 0, 20))
    boss = arena.add_boss((0, 0, 0))
    events = arena.run_ticks(10)
    assert arena.events_by_category("decision")
"""

from __future__ import annotations

import os
import sys
from typing import Callable

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from combat_ai.ai.boss import BossAgent
from combat_ai.ai.enemy import EnemyAgent
from combat_ai.ai.smart_tower import SmartTower
from combat_ai.ai.tower import Tower
from combat_ai.config import CombatConfig
from combat_ai.core.enums import EnemyType, TowerAIType
from combat_ai.core.models import ZERO, Vector3
from combat_ai.core.stats import BossStats, EnemyStats, SmartTowerStats, TowerStats
from combat_ai.engine.host import SandboxHost
from combat_ai.engine.session import CombatSession
from combat_ai.utils.event_log import SimEvent


def _vec(value) -> Vector3:
    if isinstance(value, Vector3):
        return value
    return Vector3(*value)


class CombatArena:
    """E2E test fixture for combat mechanics.

    Add agents, move the player, run ticks, inspect state and events.
    """

    def __init__(self, seed: int = 42, synthesizer=None, **config_overrides) -> None:
        defaults = dict(
            seed=seed,
            max_ticks=99999,
            difficulty_enabled=False,
        )
        defaults.update(config_overrides)
        self.config = CombatConfig(**defaults)
        self.host = SandboxHost()
        self.session = CombatSession(self.config, self.host, synthesizer=synthesizer)
        self._all_events: list[SimEvent] = []

    # -- Player --

    def set_player(self, pos=(0.0, 0.0, 0.0), velocity=ZERO, attacking: bool = False) -> None:
        """Place (registering if needed) the player with a fixed velocity."""
        self.host.set_player_pose(_vec(pos), _vec(velocity), attacking)

    # -- Agent builders --

    def add_boss(self, pos=(0.0, 0.0, 0.0), *, retreat_positions=(), attack_positions=(),
                 **stat_overrides) -> BossAgent:
        stats = BossStats(**stat_overrides)
        return self.session.add_boss(
            stats, _vec(pos),
            retreat_positions=tuple(_vec(p) for p in retreat_positions),
            attack_positions=tuple(_vec(p) for p in attack_positions),
        )

    def add_enemy(self, pos=(0.0, 0.0, 0.0), *, enemy_type: EnemyType = EnemyType.SOLDIER,
                  waypoints=(), **stat_overrides) -> EnemyAgent:
        stats = EnemyStats(enemy_type=enemy_type, **stat_overrides)
        return self.session.add_enemy(stats, _vec(pos), waypoints=tuple(_vec(p) for p in waypoints))

    def add_tower(self, pos=(0.0, 0.0, 0.0), **stat_overrides) -> Tower:
        return self.session.add_tower(TowerStats(**stat_overrides), _vec(pos))

    def add_smart_tower(self, pos=(0.0, 0.0, 0.0), *, ai_type: TowerAIType = TowerAIType.ADAPTIVE,
                        **stat_overrides) -> SmartTower:
        stats = SmartTowerStats(ai_type=ai_type, **stat_overrides)
        return self.session.add_smart_tower(stats, _vec(pos))

    # -- Running --

    def run_ticks(self, n: int) -> list[SimEvent]:
        """Run n ticks and return all events emitted during those ticks."""
        events: list[SimEvent] = []
        for _ in range(n):
            self.session.tick_once()
            events.extend(self.session.tick_events)
        self._all_events.extend(events)
        return events

    def run_until(
        self,
        predicate: Callable[[CombatArena], bool],
        max_ticks: int = 200,
    ) -> list[SimEvent]:
        """Run ticks until predicate(arena) returns True or max_ticks reached."""
        events: list[SimEvent] = []
        for _ in range(max_ticks):
            self.session.tick_once()
            events.extend(self.session.tick_events)
            if predicate(self):
                break
        self._all_events.extend(events)
        return events

    # -- Queries --

    def agent(self, agent_id: int):
        return self.session.roster.get(agent_id)

    def all_events(self) -> list[SimEvent]:
        return list(self._all_events)

    def events_by_category(self, category: str) -> list[SimEvent]:
        return [e for e in self._all_events if e.category == category]

    def events_for_agent(self, agent_id: int) -> list[SimEvent]:
        return [e for e in self._all_events if e.involves(agent_id)]

    @property
    def now(self) -> float:
        return self.session.now

    @property
    def tick(self) -> int:
        return self.session.tick
