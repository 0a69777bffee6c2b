"""Encounter spawner — builds agents from stat-table templates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from combat_ai.core.enums import AgentKind, Domain
from combat_ai.core.models import Vector3

if TYPE_CHECKING:
    from combat_ai.ai.agent import CombatAgent
    from combat_ai.ai.boss import BossAgent
    from combat_ai.ai.enemy import EnemyAgent
    from combat_ai.config import CombatConfig
    from combat_ai.core.stats import StatTable
    from combat_ai.engine.session import CombatSession
    from combat_ai.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)

FALLBACK_TOWER = "turret"


class EncounterSpawner:
    """Spawns enemies, towers and bosses around the configured arena anchors.

    Offsets are drawn inside a sphere of ``spawn_radius`` from the SPAWN RNG
    domain, keyed by a running spawn counter, and kept above ground.
    """

    __slots__ = ("_config", "_table", "_rng", "_session", "_spawned")

    def __init__(
        self,
        config: CombatConfig,
        stat_table: StatTable,
        rng: DeterministicRNG,
        session: CombatSession,
    ) -> None:
        self._config = config
        self._table = stat_table
        self._rng = rng
        self._session = session
        self._spawned = 0

    @property
    def spawned(self) -> int:
        return self._spawned

    def spawn_position(self, anchor: tuple[float, float, float]) -> Vector3:
        self._spawned += 1
        offset = self._rng.inside_unit_sphere(Domain.SPAWN, 0, self._spawned) * self._config.spawn_radius
        return Vector3(*anchor) + Vector3(offset.x, abs(offset.y), offset.z)

    def spawn_enemy(self, template: str, now: float) -> EnemyAgent | None:
        stats = self._table.enemies.get(template)
        if stats is None:
            logger.warning("Unknown enemy template %r", template)
            return None
        position = self.spawn_position(self._config.enemy_anchor)
        return self._session.add_enemy(stats.copy(), position, template=template)

    def spawn_tower(self, template: str, now: float, allow_smart: bool = True) -> CombatAgent | None:
        if template in self._table.smart_towers:
            if allow_smart:
                position = self.spawn_position(self._config.tower_anchor)
                return self._session.add_smart_tower(
                    self._table.smart_towers[template].copy(), position, template=template, now=now)
            logger.debug("Smart towers disabled, substituting %r for %r", FALLBACK_TOWER, template)
            template = FALLBACK_TOWER
        stats = self._table.towers.get(template)
        if stats is None:
            logger.warning("Unknown tower template %r", template)
            return None
        position = self.spawn_position(self._config.tower_anchor)
        return self._session.add_tower(stats.copy(), position, template=template)

    def spawn_boss(self, template: str, now: float) -> BossAgent | None:
        stats = self._table.bosses.get(template)
        if stats is None:
            logger.warning("Unknown boss template %r", template)
            return None
        position = self.spawn_position(self._config.boss_anchor)
        return self._session.add_boss(stats.copy(), position, template=template, now=now)

    def despawn_enemies(self) -> int:
        """Remove every live enemy without counting it as a kill."""
        enemies = [a for a in self._session.roster.alive() if a.kind == AgentKind.ENEMY]
        for enemy in enemies:
            self._session.despawn(enemy.id)
        return len(enemies)
