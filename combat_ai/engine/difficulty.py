"""Dynamic difficulty — scores the player and walks the difficulty ladder.

Every ``adaptation_interval`` seconds the controller scores the player's
PlayerPerformance.  A high score moves one rung up, a low score one rung
down, bounded by a per-level change budget.  A rung change runs a timed
transition on the controller's own TimerQueue:

  t + transition_delay                    despawn enemies
  t + transition_delay + transition_pause spawn towers and bosses, start
                                          gradual enemy spawns, then sweep
                                          modifiers over every live agent

Each agent receives the modifiers of a given change exactly once; agents
spawned gradually after the sweep are modified at spawn.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from combat_ai.ai.boss import BossAgent
from combat_ai.ai.enemy import EnemyAgent
from combat_ai.ai.smart_tower import SmartTower
from combat_ai.ai.tower import Tower
from combat_ai.core.enums import AgentKind
from combat_ai.core.errors import ConfigurationError
from combat_ai.core.ladder import DEFAULT_LADDER, DifficultyLevel, validate_ladder
from combat_ai.core.performance import PlayerPerformance, clamp01
from combat_ai.core.stats import default_stat_table
from combat_ai.engine.timers import TimerQueue

if TYPE_CHECKING:
    from combat_ai.ai.agent import CombatAgent, EventSink
    from combat_ai.config import CombatConfig
    from combat_ai.core.stats import StatTable
    from combat_ai.engine.roster import AgentRoster
    from combat_ai.systems.spawner import EncounterSpawner

logger = logging.getLogger(__name__)

DifficultyListener = Callable[[int, DifficultyLevel], None]
PerformanceListener = Callable[[PlayerPerformance], None]


class DifficultyController:
    """Adapts encounter difficulty to measured player performance."""

    def __init__(
        self,
        config: CombatConfig,
        spawner: EncounterSpawner | None = None,
        roster: AgentRoster | None = None,
        ladder: tuple[DifficultyLevel, ...] | list[DifficultyLevel] = DEFAULT_LADDER,
        stat_table: StatTable | None = None,
        events: EventSink | None = None,
    ) -> None:
        self._config = config
        self._spawner = spawner
        self._roster = roster
        self._events = events
        self.enabled = config.difficulty_enabled
        try:
            self.ladder = validate_ladder(ladder, stat_table or default_stat_table())
        except ConfigurationError as exc:
            logger.error("Difficulty adaptation disabled: %s", exc)
            self.ladder = tuple(ladder)
            self.enabled = False

        self.index = max(0, min(config.starting_difficulty_index, len(self.ladder) - 1))
        self.performance = PlayerPerformance()
        self.changes_this_level = 0
        self.change_serial = 0
        self.last_evaluation = 0.0
        self.transitioning = False
        self.timers = TimerQueue()

        self.on_difficulty_changed: list[DifficultyListener] = []
        self.on_performance_updated: list[PerformanceListener] = []

    @property
    def current_level(self) -> DifficultyLevel | None:
        if not self.ladder:
            return None
        return self.ladder[self.index]

    # -- per-tick --

    def update(self, dt: float, now: float) -> None:
        self.timers.run_due(now)
        if not self.enabled:
            return
        self.performance.survival_time += dt
        for listener in self.on_performance_updated:
            listener(self.performance)

        if now - self.last_evaluation >= self._config.adaptation_interval:
            self.evaluate(now)
            self.last_evaluation = now

    def evaluate(self, now: float = 0.0, score: float | None = None) -> int | None:
        """Score the player and move at most one rung. Returns the new index, if any."""
        if self.changes_this_level >= self._config.max_changes_per_level:
            return None
        if score is None:
            score = self.performance.overall_score()
        cfg = self._config
        logger.debug("Performance %.2f (up at %.2f, down at %.2f)",
                     score, cfg.increase_threshold, cfg.decrease_threshold)

        if score >= cfg.increase_threshold and self.index < len(self.ladder) - 1:
            target = self.index + 1
        elif score <= cfg.decrease_threshold and self.index > 0:
            target = self.index - 1
        else:
            return None
        self.change_rung(target, now)
        return target

    def increase(self, now: float = 0.0) -> bool:
        return self.change_rung(min(self.index + 1, len(self.ladder) - 1), now)

    def decrease(self, now: float = 0.0) -> bool:
        return self.change_rung(max(self.index - 1, 0), now)

    def populate(self, now: float = 0.0) -> None:
        """Spawn the current rung's encounters without spending the change budget."""
        if self.current_level is None:
            return
        self.change_serial += 1
        self._spawn_encounters(self.change_serial, now)
        self.timers.run_due(now)

    def change_rung(self, index: int, now: float = 0.0) -> bool:
        """Switch to rung *index*. Changing to the current rung does nothing."""
        if not 0 <= index < len(self.ladder):
            logger.warning("Ignoring change to rung %d (ladder has %d)", index, len(self.ladder))
            return False
        if index == self.index:
            return False

        old_index = self.index
        old = self.ladder[old_index]
        self.index = index
        self.changes_this_level += 1
        self.change_serial += 1
        level = self.ladder[index]
        direction = "increased" if index > old_index else "decreased"
        logger.info("Difficulty %s: %s → %s", direction, old.name, level.name)
        if self._events is not None:
            self._events("difficulty", f"Difficulty {direction}: {old.name} → {level.name}", (),
                         {"index": index, "level": level.name, "serial": self.change_serial})

        self._begin_transition(now)
        for listener in self.on_difficulty_changed:
            listener(index, level)
        return True

    # -- transition --

    def _begin_transition(self, now: float) -> None:
        cfg = self._config
        serial = self.change_serial
        self.timers.cancel_all()
        self.transitioning = True
        self.timers.schedule(now + cfg.transition_delay, self._despawn, label="despawn")
        spawn_at = now + cfg.transition_delay + cfg.transition_pause
        self.timers.schedule(spawn_at, lambda: self._spawn_encounters(serial, spawn_at), label="spawn")

    def _despawn(self) -> None:
        if self._spawner is None:
            return
        removed = self._spawner.despawn_enemies()
        logger.debug("Transition despawned %d enemies", removed)

    def _spawn_encounters(self, serial: int, now: float) -> None:
        level = self.ladder[self.index]
        if self._spawner is not None:
            towers = level.tower_templates[:level.max_towers]
            for name in towers:
                self._spawner.spawn_tower(name, now, allow_smart=level.enable_smart_towers)
            for name in level.boss_templates:
                self._spawner.spawn_boss(name, now)

            enemies = level.enemy_templates[:level.max_enemies]
            for i, name in enumerate(enemies):
                due = now + i * level.spawn_delay
                self.timers.schedule(due, lambda n=name, t=due: self._spawn_enemy(serial, n, t),
                                     label=f"spawn_enemy_{i}")

        self.sweep_modifiers()
        self.transitioning = False

    def _spawn_enemy(self, serial: int, template: str, now: float) -> None:
        if serial != self.change_serial or self._spawner is None:
            return
        agent = self._spawner.spawn_enemy(template, now)
        if agent is not None:
            self.modify(agent)

    # -- modifiers --

    def sweep_modifiers(self) -> int:
        """Apply the current rung's modifiers to every live agent not yet modified."""
        if self._roster is None:
            return 0
        return sum(1 for agent in self._roster.alive() if self.modify(agent))

    def modify(self, agent: CombatAgent) -> bool:
        if agent.modifier_serial >= self.change_serial or not agent.alive:
            return False
        level = self.current_level
        if level is None:
            return False
        self.apply_modifiers(agent, level)
        agent.modifier_serial = self.change_serial
        return True

    def apply_modifiers(self, agent: CombatAgent, level: DifficultyLevel) -> None:
        cfg = self._config
        stats = agent.stats
        agent.set_max_health(stats.max_health * level.health_multiplier)

        if isinstance(agent, BossAgent):
            stats.primary_attack_damage *= level.damage_multiplier
            stats.special_attack_damage *= level.damage_multiplier
            stats.move_speed *= level.speed_multiplier
            stats.combat_speed *= level.speed_multiplier
            stats.retreat_speed *= level.speed_multiplier
            stats.ai_decision_interval = max(cfg.boss_decision_floor,
                                             stats.ai_decision_interval - level.ai_decision_speed_bonus)
        elif isinstance(agent, EnemyAgent):
            stats.attack_damage *= level.damage_multiplier
            stats.move_speed *= level.speed_multiplier
            stats.run_speed *= level.speed_multiplier
        elif isinstance(agent, SmartTower):
            stats.prediction_accuracy = clamp01(stats.prediction_accuracy + level.tower_accuracy_bonus)
            stats.adaptation_interval = max(cfg.tower_adaptation_floor,
                                            stats.adaptation_interval - level.ai_decision_speed_bonus)
        elif isinstance(agent, Tower):
            stats.fire_rate *= 1.0 + level.tower_accuracy_bonus
        logger.debug("Applied %s modifiers to %s", level.name, agent.name)

    # -- collaborator reports --

    def report_kill(self, kind: AgentKind) -> None:
        match kind:
            case AgentKind.ENEMY:
                self.report_enemy_defeated()
            case AgentKind.TOWER:
                self.report_tower_destroyed()
            case AgentKind.BOSS:
                self.report_boss_defeated()

    def report_enemy_defeated(self) -> None:
        self.performance.enemies_defeated += 1

    def report_tower_destroyed(self) -> None:
        self.performance.towers_destroyed += 1

    def report_boss_defeated(self) -> None:
        self.performance.bosses_defeated += 1

    def report_damage_received(self, amount: float) -> None:
        self.performance.damage_received += amount

    def report_accuracy(self, value: float) -> None:
        self.performance.accuracy_rating = clamp01(value)

    def report_evasion(self, value: float) -> None:
        self.performance.evasion_rating = clamp01(value)

    def start_new_level(self) -> None:
        """Reset the change budget and bank the survival time of the finished level."""
        self.changes_this_level = 0
        self.performance.level_completion_times.append(self.performance.survival_time)
        self.performance.survival_time = 0.0

    def to_dict(self) -> dict:
        level = self.current_level
        return {
            "enabled": self.enabled,
            "index": self.index,
            "level": level.name if level else None,
            "rating": level.rating if level else None,
            "changes_this_level": self.changes_this_level,
            "max_changes_per_level": self._config.max_changes_per_level,
            "transitioning": self.transitioning,
            "performance": self.performance.to_dict(),
        }
