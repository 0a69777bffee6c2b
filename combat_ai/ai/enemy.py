"""Generic enemy agent — soldier, archer and guard variants.

State machine:
  IDLE / PATROL → TRACKING (target within detection_range)
  TRACKING → ATTACKING (variant-specific range check) | RETREATING (archer too close)
  ATTACKING → TRACKING (out of range / out of band)
  RETREATING → TRACKING (archer back at preferred distance)
  TRACKING / ATTACKING / RETREATING → PATROL | IDLE (target beyond lose_target_range)
  * → DEAD (terminal)

Acquisition uses two radii: a target is acquired inside ``detection_range``
but only dropped beyond the strictly larger ``lose_target_range``.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from combat_ai.ai.agent import CombatAgent, EventSink
from combat_ai.core.enums import AgentKind, Domain, EnemyState, EnemyType
from combat_ai.core.models import TargetPose, Vector3

if TYPE_CHECKING:
    from combat_ai.config import CombatConfig
    from combat_ai.core.stats import EnemyStats
    from combat_ai.engine.host import CombatHost
    from combat_ai.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)

ATTACK_POINT = Vector3(0.0, 1.5, 0.0)
ALERT_CLIPS = ("enemy_alert_1", "enemy_alert_2")
ATTACK_CLIPS = ("enemy_attack_1", "enemy_attack_2")
HURT_CLIPS = ("enemy_hurt_1", "enemy_hurt_2")

ENGAGED_STATES = frozenset({EnemyState.TRACKING, EnemyState.ATTACKING, EnemyState.RETREATING})


# =====================================================================
# Handler context
# =====================================================================

@dataclass(slots=True)
class EnemyContext:
    enemy: EnemyAgent
    target: TargetPose | None
    dt: float
    now: float

    @property
    def distance(self) -> float:
        if self.target is None:
            return math.inf
        return self.enemy.position.distance(self.target.position)


class EnemyStateHandler(ABC):
    @abstractmethod
    def handle(self, ctx: EnemyContext) -> None: ...


class IdleHandler(EnemyStateHandler):
    def handle(self, ctx: EnemyContext) -> None:
        status = ctx.enemy.nav.status()
        if status.has_path:
            ctx.enemy.nav.reset_path()


class PatrolHandler(EnemyStateHandler):
    def handle(self, ctx: EnemyContext) -> None:
        enemy = ctx.enemy
        if not enemy.waypoints:
            return
        enemy.nav.set_destination(enemy.waypoints[enemy.patrol_index], enemy.stats.move_speed)

        status = enemy.nav.status()
        if status.pending or status.remaining_distance >= enemy.arrival_distance:
            enemy.patrol_arrived_at = None
            return
        if enemy.patrol_arrived_at is None:
            enemy.patrol_arrived_at = ctx.now
        if ctx.now - enemy.patrol_arrived_at >= enemy.stats.patrol_wait_time:
            enemy.next_waypoint(ctx.now)


class TrackingHandler(EnemyStateHandler):
    def handle(self, ctx: EnemyContext) -> None:
        enemy = ctx.enemy
        target = ctx.target
        if target is None:
            return
        stats = enemy.stats
        dist = ctx.distance

        match stats.enemy_type:
            case EnemyType.SOLDIER:
                enemy.nav.set_destination(target.position, stats.run_speed)
                if dist <= stats.attack_range:
                    enemy.change_state(EnemyState.ATTACKING)
            case EnemyType.ARCHER:
                if dist > stats.preferred_distance:
                    enemy.nav.set_destination(target.position, stats.move_speed)
                elif dist < stats.preferred_distance * enemy.min_band:
                    enemy.change_state(EnemyState.RETREATING)
                else:
                    enemy.change_state(EnemyState.ATTACKING)
            case EnemyType.GUARD:
                enemy.turn_towards(target.position, stats.rotation_speed, ctx.dt)
                if dist <= stats.attack_range:
                    enemy.change_state(EnemyState.ATTACKING)


class AttackingHandler(EnemyStateHandler):
    def handle(self, ctx: EnemyContext) -> None:
        enemy = ctx.enemy
        target = ctx.target
        if target is None:
            return
        stats = enemy.stats
        dist = ctx.distance

        enemy.nav.reset_path()
        enemy.turn_towards(target.position, stats.rotation_speed, ctx.dt)

        if stats.enemy_type == EnemyType.ARCHER:
            if dist > stats.preferred_distance or dist < stats.preferred_distance * enemy.min_band:
                enemy.change_state(EnemyState.TRACKING)
                return
        elif dist > stats.attack_range:
            enemy.change_state(EnemyState.TRACKING)
            return

        if ctx.now - enemy.last_attack >= stats.attack_cooldown:
            enemy.attack(target, dist)
            enemy.last_attack = ctx.now


class RetreatingHandler(EnemyStateHandler):
    def handle(self, ctx: EnemyContext) -> None:
        enemy = ctx.enemy
        target = ctx.target
        if target is None:
            return
        away = (enemy.position - target.position).flattened().normalized()
        enemy.nav.set_destination(enemy.position + away * enemy.retreat_distance, enemy.stats.run_speed)
        if ctx.distance >= enemy.stats.preferred_distance:
            enemy.change_state(EnemyState.TRACKING)


ENEMY_STATE_HANDLERS: dict[EnemyState, EnemyStateHandler] = {
    EnemyState.IDLE: IdleHandler(),
    EnemyState.PATROL: PatrolHandler(),
    EnemyState.TRACKING: TrackingHandler(),
    EnemyState.ATTACKING: AttackingHandler(),
    EnemyState.RETREATING: RetreatingHandler(),
}


# =====================================================================
# Enemy agent
# =====================================================================

class EnemyAgent(CombatAgent):
    kind = AgentKind.ENEMY

    def __init__(
        self,
        agent_id: int,
        stats: EnemyStats,
        host: CombatHost,
        rng: DeterministicRNG,
        position: Vector3,
        config: CombatConfig,
        *,
        waypoints: tuple[Vector3, ...] = (),
        name: str = "",
        template: str = "",
        events: EventSink | None = None,
    ) -> None:
        super().__init__(agent_id, stats, host, rng, name=name, template=template, events=events)
        self.stats: EnemyStats = stats
        self.nav = host.navigator(agent_id, position)
        self.waypoints = waypoints
        self.patrol_index = 0
        self.patrol_arrived_at: float | None = None
        self._patrol_draws = 0
        self.last_attack = -math.inf
        self.arrival_distance = config.arrival_distance
        self.retreat_distance = config.archer_retreat_distance
        self.min_band = config.archer_min_band
        self._state = EnemyState.PATROL if waypoints else EnemyState.IDLE
        self._target: TargetPose | None = None

    @property
    def position(self) -> Vector3:
        return self.nav.position

    def current_state(self) -> EnemyState:
        return self._state

    def change_state(self, new_state: EnemyState) -> None:
        if new_state == self._state:
            return
        old = self._state
        self._state = new_state
        logger.debug("%s state: %s → %s", self.name, old.name, new_state.name)
        self._emit("state", f"{self.name}: {old.name} → {new_state.name}",
                   {"from": old.name, "to": new_state.name})

    def _idle_state(self) -> EnemyState:
        return EnemyState.PATROL if self.waypoints else EnemyState.IDLE

    # -- per-tick --

    def advance(self, dt: float, now: float) -> None:
        if self._state == EnemyState.DEAD:
            return
        self._target = self.acquire_target()
        ENEMY_STATE_HANDLERS[self._state].handle(EnemyContext(self, self._target, dt, now))
        self.check_acquisition()
        self._host.set_animation_param(self.id, "speed", self.nav.velocity.length())

    def check_acquisition(self) -> None:
        """Hysteresis band: acquire inside detection_range, drop beyond lose_target_range."""
        target = self._target
        if target is None or self._state == EnemyState.DEAD:
            return
        dist = self.position.distance(target.position)
        if dist <= self.stats.detection_range and self._state not in ENGAGED_STATES:
            self.play_random(ALERT_CLIPS)
            self.change_state(EnemyState.TRACKING)
        elif dist > self.stats.lose_target_range and self._state in ENGAGED_STATES:
            self.change_state(self._idle_state())

    def next_waypoint(self, now: float) -> None:
        if self.stats.patrol_in_order:
            self.patrol_index = (self.patrol_index + 1) % len(self.waypoints)
        else:
            self._patrol_draws += 1
            self.patrol_index = self._rng.next_int(
                Domain.PATROL, self.id, self._patrol_draws, 0, len(self.waypoints) - 1)
        self.patrol_arrived_at = None

    # -- attacks --

    def attack(self, target: TargetPose, distance: float) -> None:
        stats = self.stats
        if stats.enemy_type == EnemyType.SOLDIER:
            if distance <= stats.attack_range:
                self._host.apply_melee_damage(self.id, stats.attack_damage)
        else:
            origin = self.position + ATTACK_POINT
            self._host.spawn_projectile(origin, target.position - origin, stats.projectile_speed,
                                        stats.attack_damage, self.id)
        self._host.set_animation_param(self.id, "attack", True)
        self.play_random(ATTACK_CLIPS)

    # -- damage --

    def _on_damaged(self, actual: float) -> None:
        self.play_random(HURT_CLIPS)
        if self._state not in (EnemyState.TRACKING, EnemyState.ATTACKING):
            self.change_state(EnemyState.TRACKING)

    def _enter_terminal_state(self) -> None:
        self.change_state(EnemyState.DEAD)
        self.nav.disable()
        self._host.set_animation_param(self.id, "dead", True)
        self._host.play_audio(self.id, "enemy_death")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["enemy_type"] = self.stats.enemy_type.name.lower()
        return data
