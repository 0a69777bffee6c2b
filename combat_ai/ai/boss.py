"""Boss agent — state machine with a cached tactical decision layer.

State machine:
  SPAWNING → HUNTING (one-shot entrance)
  HUNTING → ENGAGING (target within detection range)
  ENGAGING → RETREATING (decision) | CHANNELING (special ability decision)
  RETREATING → HUNTING (no path or < retreat_arrival_distance remaining)
  CHANNELING → ENGAGING (after channel_duration; fires the special volley)
  STUNNED ⇄ any live state (external status-effect collaborator)
  * → DEFEATED (health ≤ 0; terminal)

Handlers are classes registered in BOSS_STATE_HANDLERS, mirroring the
enemy handlers in ``combat_ai.ai.enemy``.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from combat_ai.ai.agent import CombatAgent, EventSink
from combat_ai.ai.decision import BossDecisionLayer, SituationContext, TacticSynthesizer
from combat_ai.ai.prediction import PredictionEngine
from combat_ai.core.enums import AgentKind, BossState, Tactic
from combat_ai.core.models import TargetPose, Vector3
from combat_ai.engine.timers import ScheduledCallback, TimerQueue

if TYPE_CHECKING:
    from combat_ai.ai.decision_cache import DecisionCache
    from combat_ai.ai.profile import PlayerProfile
    from combat_ai.config import CombatConfig
    from combat_ai.core.stats import BossStats
    from combat_ai.engine.decision_pool import DecisionWorker
    from combat_ai.engine.host import CombatHost
    from combat_ai.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)

DEFAULT_ATTACK_POINTS: tuple[Vector3, ...] = (
    Vector3(0.0, 4.0, 3.0),
    Vector3(-3.0, 4.0, 1.0),
    Vector3(3.0, 4.0, 1.0),
)

ATTACK_CLIPS = ("boss_roar_1", "boss_roar_2", "boss_roar_3")
SPECIAL_CLIPS = ("boss_special_1", "boss_special_2")


# =====================================================================
# Handler context
# =====================================================================

@dataclass(slots=True)
class BossContext:
    boss: BossAgent
    target: TargetPose | None
    dt: float
    now: float

    @property
    def distance(self) -> float:
        if self.target is None:
            return math.inf
        return self.boss.position.distance(self.target.position)


class BossStateHandler(ABC):
    @abstractmethod
    def handle(self, ctx: BossContext) -> None: ...


class SpawningHandler(BossStateHandler):
    def handle(self, ctx: BossContext) -> None:
        ctx.boss.change_state(BossState.HUNTING)


class HuntingHandler(BossStateHandler):
    def handle(self, ctx: BossContext) -> None:
        boss = ctx.boss
        if ctx.target is None:
            return
        if ctx.distance <= boss.stats.detection_range:
            boss.change_state(BossState.ENGAGING)
        else:
            boss.navigate(boss.profile.last_known_position, boss.stats.move_speed)


class EngagingHandler(BossStateHandler):
    def handle(self, ctx: BossContext) -> None:
        boss = ctx.boss
        if ctx.target is None:
            return
        boss.turn_towards(ctx.target.position, boss.stats.rotation_speed, ctx.dt)
        if ctx.distance <= boss.stats.attack_range and boss.primary_ready(ctx.now):
            boss.primary_attack(ctx.now)


class RetreatingHandler(BossStateHandler):
    def handle(self, ctx: BossContext) -> None:
        boss = ctx.boss
        status = boss.nav.status()
        if not status.has_path or status.remaining_distance < boss.retreat_arrival_distance:
            boss.change_state(BossState.HUNTING)


class ChannelingHandler(BossStateHandler):
    def handle(self, ctx: BossContext) -> None:
        boss = ctx.boss
        boss.nav.reset_path()
        if not boss.channeling:
            boss.change_state(BossState.ENGAGING)


class StunnedHandler(BossStateHandler):
    def handle(self, ctx: BossContext) -> None:
        return None


BOSS_STATE_HANDLERS: dict[BossState, BossStateHandler] = {
    BossState.SPAWNING: SpawningHandler(),
    BossState.HUNTING: HuntingHandler(),
    BossState.ENGAGING: EngagingHandler(),
    BossState.RETREATING: RetreatingHandler(),
    BossState.CHANNELING: ChannelingHandler(),
    BossState.STUNNED: StunnedHandler(),
}


# =====================================================================
# Boss agent
# =====================================================================

class BossAgent(CombatAgent):
    kind = AgentKind.BOSS

    def __init__(
        self,
        agent_id: int,
        stats: BossStats,
        host: CombatHost,
        rng: DeterministicRNG,
        position: Vector3,
        profile: PlayerProfile,
        worker: DecisionWorker,
        config: CombatConfig,
        *,
        cache: DecisionCache | None = None,
        synthesizer: TacticSynthesizer | None = None,
        attack_points: tuple[Vector3, ...] = DEFAULT_ATTACK_POINTS,
        retreat_positions: tuple[Vector3, ...] = (),
        attack_positions: tuple[Vector3, ...] = (),
        spawned_at: float = 0.0,
        name: str = "",
        template: str = "",
        events: EventSink | None = None,
    ) -> None:
        super().__init__(agent_id, stats, host, rng, name=name, template=template, events=events)
        self.stats: BossStats = stats
        self.profile = profile
        self.nav = host.navigator(agent_id, position)
        self.attack_points = attack_points
        self.retreat_positions = retreat_positions
        self.attack_positions = attack_positions
        self.timers = TimerQueue()
        self.decision = BossDecisionLayer(cache, profile, worker, synthesizer, start_time=spawned_at,
                                          timeout=config.worker_timeout_seconds)

        self.channel_duration = config.channel_duration
        self.area_stagger = config.area_attack_stagger
        self.retreat_arrival_distance = config.retreat_arrival_distance
        self.emergency_fraction = config.emergency_health_fraction
        self.reposition_factor = config.reposition_range_factor

        self._state = BossState.SPAWNING
        self._pre_stun_state = BossState.HUNTING
        self.strategy = ""
        self.channeling = False
        self._channel_timer: ScheduledCallback | None = None
        self.last_primary = -math.inf
        self.last_special = -math.inf
        self._target: TargetPose | None = None

    # -- status --

    @property
    def position(self) -> Vector3:
        return self.nav.position

    def current_state(self) -> BossState:
        return self._state

    def change_state(self, new_state: BossState) -> None:
        if new_state == self._state:
            return
        old = self._state
        self._state = new_state
        logger.info("%s state: %s → %s", self.name, old.name, new_state.name)
        self._emit("state", f"{self.name}: {old.name} → {new_state.name}",
                   {"from": old.name, "to": new_state.name})

    def primary_ready(self, now: float) -> bool:
        return now - self.last_primary >= self.stats.primary_attack_cooldown

    def special_ready(self, now: float) -> bool:
        return now - self.last_special >= self.stats.special_attack_cooldown

    # -- external status effects --

    def stun(self) -> None:
        if not self.alive or self._state == BossState.STUNNED:
            return
        self._pre_stun_state = self._state
        if self._channel_timer is not None:
            self._channel_timer.cancelled = True
            self._channel_timer = None
            self.channeling = False
        self.nav.reset_path()
        self.change_state(BossState.STUNNED)

    def release_stun(self) -> None:
        if self._state != BossState.STUNNED:
            return
        resume = self._pre_stun_state
        if resume in (BossState.CHANNELING, BossState.SPAWNING):
            resume = BossState.ENGAGING if self._target is not None else BossState.HUNTING
        self.change_state(resume)

    # -- per-tick --

    def advance(self, dt: float, now: float) -> None:
        if self._state == BossState.DEFEATED:
            return

        # Re-acquire every tick; a missing player is recoverable
        self._target = self.acquire_target()
        if self._target is not None:
            self.profile.update(self._target, now)

        if self.health < self.stats.max_health and self._state != BossState.RETREATING:
            self.heal(self.stats.regeneration_rate * dt)

        if self._target is not None:
            self.decision.tick(self, now)
        self.timers.run_due(now)
        if self._state == BossState.DEFEATED:
            return

        BOSS_STATE_HANDLERS[self._state].handle(BossContext(self, self._target, dt, now))
        self._host.set_animation_param(self.id, "speed", self.nav.velocity.length())

    # -- decision support --

    def build_context(self, now: float) -> SituationContext:
        target = self._target
        distance = self.position.distance(target.position) if target is not None else 999.0
        return SituationContext(
            agent_id=self.id,
            health_fraction=self.current_health_fraction(),
            distance=distance,
            target_altitude=target.position.y if target is not None else 0.0,
            state=self._state,
            attack_range=self.stats.attack_range,
            can_use_special=self.special_ready(now),
            boss_type=self.stats.boss_type,
            strategy=self.strategy,
            target_speed=self.profile.average_speed,
            average_altitude=self.profile.average_altitude,
            aggression=self.profile.aggression_score,
            evasion=self.profile.evasion_score,
            since_primary=now - self.last_primary,
            since_special=now - self.last_special,
            retreat_available=bool(self.retreat_positions),
            attack_positions_available=bool(self.attack_positions),
        )

    def apply_tactic(self, tactic: Tactic, now: float) -> None:
        match tactic:
            case Tactic.AGGRESSIVE_ATTACK:
                self._aggressive_attack()
            case Tactic.DEFENSIVE_RETREAT:
                self._defensive_retreat()
            case Tactic.SPECIAL_ABILITY:
                self._special_ability(now)
            case Tactic.TACTICAL_REPOSITION:
                self._tactical_reposition()
            case Tactic.AREA_DENIAL:
                self._area_denial(now)

    def emit_decision(self, tactic: Tactic, cached: bool) -> None:
        source = "cache" if cached else "synthesis"
        logger.info("%s decision: %s (%s)", self.name, tactic.value, source)
        self._emit("decision", f"{self.name} chose {tactic.value}",
                   {"tactic": tactic.value, "cached": cached})

    def fallback_behavior(self, now: float) -> None:
        """Approach if out of range, otherwise attack."""
        target = self._target
        if target is None:
            return
        if self.position.distance(target.position) > self.stats.attack_range:
            self.navigate(target.position, self.stats.move_speed)
        else:
            self.primary_attack(now)

    # -- tactics --

    def _aggressive_attack(self) -> None:
        self.strategy = "aggressive"
        self.change_state(BossState.ENGAGING)
        if self._target is not None:
            self.navigate(self._target.position, self.stats.combat_speed)

    def _defensive_retreat(self) -> None:
        self.strategy = "defensive"
        self.change_state(BossState.RETREATING)
        if self.retreat_positions:
            here = self.position
            destination = min(self.retreat_positions, key=lambda p: here.distance(p))
        elif self._target is not None:
            away = (self.position - self._target.position).flattened().normalized()
            destination = self.position + away * self.stats.attack_range
        else:
            return
        self.navigate(destination, self.stats.retreat_speed)

    def _special_ability(self, now: float) -> None:
        if not self.special_ready(now):
            return
        self.channeling = True
        self.change_state(BossState.CHANNELING)
        self.nav.reset_path()
        self._channel_timer = self.timers.schedule(
            now + self.channel_duration, lambda: self._finish_special(now + self.channel_duration),
            label="finish_special",
        )

    def _finish_special(self, when: float) -> None:
        self._channel_timer = None
        for point in self.attack_points:
            self._fire_projectile(point, self.stats.special_attack_damage)
        self.last_special = when
        self.channeling = False
        self._host.set_animation_param(self.id, "special", True)
        self._host.spawn_effect("special_burst", self.position)
        self.play_random(SPECIAL_CLIPS)

    def _tactical_reposition(self) -> None:
        self.strategy = "tactical"
        target = self._target
        if self.attack_positions:
            destination = self.best_attack_position()
        elif target is not None:
            optimal = self.stats.attack_range * self.reposition_factor
            toward = (self.position - target.position).normalized()
            destination = target.position + toward * optimal
        else:
            return
        self.navigate(destination, self.stats.move_speed)

    def _area_denial(self, now: float) -> None:
        for i, point in enumerate(self.attack_points):
            self.timers.schedule(
                now + i * self.area_stagger,
                lambda p=point: self._fire_projectile(p, self.stats.primary_attack_damage),
                label=f"area_attack_{i}",
            )

    def position_score(self, candidate: Vector3) -> float:
        """Closeness to 0.8 × attack range from the target, plus 0.2 for high ground."""
        target = self._target
        if target is None:
            return 0.0
        optimal = self.stats.attack_range * self.reposition_factor
        score = 1.0 - abs(candidate.distance(target.position) - optimal) / optimal
        if candidate.y > target.position.y:
            score += 0.2
        return score

    def best_attack_position(self) -> Vector3:
        best = self.attack_positions[0]
        best_score = self.position_score(best)
        for candidate in self.attack_positions[1:]:
            score = self.position_score(candidate)
            if score > best_score:
                best, best_score = candidate, score
        return best

    # -- attacks --

    def primary_attack(self, now: float) -> None:
        if self.attack_points:
            self._fire_projectile(self.attack_points[0], self.stats.primary_attack_damage)
        self.last_primary = now
        self._host.set_animation_param(self.id, "attack", True)
        self.play_random(ATTACK_CLIPS)

    def _fire_projectile(self, offset: Vector3, damage: float) -> None:
        target = self.acquire_target()
        if target is None or not self.alive:
            return
        origin = self.position + offset
        aim = PredictionEngine.linear_lead(origin, target, self.stats.projectile_speed)
        self._host.spawn_projectile(origin, aim - origin, self.stats.projectile_speed, damage, self.id)

    def navigate(self, destination: Vector3, speed: float) -> None:
        self.nav.set_destination(destination, speed)

    # -- damage --

    def _on_damaged(self, actual: float) -> None:
        self._host.set_animation_param(self.id, "hit", True)
        if (self.health < self.stats.max_health * self.emergency_fraction
                and self._state != BossState.RETREATING):
            self.decision.force_next_check()

    def _enter_terminal_state(self) -> None:
        self.change_state(BossState.DEFEATED)
        self.decision.cancel()
        self.timers.cancel_all()
        self.channeling = False
        self.nav.disable()
        self._host.set_animation_param(self.id, "dead", True)
        self._host.play_audio(self.id, "boss_defeat")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "strategy": self.strategy,
            "last_tactic": self.decision.last_tactic.value if self.decision.last_tactic else None,
            "decision_pending": self.decision.pending,
            "decision_interval": self.stats.ai_decision_interval,
        })
        return data
