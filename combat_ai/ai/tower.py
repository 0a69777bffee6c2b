"""Plain tower — detect, lead, turn, fire."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from combat_ai.ai.agent import CombatAgent, EventSink
from combat_ai.ai.prediction import PredictionEngine
from combat_ai.core.enums import AgentKind, TowerState
from combat_ai.core.models import TargetPose, Vector3, rotate_towards

if TYPE_CHECKING:
    from combat_ai.config import CombatConfig
    from combat_ai.core.stats import TowerStats
    from combat_ai.engine.host import CombatHost
    from combat_ai.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)

BARREL_OFFSET = Vector3(0.0, 3.0, 0.0)


class TowerBase(CombatAgent):
    """Static emplacement: fixed position, rotating barrel, engaged flag."""

    kind = AgentKind.TOWER

    def __init__(
        self,
        agent_id: int,
        stats,
        host: CombatHost,
        rng: DeterministicRNG,
        position: Vector3,
        *,
        name: str = "",
        template: str = "",
        events: EventSink | None = None,
    ) -> None:
        super().__init__(agent_id, stats, host, rng, name=name, template=template, events=events)
        self._position = position
        self.engaged = False
        self.last_fire = -math.inf
        self.shots_fired = 0
        self.aim_point: Vector3 | None = None

    @property
    def position(self) -> Vector3:
        return self._position

    @property
    def barrel(self) -> Vector3:
        return self._position + BARREL_OFFSET

    def current_state(self) -> TowerState:
        if not self.alive:
            return TowerState.DESTROYED
        return TowerState.ENGAGED if self.engaged else TowerState.IDLE

    def turn_towards(self, point: Vector3, degrees_per_second: float, dt: float) -> Vector3:
        """Rotate the barrel toward *point*, measured from the barrel like the fire gate."""
        self.forward = rotate_towards(self.forward, point - self.barrel, degrees_per_second * dt)
        return self.forward

    def alignment(self, point: Vector3) -> float:
        """Cosine between the barrel's aim vector and the direction to *point*."""
        return self.forward.dot((point - self.barrel).normalized())

    def _set_engaged(self, engaged: bool) -> None:
        if engaged != self.engaged:
            self.engaged = engaged
            self._emit("tower", f"{self.name} {'engaged' if engaged else 'disengaged'}")

    def _enter_terminal_state(self) -> None:
        self.engaged = False
        self._host.spawn_effect("tower_destroyed", self._position)
        self._host.play_audio(self.id, "tower_collapse")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "engaged": self.engaged,
            "shots_fired": self.shots_fired,
            "forward": self.forward.to_list(),
        })
        return data


class Tower(TowerBase):
    """Fires when aimed within ``align_threshold`` and off cooldown."""

    def __init__(
        self,
        agent_id: int,
        stats: TowerStats,
        host: CombatHost,
        rng: DeterministicRNG,
        position: Vector3,
        config: CombatConfig,
        **kwargs,
    ) -> None:
        super().__init__(agent_id, stats, host, rng, position, **kwargs)
        self.stats: TowerStats = stats
        self.align_threshold = config.tower_align_threshold

    def advance(self, dt: float, now: float) -> None:
        if not self.alive:
            return
        target = self.acquire_target()
        if target is None or self.position.distance(target.position) > self.stats.detection_range:
            self._set_engaged(False)
            return

        self._set_engaged(True)
        self.aim_point = self.lead_point(target)
        self.turn_towards(self.aim_point, self.stats.max_turn_speed, dt)
        self.try_fire(now)

    def lead_point(self, target: TargetPose) -> Vector3:
        if not self.stats.lead_target:
            return target.position
        return PredictionEngine.linear_lead(self.barrel, target, self.stats.projectile_speed)

    def try_fire(self, now: float) -> bool:
        if self.stats.fire_rate <= 0 or now - self.last_fire < 1.0 / self.stats.fire_rate:
            return False
        if self.aim_point is None or self.alignment(self.aim_point) <= self.align_threshold:
            return False
        self._host.spawn_projectile(self.barrel, self.forward, self.stats.projectile_speed,
                                    self.stats.damage, self.id)
        self._host.spawn_effect("muzzle_flash", self.barrel)
        self._host.play_audio(self.id, "tower_fire")
        self.last_fire = now
        self.shots_fired += 1
        logger.debug("%s fired", self.name)
        return True
