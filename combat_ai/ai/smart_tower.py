"""Smart tower — learns the player's movement, predicts, and coordinates with peers.

Archetypes (TowerAIType):
  ADAPTIVE     fire rate follows evasiveness, horizon follows speed, accuracy creeps up
  COORDINATOR  staggers its shots by its index in the coordination group and
               holds fire while a peer is engaged
  PREDICTOR    pushes prediction accuracy and horizon toward their caps
  AMBUSHER     slower, harder shots; only fires while the target is not juking

Peers are found through an explicit TowerRegistry owned by the session.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from combat_ai.ai.prediction import PredictionEngine
from combat_ai.ai.tower import TowerBase
from combat_ai.core.enums import Domain, TowerAIType
from combat_ai.core.models import ZERO, TargetPose, Vector3

if TYPE_CHECKING:
    from combat_ai.config import CombatConfig
    from combat_ai.core.stats import SmartTowerStats
    from combat_ai.engine.host import CombatHost
    from combat_ai.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)

EVASION_THRESHOLD = 0.5
ADAPTATION_CLIPS = ("tower_learn_1", "tower_learn_2")


@dataclass(frozen=True, slots=True)
class MovementSample:
    position: Vector3
    velocity: Vector3
    altitude: float
    timestamp: float
    evasive: bool
    attacking: bool


@dataclass(frozen=True, slots=True)
class TowerCoordinationRecord:
    """Snapshot of a peer tower taken during a coordination pass."""

    peer_id: int
    position: Vector3
    engaged: bool
    predicted_target: Vector3
    ai_type: TowerAIType
    snapshot_time: float


class TowerRegistry:
    """Explicit registry of live smart towers, iterated in id order."""

    __slots__ = ("_towers",)

    def __init__(self) -> None:
        self._towers: dict[int, SmartTower] = {}

    def add(self, tower: SmartTower) -> None:
        self._towers[tower.id] = tower

    def remove(self, tower_id: int) -> None:
        self._towers.pop(tower_id, None)

    def get(self, tower_id: int) -> SmartTower | None:
        return self._towers.get(tower_id)

    def __contains__(self, tower_id: int) -> bool:
        return tower_id in self._towers

    def __len__(self) -> int:
        return len(self._towers)

    def __iter__(self) -> Iterator[SmartTower]:
        for tid in sorted(self._towers):
            tower = self._towers.get(tid)
            if tower is not None:
                yield tower

    def snapshot_peers(self, tower: SmartTower, radius: float, now: float) -> list[TowerCoordinationRecord]:
        """Records for live peers within *radius*; towers removed mid-scan are skipped."""
        records: list[TowerCoordinationRecord] = []
        for tid in sorted(self._towers):
            if tid == tower.id:
                continue
            peer = self._towers.get(tid)
            if peer is None or not peer.alive:
                continue
            if tower.position.distance(peer.position) > radius:
                continue
            records.append(TowerCoordinationRecord(
                peer_id=peer.id,
                position=peer.position,
                engaged=peer.engaged,
                predicted_target=peer.predicted_target,
                ai_type=peer.stats.ai_type,
                snapshot_time=now,
            ))
        return records


class SmartTower(TowerBase):
    def __init__(
        self,
        agent_id: int,
        stats: SmartTowerStats,
        host: CombatHost,
        rng: DeterministicRNG,
        position: Vector3,
        config: CombatConfig,
        registry: TowerRegistry,
        *,
        spawned_at: float = 0.0,
        **kwargs,
    ) -> None:
        super().__init__(agent_id, stats, host, rng, position, **kwargs)
        self.stats: SmartTowerStats = stats
        self.base_stats = stats.copy()
        self.registry = registry
        self.history: deque[MovementSample] = deque(maxlen=max(1, stats.history_size))
        self.predicted_target: Vector3 = ZERO
        self.peers: list[TowerCoordinationRecord] = []
        self.stagger_delay = 0.0
        self.last_adaptation = spawned_at
        self.last_coordination = -math.inf
        self.adaptations = 0

        # Learned player model
        self.average_speed = 0.0
        self.preferred_altitude = 0.0
        self.evasion_pattern = 0.0
        self.common_direction: Vector3 = ZERO

        self._jitter_draws = 0
        self._align_threshold = config.smart_align_threshold
        self._ambusher_threshold = config.ambusher_align_threshold
        self._coordination_stagger = config.coordination_stagger
        registry.add(self)

    # -- per-tick --

    def advance(self, dt: float, now: float) -> None:
        if not self.alive:
            return
        target = self.acquire_target()
        if target is None:
            self._set_engaged(False)
            return

        self.record_sample(target, now)
        self.update_prediction(target)

        if now - self.last_adaptation >= self.stats.adaptation_interval:
            self.adapt()
            self.last_adaptation = now
        if now - self.last_coordination >= self.stats.communication_interval:
            self.coordinate(now)
            self.last_coordination = now

        if self.position.distance(target.position) > self.stats.detection_range:
            self._set_engaged(False)
            return
        self._set_engaged(True)
        self.aim_point = self.choose_aim_point(target)
        self.turn_towards(self.aim_point, self.stats.max_turn_speed, dt)
        self.try_fire(now)

    # -- learning --

    def record_sample(self, target: TargetPose, now: float) -> MovementSample:
        sample = MovementSample(
            position=target.position,
            velocity=target.velocity,
            altitude=target.position.y,
            timestamp=now,
            evasive=self._is_evasive_with(target.velocity),
            attacking=target.attacking,
        )
        self.history.append(sample)
        return sample

    def _is_evasive_with(self, velocity: Vector3) -> bool:
        recent = [s.velocity for s in list(self.history)[-2:]] + [velocity]
        return direction_variance(recent) > EVASION_THRESHOLD

    def is_target_evasive(self) -> bool:
        """Direction change over the last three samples exceeds the threshold."""
        if len(self.history) < 3:
            return False
        return direction_variance([s.velocity for s in list(self.history)[-3:]]) > EVASION_THRESHOLD

    def analyze(self) -> None:
        samples = list(self.history)
        n = len(samples)
        if n == 0:
            return
        self.average_speed = sum(s.velocity.length() for s in samples) / n
        self.preferred_altitude = sum(s.altitude for s in samples) / n
        self.evasion_pattern = sum(1 for s in samples if s.evasive) / n
        heading = ZERO
        for s in samples:
            if s.velocity.length() > 1.0:
                heading = heading + s.velocity.normalized()
        self.common_direction = heading.normalized()

    def adapt(self) -> bool:
        """Re-derive the player model and retune live stats. Needs enough samples."""
        if len(self.history) < self.stats.min_adaptation_samples:
            return False
        self.analyze()
        stats = self.stats
        base = self.base_stats

        match stats.ai_type:
            case TowerAIType.ADAPTIVE:
                stats.fire_rate = base.fire_rate * (1.0 + self.evasion_pattern * 0.5)
                if stats.use_prediction:
                    stats.max_prediction_time = max(1.0, min(4.0, self.average_speed * 0.1))
                stats.prediction_accuracy = min(0.95, stats.prediction_accuracy + stats.learning_rate * 0.01)
            case TowerAIType.COORDINATOR:
                self.stagger_delay = self._coordination_stagger * self.group_index()
            case TowerAIType.PREDICTOR:
                stats.prediction_accuracy = min(0.98, stats.prediction_accuracy + stats.learning_rate * 0.02)
                stats.max_prediction_time = min(5.0, stats.max_prediction_time + 0.1)
            case TowerAIType.AMBUSHER:
                stats.fire_rate = base.fire_rate * 0.7
                stats.damage = base.damage * 1.3

        self.adaptations += 1
        self._host.spawn_effect("tower_learning", self.position)
        self.play_random(ADAPTATION_CLIPS)
        logger.info("%s adapted: evasion=%.2f avg_speed=%.1f", self.name, self.evasion_pattern, self.average_speed)
        self._emit("adaptation", f"{self.name} adapted ({stats.ai_type.name.lower()})",
                   {"evasion": round(self.evasion_pattern, 3), "average_speed": round(self.average_speed, 2)})
        return True

    # -- coordination --

    def coordinate(self, now: float) -> None:
        self.peers = self.registry.snapshot_peers(self, self.stats.coordination_range, now)

    def group_index(self) -> int:
        """Position of this tower in the id-ordered coordination group."""
        ids = sorted([self.id, *(p.peer_id for p in self.peers)])
        return ids.index(self.id)

    def peers_engaged(self) -> bool:
        return any(p.engaged for p in self.peers)

    # -- targeting --

    def update_prediction(self, target: TargetPose) -> Vector3:
        if not self.stats.use_prediction:
            self.predicted_target = target.position
            return self.predicted_target
        self._jitter_draws += 1
        sample = self._rng.inside_unit_sphere(Domain.AIM_JITTER, self.id, self._jitter_draws)
        self.predicted_target = PredictionEngine.predict(
            self.barrel,
            target,
            self.stats.projectile_speed,
            self.stats.max_prediction_time,
            evasion=self.evasion_pattern,
            accuracy=self.stats.prediction_accuracy,
            jitter_sample=sample,
        )
        return self.predicted_target

    def choose_aim_point(self, target: TargetPose) -> Vector3:
        stats = self.stats
        if stats.use_prediction and stats.ai_type == TowerAIType.PREDICTOR:
            return self.predicted_target
        if stats.use_intercept_course:
            return PredictionEngine.intercept_point(self.barrel, target, stats.projectile_speed)
        return target.position

    def required_alignment(self) -> float:
        if self.stats.ai_type == TowerAIType.AMBUSHER:
            return self._ambusher_threshold
        return self._align_threshold

    def should_fire_now(self) -> bool:
        match self.stats.ai_type:
            case TowerAIType.AMBUSHER:
                return not self.is_target_evasive()
            case TowerAIType.COORDINATOR:
                return not self.peers_engaged()
            case _:
                return True

    def try_fire(self, now: float) -> bool:
        stats = self.stats
        if stats.fire_rate <= 0:
            return False
        if now - self.last_fire < 1.0 / stats.fire_rate + self.stagger_delay:
            return False
        if self.alignment(self.predicted_target) <= self.required_alignment():
            return False
        if not self.should_fire_now():
            return False

        direction = self.predicted_target - self.barrel
        self._host.spawn_projectile(self.barrel, direction, stats.projectile_speed, stats.damage, self.id)
        self._host.spawn_effect("muzzle_flash", self.barrel)
        self.last_fire = now
        self.shots_fired += 1
        logger.debug("%s fired at predicted %s", self.name, self.predicted_target)
        return True

    # -- lifecycle --

    def _enter_terminal_state(self) -> None:
        super()._enter_terminal_state()
        self.registry.remove(self.id)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "ai_type": self.stats.ai_type.name.lower(),
            "prediction_accuracy": round(self.stats.prediction_accuracy, 4),
            "max_prediction_time": round(self.stats.max_prediction_time, 3),
            "fire_rate": round(self.stats.fire_rate, 3),
            "evasion_pattern": round(self.evasion_pattern, 3),
            "common_direction": self.common_direction.to_list(),
            "peers": [p.peer_id for p in self.peers],
            "predicted_target": self.predicted_target.to_list(),
        })
        return data


def direction_variance(velocities: list[Vector3]) -> float:
    """Sum of ``1 - cos`` between consecutive normalized velocities."""
    total = 0.0
    for prev, cur in zip(velocities, velocities[1:]):
        total += 1.0 - prev.normalized().dot(cur.normalized())
    return total
