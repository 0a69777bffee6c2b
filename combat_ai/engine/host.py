"""Host interface consumed by the combat core, plus an in-memory sandbox host.

The real game supplies physics, navigation meshes, audio and rendering; the
core only ever talks to them through ``CombatHost`` and ``Navigator``.
``SandboxHost`` is a kinematic stand-in used by the CLI, the API server and
the tests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable

from combat_ai.core.errors import TargetUnavailable
from combat_ai.core.models import ZERO, TargetPose, Vector3

logger = logging.getLogger(__name__)


# =====================================================================
# Navigation
# =====================================================================

@dataclass(frozen=True, slots=True)
class NavigationStatus:
    pending: bool
    remaining_distance: float
    has_path: bool


class Navigator(ABC):
    """Per-agent navigation service."""

    @property
    @abstractmethod
    def position(self) -> Vector3: ...

    @property
    @abstractmethod
    def velocity(self) -> Vector3: ...

    @abstractmethod
    def set_destination(self, destination: Vector3, speed: float) -> None: ...

    @abstractmethod
    def reset_path(self) -> None: ...

    @abstractmethod
    def status(self) -> NavigationStatus: ...

    @abstractmethod
    def disable(self) -> None: ...


class KinematicNavigator(Navigator):
    """Straight-line mover: no obstacles, paths resolve instantly."""

    __slots__ = ("_position", "_velocity", "_destination", "_speed", "_enabled")

    def __init__(self, position: Vector3) -> None:
        self._position = position
        self._velocity = ZERO
        self._destination: Vector3 | None = None
        self._speed = 0.0
        self._enabled = True

    @property
    def position(self) -> Vector3:
        return self._position

    @property
    def velocity(self) -> Vector3:
        return self._velocity

    @property
    def destination(self) -> Vector3 | None:
        return self._destination

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_destination(self, destination: Vector3, speed: float) -> None:
        if not self._enabled:
            return
        self._destination = destination
        self._speed = max(0.0, speed)

    def reset_path(self) -> None:
        self._destination = None
        self._velocity = ZERO

    def status(self) -> NavigationStatus:
        if self._destination is None:
            return NavigationStatus(pending=False, remaining_distance=0.0, has_path=False)
        return NavigationStatus(
            pending=False,
            remaining_distance=self._position.distance(self._destination),
            has_path=True,
        )

    def disable(self) -> None:
        self.reset_path()
        self._enabled = False

    def warp(self, position: Vector3) -> None:
        self._position = position

    def step(self, dt: float) -> None:
        if not self._enabled or self._destination is None:
            self._velocity = ZERO
            return
        offset = self._destination - self._position
        dist = offset.length()
        travel = self._speed * dt
        if dist <= travel or dist < 1e-6:
            self._position = self._destination
            self._velocity = offset * (1.0 / dt) if dt > 0 else ZERO
            self._destination = None
            return
        direction = offset * (1.0 / dist)
        self._velocity = direction * self._speed
        self._position = self._position + direction * travel


# =====================================================================
# Host interface
# =====================================================================

class CombatHost(ABC):
    """World services consumed by the combat core."""

    @abstractmethod
    def target_pose(self) -> TargetPose | None:
        """Current player pose, or None when no player is registered."""

    @abstractmethod
    def navigator(self, agent_id: int, position: Vector3) -> Navigator:
        """Create (or fetch) the navigation service for *agent_id*."""

    @abstractmethod
    def release_navigator(self, agent_id: int) -> None: ...

    @abstractmethod
    def spawn_projectile(self, origin: Vector3, direction: Vector3, speed: float,
                         damage: float, owner_id: int) -> None: ...

    @abstractmethod
    def apply_melee_damage(self, owner_id: int, damage: float) -> None: ...

    @abstractmethod
    def spawn_effect(self, kind: str, position: Vector3) -> None: ...

    @abstractmethod
    def play_audio(self, owner_id: int, clip: str) -> None: ...

    @abstractmethod
    def set_animation_param(self, owner_id: int, name: str, value: float | bool) -> None: ...

    def require_target(self) -> TargetPose:
        pose = self.target_pose()
        if pose is None:
            raise TargetUnavailable("no player registered")
        return pose

    def step(self, dt: float) -> None:
        """Advance host-side simulation by *dt*. Real hosts do this themselves."""


# =====================================================================
# Sandbox host
# =====================================================================

@dataclass(frozen=True, slots=True)
class ProjectileRecord:
    origin: Vector3
    direction: Vector3
    speed: float
    damage: float
    owner_id: int


@dataclass(slots=True)
class PlayerFlight:
    """Scripted player motion: constant velocity with optional weaving."""

    position: Vector3
    velocity: Vector3 = ZERO
    weave_period: float = 0.0       # Seconds per lateral direction flip; 0 = straight
    attacking: bool = False
    _elapsed: float = field(default=0.0, repr=False)

    def step(self, dt: float) -> None:
        self._elapsed += dt
        if self.weave_period > 0 and int(self._elapsed / self.weave_period) != int(
                (self._elapsed - dt) / self.weave_period):
            self.velocity = Vector3(-self.velocity.x, self.velocity.y, self.velocity.z)
        self.position = self.position + self.velocity * dt


class SandboxHost(CombatHost):
    """In-memory host: kinematic movement and recorded side effects."""

    def __init__(self) -> None:
        self._player: PlayerFlight | None = None
        self._navigators: dict[int, KinematicNavigator] = {}
        self.projectiles: list[ProjectileRecord] = []
        self.melee_hits: list[tuple[int, float]] = []
        self.effects: list[tuple[str, Vector3]] = []
        self.audio: list[tuple[int, str]] = []
        self.animation: dict[int, dict[str, float | bool]] = {}
        self.player_damage_listeners: list[Callable[[float], None]] = []

    # -- player registration --

    def register_player(self, position: Vector3, velocity: Vector3 = ZERO,
                        weave_period: float = 0.0) -> PlayerFlight:
        self._player = PlayerFlight(position=position, velocity=velocity, weave_period=weave_period)
        logger.info("Player registered at %s", position)
        return self._player

    def unregister_player(self) -> None:
        self._player = None

    @property
    def player(self) -> PlayerFlight | None:
        return self._player

    def set_player_pose(self, position: Vector3, velocity: Vector3 = ZERO, attacking: bool = False) -> None:
        if self._player is None:
            self.register_player(position, velocity)
        assert self._player is not None
        self._player.position = position
        self._player.velocity = velocity
        self._player.attacking = attacking

    # -- CombatHost --

    def target_pose(self) -> TargetPose | None:
        if self._player is None:
            return None
        return TargetPose(self._player.position, self._player.velocity, self._player.attacking)

    def navigator(self, agent_id: int, position: Vector3) -> KinematicNavigator:
        nav = self._navigators.get(agent_id)
        if nav is None:
            nav = KinematicNavigator(position)
            self._navigators[agent_id] = nav
        return nav

    def release_navigator(self, agent_id: int) -> None:
        self._navigators.pop(agent_id, None)

    def spawn_projectile(self, origin: Vector3, direction: Vector3, speed: float,
                         damage: float, owner_id: int) -> None:
        self.projectiles.append(ProjectileRecord(origin, direction.normalized(), speed, damage, owner_id))

    def apply_melee_damage(self, owner_id: int, damage: float) -> None:
        self.melee_hits.append((owner_id, damage))
        for listener in self.player_damage_listeners:
            listener(damage)

    def spawn_effect(self, kind: str, position: Vector3) -> None:
        self.effects.append((kind, position))

    def play_audio(self, owner_id: int, clip: str) -> None:
        self.audio.append((owner_id, clip))

    def set_animation_param(self, owner_id: int, name: str, value: float | bool) -> None:
        self.animation.setdefault(owner_id, {})[name] = value

    def step(self, dt: float) -> None:
        if self._player is not None:
            self._player.step(dt)
        for nav in self._navigators.values():
            nav.step(dt)

    def projectiles_from(self, owner_id: int) -> list[ProjectileRecord]:
        return [p for p in self.projectiles if p.owner_id == owner_id]
