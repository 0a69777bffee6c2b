"""CombatAgent — shared health/armor model for bosses, enemies and towers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

from combat_ai.core.enums import AgentKind, Domain
from combat_ai.core.errors import TargetUnavailable
from combat_ai.core.models import FORWARD, TargetPose, Vector3, rotate_towards

if TYPE_CHECKING:
    from combat_ai.engine.host import CombatHost
    from combat_ai.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)

# (category, message, entity_ids, metadata)
EventSink = Callable[[str, str, tuple[int, ...], "dict | None"], None]


def _discard_event(category: str, message: str, entity_ids: tuple[int, ...], metadata: dict | None) -> None:
    return None


class CombatAgent(ABC):
    """Base class for everything the player can damage.

    Health is clamped to ``[0, max_health]``; each hit deals
    ``max(1, raw - armor)``; the death handler fires exactly once.
    """

    kind: AgentKind

    def __init__(
        self,
        agent_id: int,
        stats: Any,
        host: CombatHost,
        rng: DeterministicRNG,
        *,
        name: str = "",
        template: str = "",
        events: EventSink | None = None,
    ) -> None:
        self.id = agent_id
        self.name = name or f"{self.kind.name.lower()}-{agent_id}"
        self.template = template
        self.stats = stats
        self.health: float = float(stats.max_health)
        self.forward: Vector3 = FORWARD
        self.modifier_serial = 0        # Last difficulty change applied to this agent
        self._host = host
        self._rng = rng
        self._events: EventSink = events or _discard_event
        self._death_fired = False
        self._death_callbacks: list[Callable[[CombatAgent], None]] = []
        self._audio_counter = 0

    # -- identity / status --

    @property
    @abstractmethod
    def position(self) -> Vector3: ...

    @property
    def alive(self) -> bool:
        return not self._death_fired

    @abstractmethod
    def current_state(self) -> Any:
        """The agent's discrete state enum value."""

    def current_health_fraction(self) -> float:
        if self.stats.max_health <= 0:
            return 0.0
        return self.health / self.stats.max_health

    # -- damage --

    def take_damage(self, amount: float) -> float:
        """Apply a hit and return the damage actually dealt (0 if already dead)."""
        if self._death_fired:
            return 0.0
        actual = max(1.0, amount - self.stats.armor)
        self.health = max(0.0, self.health - actual)
        logger.debug("%s took %.1f damage (%.1f/%.1f)", self.name, actual, self.health, self.stats.max_health)
        if self.health <= 0:
            self._die()
        else:
            self._on_damaged(actual)
        return actual

    def heal(self, amount: float) -> None:
        if self._death_fired or amount <= 0:
            return
        self.health = min(float(self.stats.max_health), self.health + amount)

    def set_max_health(self, value: float) -> None:
        """Change max health; current health keeps its value but never exceeds the new max."""
        self.stats.max_health = value
        self.health = min(self.health, value)

    def kill(self) -> None:
        """Force the terminal state regardless of remaining health."""
        self.health = 0.0
        self._die()

    def on_death(self, callback: Callable[[CombatAgent], None]) -> None:
        self._death_callbacks.append(callback)

    def _on_damaged(self, actual: float) -> None:
        """Hook for subclasses reacting to a non-lethal hit."""

    def _die(self) -> None:
        if self._death_fired:
            return
        self._death_fired = True
        self._enter_terminal_state()
        self._emit("death", f"{self.name} destroyed")
        logger.info("%s defeated", self.name)
        for callback in self._death_callbacks:
            callback(self)

    @abstractmethod
    def _enter_terminal_state(self) -> None: ...

    # -- per-tick --

    @abstractmethod
    def advance(self, dt: float, now: float) -> None: ...

    # -- helpers --

    def acquire_target(self) -> TargetPose | None:
        """Re-read the player pose; None until a player is registered."""
        try:
            return self._host.require_target()
        except TargetUnavailable:
            return None

    def turn_towards(self, point: Vector3, degrees_per_second: float, dt: float) -> Vector3:
        desired = point - self.position
        self.forward = rotate_towards(self.forward, desired, degrees_per_second * dt)
        return self.forward

    def play_random(self, clips: tuple[str, ...]) -> None:
        if not clips:
            return
        self._audio_counter += 1
        idx = self._rng.next_int(Domain.AUDIO, self.id, self._audio_counter, 0, len(clips) - 1)
        self._host.play_audio(self.id, clips[idx])

    def _emit(self, category: str, message: str, metadata: dict | None = None) -> None:
        self._events(category, message, (self.id,), metadata)

    def to_dict(self) -> dict:
        state = self.current_state()
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.name.lower(),
            "template": self.template,
            "state": state.name if hasattr(state, "name") else str(state),
            "health": round(self.health, 2),
            "max_health": round(self.stats.max_health, 2),
            "position": self.position.to_list(),
        }
