"""Immutable snapshot of a combat session for API readers."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from combat_ai.engine.session import CombatSession


@dataclass(frozen=True, slots=True)
class CombatSnapshot:
    """Read-only view of the session, safe to share across threads.

    Agents are captured as plain dicts behind MappingProxyType so readers
    on the API thread never touch live agent objects.
    """

    tick: int
    time: float
    seed: int
    agents: tuple[Mapping, ...]
    player: Mapping | None
    difficulty: Mapping
    profile: Mapping
    cache: Mapping

    @classmethod
    def from_session(cls, session: CombatSession) -> CombatSnapshot:
        pose = session.host.target_pose()
        player = None
        if pose is not None:
            player = MappingProxyType({
                "position": pose.position.to_list(),
                "velocity": pose.velocity.to_list(),
                "attacking": pose.attacking,
            })
        return cls(
            tick=session.tick,
            time=session.now,
            seed=session.config.seed,
            agents=tuple(MappingProxyType(a.to_dict()) for a in session.roster),
            player=player,
            difficulty=MappingProxyType(session.difficulty.to_dict()),
            profile=MappingProxyType(session.profile.to_dict()),
            cache=MappingProxyType(session.cache.stats()),
        )

    def agent(self, agent_id: int) -> Mapping | None:
        for data in self.agents:
            if data["id"] == agent_id:
                return data
        return None

    def alive_count(self) -> int:
        return sum(1 for a in self.agents if a["health"] > 0)
