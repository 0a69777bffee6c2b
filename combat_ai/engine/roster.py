"""AgentRoster — id-ordered registry of the session's live agents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from combat_ai.ai.agent import CombatAgent
    from combat_ai.core.enums import AgentKind


class AgentRoster:
    """Owns agent ids; iteration is always in ascending id order."""

    __slots__ = ("_agents", "_next_id")

    def __init__(self) -> None:
        self._agents: dict[int, CombatAgent] = {}
        self._next_id = 1

    def allocate_id(self) -> int:
        agent_id = self._next_id
        self._next_id += 1
        return agent_id

    def add(self, agent: CombatAgent) -> None:
        self._agents[agent.id] = agent
        self._next_id = max(self._next_id, agent.id + 1)

    def remove(self, agent_id: int) -> CombatAgent | None:
        return self._agents.pop(agent_id, None)

    def get(self, agent_id: int) -> CombatAgent | None:
        return self._agents.get(agent_id)

    def __contains__(self, agent_id: int) -> bool:
        return agent_id in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator[CombatAgent]:
        return iter([self._agents[aid] for aid in sorted(self._agents)])

    def alive(self) -> list[CombatAgent]:
        return [a for a in self if a.alive]

    def of_kind(self, kind: AgentKind) -> list[CombatAgent]:
        return [a for a in self if a.kind == kind]

    def dead(self) -> list[CombatAgent]:
        return [a for a in self if not a.alive]
