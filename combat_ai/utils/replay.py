"""Replay serialization — records tick-by-tick agent state for deterministic replay."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from combat_ai.ai.agent import CombatAgent
    from combat_ai.utils.event_log import SimEvent

logger = logging.getLogger(__name__)


class ReplayRecorder:
    """Accumulates tick records and flushes them to a JSON replay file.

    Ticks without events are only sampled every ``sample_every`` ticks to
    keep replay files small.
    """

    __slots__ = ("_path", "_ticks", "_seed", "_sample_every")

    def __init__(self, path: str | Path, seed: int, sample_every: int = 20) -> None:
        self._path = Path(path)
        self._seed = seed
        self._sample_every = max(1, sample_every)
        self._ticks: list[dict[str, Any]] = []

    @property
    def ticks(self) -> list[dict[str, Any]]:
        return self._ticks

    def record_tick(
        self,
        tick: int,
        time: float,
        events: list[SimEvent],
        agents: Iterable[CombatAgent],
    ) -> None:
        if not events and tick % self._sample_every != 0:
            return
        agents_snapshot = [
            {
                "id": a.id,
                "kind": a.kind.name.lower(),
                "pos": a.position.to_list(),
                "hp": round(a.health, 2),
                "state": a.current_state().name,
            }
            for a in agents
            if a.alive
        ]
        events_log = [
            {
                "category": e.category,
                "message": e.message,
                "entities": list(e.entity_ids),
            }
            for e in events
        ]

        self._ticks.append(
            {
                "tick": tick,
                "time": round(time, 3),
                "events": events_log,
                "agents": agents_snapshot,
            }
        )

    def flush(self) -> None:
        """Write accumulated data to disk."""
        replay = {
            "version": "1.0",
            "seed": self._seed,
            "total_ticks": len(self._ticks),
            "ticks": self._ticks,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(replay, indent=2), encoding="utf-8")
        logger.info("Replay saved to %s (%d ticks)", self._path, len(self._ticks))
