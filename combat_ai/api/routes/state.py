"""GET /api/v1/state — live agents, player and events (polled by clients)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from combat_ai.api.dependencies import get_engine_manager
from combat_ai.api.engine_manager import EngineManager
from combat_ai.api.schemas import (
    AgentSchema,
    CombatStateResponse,
    EventSchema,
    PlayerSchema,
    SessionStats,
)

router = APIRouter()

_AGENT_FIELDS = frozenset(AgentSchema.model_fields) - {"extra"}


def _serialize_agent(data) -> AgentSchema:
    base = {k: data[k] for k in _AGENT_FIELDS if k in data}
    extra = {k: v for k, v in data.items() if k not in _AGENT_FIELDS}
    return AgentSchema(**base, extra=extra)


@router.get("/state", response_model=CombatStateResponse)
def get_state(
    since_tick: int = Query(0, ge=0, description="Only return events since this tick"),
    limit: int = Query(200, ge=1, le=5000, description="Maximum number of events returned"),
    category: str | None = Query(None, description="Only return events of this category"),
    agent_id: int | None = Query(None, description="Only return events involving this agent"),
    manager: EngineManager = Depends(get_engine_manager),
) -> CombatStateResponse:
    snapshot = manager.get_snapshot()
    if snapshot is None:
        raise HTTPException(status_code=503, detail="No snapshot available yet.")

    agents = [_serialize_agent(a) for a in snapshot.agents]
    events = [
        EventSchema(
            tick=e.tick,
            category=e.category,
            message=e.message,
            entity_ids=list(e.entity_ids),
            metadata=e.metadata,
        )
        for e in manager.event_log.query(since_tick, category=category, agent_id=agent_id, limit=limit)
    ]
    player = PlayerSchema(**snapshot.player) if snapshot.player is not None else None

    return CombatStateResponse(
        tick=snapshot.tick,
        time=snapshot.time,
        seed=snapshot.seed,
        agents=agents,
        player=player,
        profile=dict(snapshot.profile),
        events=events,
        stats=SessionStats(
            alive_agents=snapshot.alive_count(),
            cache_size=snapshot.cache["size"],
            cache_hits=snapshot.cache["hits"],
            cache_misses=snapshot.cache["misses"],
            running=manager.running,
            paused=manager.paused,
            event_totals=manager.event_log.totals(),
        ),
    )


@router.get("/agents/{agent_id}", response_model=AgentSchema)
def get_agent(
    agent_id: int,
    manager: EngineManager = Depends(get_engine_manager),
) -> AgentSchema:
    snapshot = manager.get_snapshot()
    data = snapshot.agent(agent_id) if snapshot else None
    if data is None:
        raise HTTPException(status_code=404, detail=f"Agent {agent_id} not found.")
    return _serialize_agent(data)
