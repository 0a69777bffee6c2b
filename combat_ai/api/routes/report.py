"""Difficulty state and collaborator reports.

GET  /api/v1/difficulty             current rung and player performance
POST /api/v1/report/{kind}          kill, damage, accuracy, evasion, new-level
POST /api/v1/agents/{id}/damage     player hit on an agent

Reports are queued and applied on the engine thread before the next tick.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from combat_ai.api.dependencies import get_engine_manager
from combat_ai.api.engine_manager import EngineManager
from combat_ai.api.schemas import (
    AmountReport,
    ControlResponse,
    DamageRequest,
    DifficultyResponse,
    KillReport,
    RatingReport,
)
from combat_ai.core.enums import AgentKind

router = APIRouter()


def _queued(manager: EngineManager, message: str) -> ControlResponse:
    snapshot = manager.get_snapshot()
    return ControlResponse(status="queued", message=message, tick=snapshot.tick if snapshot else 0)


@router.get("/difficulty", response_model=DifficultyResponse)
def get_difficulty(
    manager: EngineManager = Depends(get_engine_manager),
) -> DifficultyResponse:
    snapshot = manager.get_snapshot()
    if snapshot is None:
        raise HTTPException(status_code=503, detail="No snapshot available yet.")
    return DifficultyResponse(**snapshot.difficulty)


@router.post("/report/kill", response_model=ControlResponse)
def report_kill(
    body: KillReport,
    manager: EngineManager = Depends(get_engine_manager),
) -> ControlResponse:
    kind = AgentKind[body.kind.upper()]
    manager.submit(lambda s: s.difficulty.report_kill(kind))
    return _queued(manager, f"{body.kind} kill reported.")


@router.post("/report/damage", response_model=ControlResponse)
def report_damage(
    body: AmountReport,
    manager: EngineManager = Depends(get_engine_manager),
) -> ControlResponse:
    manager.submit(lambda s: s.difficulty.report_damage_received(body.amount))
    return _queued(manager, f"{body.amount:.1f} damage received reported.")


@router.post("/report/accuracy", response_model=ControlResponse)
def report_accuracy(
    body: RatingReport,
    manager: EngineManager = Depends(get_engine_manager),
) -> ControlResponse:
    manager.submit(lambda s: s.difficulty.report_accuracy(body.value))
    return _queued(manager, f"Accuracy {body.value:.2f} reported.")


@router.post("/report/evasion", response_model=ControlResponse)
def report_evasion(
    body: RatingReport,
    manager: EngineManager = Depends(get_engine_manager),
) -> ControlResponse:
    manager.submit(lambda s: s.difficulty.report_evasion(body.value))
    return _queued(manager, f"Evasion {body.value:.2f} reported.")


@router.post("/report/new-level", response_model=ControlResponse)
def start_new_level(
    manager: EngineManager = Depends(get_engine_manager),
) -> ControlResponse:
    manager.submit(lambda s: s.difficulty.start_new_level())
    return _queued(manager, "New level started.")


@router.post("/agents/{agent_id}/damage", response_model=ControlResponse)
def damage_agent(
    agent_id: int,
    body: DamageRequest,
    manager: EngineManager = Depends(get_engine_manager),
) -> ControlResponse:
    snapshot = manager.get_snapshot()
    if snapshot is None or snapshot.agent(agent_id) is None:
        raise HTTPException(status_code=404, detail=f"Agent {agent_id} not found.")
    manager.submit(lambda s: s.damage_agent(agent_id, body.amount))
    return _queued(manager, f"{body.amount:.1f} damage queued for agent {agent_id}.")
