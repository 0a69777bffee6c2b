"""GET /api/v1/config — expose the session configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from combat_ai.api.dependencies import get_engine_manager
from combat_ai.api.engine_manager import EngineManager
from combat_ai.api.schemas import CombatConfigResponse

router = APIRouter()


@router.get("/config", response_model=CombatConfigResponse)
def get_config(
    manager: EngineManager = Depends(get_engine_manager),
) -> CombatConfigResponse:
    cfg = manager.config
    return CombatConfigResponse(
        seed=cfg.seed,
        tick_dt=cfg.tick_dt,
        max_ticks=cfg.max_ticks,
        decision_workers=cfg.decision_workers,
        profile_capacity=cfg.profile_capacity,
        decision_cache_capacity=cfg.decision_cache_capacity,
        difficulty_enabled=cfg.difficulty_enabled,
        adaptation_interval=cfg.adaptation_interval,
        increase_threshold=cfg.increase_threshold,
        decrease_threshold=cfg.decrease_threshold,
        max_changes_per_level=cfg.max_changes_per_level,
        starting_difficulty_index=cfg.starting_difficulty_index,
        tick_rate=manager.tick_rate,
    )
