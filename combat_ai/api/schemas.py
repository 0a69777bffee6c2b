"""Pydantic request/response models for the REST API."""

from __future__ import annotations

from pydantic import BaseModel, Field


# --- State ---

class AgentSchema(BaseModel):
    id: int
    name: str
    kind: str
    template: str = ""
    state: str
    health: float
    max_health: float
    position: list[float]
    extra: dict = Field(default_factory=dict)


class PlayerSchema(BaseModel):
    position: list[float]
    velocity: list[float]
    attacking: bool = False


class EventSchema(BaseModel):
    tick: int
    category: str
    message: str
    entity_ids: list[int] = Field(default_factory=list)
    metadata: dict | None = None


class SessionStats(BaseModel):
    alive_agents: int
    cache_size: int
    cache_hits: int
    cache_misses: int
    running: bool
    paused: bool
    event_totals: dict[str, int] = Field(default_factory=dict)


class CombatStateResponse(BaseModel):
    tick: int
    time: float
    seed: int
    agents: list[AgentSchema]
    player: PlayerSchema | None = None
    profile: dict
    events: list[EventSchema]
    stats: SessionStats


# --- Difficulty ---

class PerformanceSchema(BaseModel):
    survival_time: float
    enemies_defeated: int
    towers_destroyed: int
    bosses_defeated: int
    damage_received: float
    accuracy_rating: float
    evasion_rating: float
    score: float
    level_completion_times: list[float] = Field(default_factory=list)


class DifficultyResponse(BaseModel):
    enabled: bool
    index: int
    level: str | None
    rating: int | None
    changes_this_level: int
    max_changes_per_level: int
    transitioning: bool
    performance: PerformanceSchema


# --- Control ---

class ControlResponse(BaseModel):
    status: str
    message: str
    tick: int


# --- Reports ---

class KillReport(BaseModel):
    kind: str = Field(..., pattern="^(enemy|tower|boss)$")


class AmountReport(BaseModel):
    amount: float = Field(..., ge=0.0)


class RatingReport(BaseModel):
    value: float = Field(..., ge=0.0, le=1.0)


class DamageRequest(BaseModel):
    amount: float = Field(..., gt=0.0)


# --- Config ---

class CombatConfigResponse(BaseModel):
    seed: int
    tick_dt: float
    max_ticks: int
    decision_workers: int
    profile_capacity: int
    decision_cache_capacity: int
    difficulty_enabled: bool
    adaptation_interval: float
    increase_threshold: float
    decrease_threshold: float
    max_changes_per_level: int
    starting_difficulty_index: int
    tick_rate: float
