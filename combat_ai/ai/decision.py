"""Boss decision layer — situation fingerprinting, cached tactics, async synthesis.

Flow per due cycle:
  1. Build an immutable SituationContext from the boss and the shared profile.
  2. Fingerprint it (health to 1 decimal, distances to whole units, state).
  3. Cache hit → reuse the tactic and bump its use count.
  4. Miss → submit synthesis to the DecisionWorker; the result is collected
     on this or a later tick, stored in the cache and applied.
  5. Any failure → the boss's minimal fallback heuristic.

A pending synthesis is cancelled when the boss is defeated, and a result
that arrives for a defeated boss is discarded. A synthesis still running
after ``timeout`` seconds of session time is dropped the same way and the
fallback heuristic runs instead.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass
from typing import TYPE_CHECKING

from combat_ai.core.enums import BossState, BossType, Tactic
from combat_ai.core.errors import DecisionSynthesisFailure

if TYPE_CHECKING:
    from combat_ai.ai.boss import BossAgent
    from combat_ai.ai.decision_cache import DecisionCache
    from combat_ai.ai.profile import PlayerProfile
    from combat_ai.engine.decision_pool import DecisionWorker

logger = logging.getLogger(__name__)


# =====================================================================
# Situation context
# =====================================================================

@dataclass(frozen=True, slots=True)
class SituationContext:
    """Typed snapshot of everything tactic synthesis may look at."""

    agent_id: int
    health_fraction: float
    distance: float
    target_altitude: float
    state: BossState
    attack_range: float
    can_use_special: bool
    boss_type: BossType = BossType.ADAPTIVE
    strategy: str = ""
    target_speed: float = 0.0
    average_altitude: float = 0.0
    aggression: float = 0.0
    evasion: float = 0.0
    since_primary: float = math.inf
    since_special: float = math.inf
    retreat_available: bool = False
    attack_positions_available: bool = False


def _quantize(value: float, places: int) -> str:
    """Format with *places* decimals, rounding halves away from zero."""
    if not math.isfinite(value):
        return f"{value:.{places}f}"
    scale = 10 ** places
    rounded = math.floor(abs(value) * scale + 0.5) / scale
    return f"{math.copysign(rounded, value) + 0.0:.{places}f}"


def fingerprint(ctx: SituationContext) -> str:
    """Quantized cache key: ``health_distance_altitude_STATE``."""
    return (f"{_quantize(ctx.health_fraction, 1)}_{_quantize(ctx.distance, 0)}"
            f"_{_quantize(ctx.target_altitude, 0)}_{ctx.state.name}")


def synthesize_tactic(ctx: SituationContext) -> Tactic:
    """Pure rule ladder mapping a situation to a tactic."""
    if not math.isfinite(ctx.health_fraction) or not math.isfinite(ctx.distance):
        raise ValueError("malformed situation context")
    if ctx.health_fraction < 0.25:
        return Tactic.DEFENSIVE_RETREAT
    if ctx.distance > ctx.attack_range * 1.5:
        return Tactic.TACTICAL_REPOSITION
    if ctx.can_use_special and ctx.health_fraction < 0.5:
        return Tactic.SPECIAL_ABILITY
    if ctx.distance <= ctx.attack_range:
        return Tactic.AGGRESSIVE_ATTACK
    return Tactic.AREA_DENIAL


class TacticSynthesizer(ABC):
    """Source of tactics for cache misses (heuristic here; could be a remote service)."""

    @abstractmethod
    def synthesize(self, ctx: SituationContext) -> Tactic: ...


class HeuristicSynthesizer(TacticSynthesizer):
    def synthesize(self, ctx: SituationContext) -> Tactic:
        return synthesize_tactic(ctx)


# =====================================================================
# Decision layer
# =====================================================================

class BossDecisionLayer:
    """Per-boss decision cadence and pending-synthesis bookkeeping."""

    __slots__ = (
        "_cache",
        "_profile",
        "_synthesizer",
        "_worker",
        "_pending",
        "_pending_key",
        "_pending_since",
        "_timeout",
        "last_decision_time",
        "last_tactic",
        "decisions_made",
        "cache_hits",
        "fallbacks",
        "discarded",
    )

    def __init__(
        self,
        cache: DecisionCache | None,
        profile: PlayerProfile,
        worker: DecisionWorker,
        synthesizer: TacticSynthesizer | None = None,
        start_time: float = 0.0,
        timeout: float = math.inf,
    ) -> None:
        self._cache = cache
        self._profile = profile
        self._synthesizer = synthesizer or HeuristicSynthesizer()
        self._worker = worker
        self._pending: Future[Tactic] | None = None
        self._pending_key: str = ""
        self._pending_since = 0.0
        self._timeout = timeout
        self.last_decision_time = start_time
        self.last_tactic: Tactic | None = None
        self.decisions_made = 0
        self.cache_hits = 0
        self.fallbacks = 0
        self.discarded = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def force_next_check(self) -> None:
        """Make the next cadence check fire immediately (low-health nudge)."""
        self.last_decision_time = -math.inf

    # -- cadence --

    def is_due(self, boss: BossAgent, now: float) -> bool:
        if self._pending is not None:
            return False
        if boss.current_state() in (BossState.CHANNELING, BossState.STUNNED, BossState.DEFEATED):
            return False
        stats = boss.stats
        emergency = boss.health < stats.max_health * boss.emergency_fraction
        interval = stats.emergency_decision_interval if emergency else stats.ai_decision_interval
        return now - self.last_decision_time >= interval

    def tick(self, boss: BossAgent, now: float) -> None:
        """Collect a finished synthesis, then start a new decision if one is due."""
        self.collect(boss, now)
        if boss.alive and self.is_due(boss, now):
            self.begin(boss, now)

    # -- lifecycle of one decision --

    def begin(self, boss: BossAgent, now: float) -> None:
        self.last_decision_time = now
        try:
            ctx = boss.build_context(now)
            key = fingerprint(ctx)
        except Exception as exc:
            self._fallback(boss, now, DecisionSynthesisFailure(boss.id, f"context: {exc}"))
            return

        if self._cache is not None and boss.stats.use_decision_cache:
            cached = self._cache.get(key)
            if cached is not None:
                self.cache_hits += 1
                logger.debug("%s reused cached tactic %s for %s", boss.name, cached.value, key)
                self._apply(boss, cached, now, cached=True)
                return

        self._pending_key = key
        self._pending_since = now
        self._pending = self._worker.submit(self._synthesizer.synthesize, ctx)
        # Inline workers resolve immediately
        self.collect(boss, now)

    def collect(self, boss: BossAgent, now: float) -> None:
        future = self._pending
        if future is None:
            return
        if not future.done():
            if boss.alive and now - self._pending_since >= self._timeout:
                self.cancel()
                self._fallback(boss, now, DecisionSynthesisFailure(
                    boss.id, f"synthesis exceeded {self._timeout:.1f}s"))
            return
        self._pending = None
        key = self._pending_key

        if future.cancelled():
            return
        if not boss.alive:
            self.discarded += 1
            logger.debug("Discarded late decision for defeated %s", boss.name)
            return

        exc = future.exception()
        if exc is not None:
            self._fallback(boss, now, DecisionSynthesisFailure(boss.id, str(exc)))
            return
        tactic = future.result()
        if not isinstance(tactic, Tactic):
            self._fallback(boss, now, DecisionSynthesisFailure(boss.id, f"malformed tactic {tactic!r}"))
            return

        if self._cache is not None and boss.stats.use_decision_cache:
            self._cache.store(key, tactic, now)
        self._apply(boss, tactic, now, cached=False)

    def cancel(self) -> None:
        """Drop the pending synthesis; a result already in flight is discarded."""
        if self._pending is not None:
            if not self._pending.cancel():
                self.discarded += 1
            self._pending = None

    # -- application --

    def _apply(self, boss: BossAgent, tactic: Tactic, now: float, cached: bool) -> None:
        try:
            boss.apply_tactic(tactic, now)
        except Exception as exc:
            self._fallback(boss, now, DecisionSynthesisFailure(boss.id, f"apply {tactic.value}: {exc}"))
            return
        self.last_tactic = tactic
        self.decisions_made += 1
        self._profile.record_tactic(tactic.value)
        boss.emit_decision(tactic, cached)

    def _fallback(self, boss: BossAgent, now: float, failure: DecisionSynthesisFailure) -> None:
        self.fallbacks += 1
        logger.warning("%s, using fallback", failure)
        boss.fallback_behavior(now)
