"""CombatSession — the authoritative tick engine for one encounter arena.

Tick order:
  1. Profile — sample the player pose into the shared PlayerProfile
  2. Agents — advance every agent in ascending id order
  3. Difficulty — accrue performance, run transitions, evaluate the ladder
  4. Cleanup — drop dead agents, release navigators
  5. Host — advance host-side movement (sandbox only)
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from combat_ai.ai.boss import BossAgent
from combat_ai.ai.decision_cache import DecisionCache
from combat_ai.ai.enemy import EnemyAgent
from combat_ai.ai.profile import PlayerProfile
from combat_ai.ai.smart_tower import SmartTower, TowerRegistry
from combat_ai.ai.tower import Tower
from combat_ai.core.ladder import DEFAULT_LADDER
from combat_ai.core.models import Vector3
from combat_ai.core.snapshot import CombatSnapshot
from combat_ai.core.stats import default_stat_table
from combat_ai.engine.decision_pool import DecisionWorker
from combat_ai.engine.difficulty import DifficultyController
from combat_ai.engine.host import SandboxHost
from combat_ai.engine.roster import AgentRoster
from combat_ai.systems.rng import DeterministicRNG
from combat_ai.systems.spawner import EncounterSpawner
from combat_ai.utils.event_log import SimEvent

if TYPE_CHECKING:
    from combat_ai.ai.agent import CombatAgent
    from combat_ai.ai.decision import TacticSynthesizer
    from combat_ai.config import CombatConfig
    from combat_ai.core.ladder import DifficultyLevel
    from combat_ai.core.stats import BossStats, EnemyStats, SmartTowerStats, StatTable, TowerStats
    from combat_ai.engine.host import CombatHost
    from combat_ai.utils.replay import ReplayRecorder

logger = logging.getLogger(__name__)


class CombatSession:
    """Owns every agent and the shared AI state of one arena.

    All mutation happens on the thread calling ``tick_once``; the decision
    worker only ever sees immutable SituationContext records.
    """

    def __init__(
        self,
        config: CombatConfig,
        host: CombatHost | None = None,
        *,
        stat_table: StatTable | None = None,
        ladder: tuple[DifficultyLevel, ...] | list[DifficultyLevel] = DEFAULT_LADDER,
        synthesizer: TacticSynthesizer | None = None,
        recorder: ReplayRecorder | None = None,
    ) -> None:
        self.config = config
        self.host = host if host is not None else SandboxHost()
        self.stat_table = stat_table or default_stat_table()
        self.rng = DeterministicRNG(config.seed)
        self.roster = AgentRoster()
        self.registry = TowerRegistry()
        self.profile = PlayerProfile(config.profile_capacity)
        self.cache = DecisionCache(config.decision_cache_capacity)
        self.worker = DecisionWorker(config.decision_workers)
        self.spawner = EncounterSpawner(config, self.stat_table, self.rng, self)
        self.difficulty = DifficultyController(
            config, self.spawner, self.roster, ladder, self.stat_table, events=self._emit)
        self._synthesizer = synthesizer
        self._recorder = recorder

        self.tick = 0
        self.now = 0.0
        self._tick_events: list[SimEvent] = []
        self._despawning: set[int] = set()

        if isinstance(self.host, SandboxHost):
            self.host.player_damage_listeners.append(self.difficulty.report_damage_received)

    # -- events --

    @property
    def tick_events(self) -> list[SimEvent]:
        """Events emitted during the most recent tick."""
        return self._tick_events

    def _emit(self, category: str, message: str,
              entity_ids: tuple[int, ...] = (), metadata: dict | None = None) -> None:
        self._tick_events.append(SimEvent(
            tick=self.tick,
            category=category,
            message=message,
            entity_ids=entity_ids,
            metadata=metadata,
        ))

    # -- roster --

    def add_boss(
        self,
        stats: BossStats,
        position: Vector3,
        *,
        template: str = "",
        now: float | None = None,
        retreat_positions: tuple[Vector3, ...] = (),
        attack_positions: tuple[Vector3, ...] = (),
    ) -> BossAgent:
        boss = BossAgent(
            self.roster.allocate_id(), stats, self.host, self.rng, position,
            self.profile, self.worker, self.config,
            cache=self.cache if stats.use_decision_cache else None,
            synthesizer=self._synthesizer,
            retreat_positions=retreat_positions,
            attack_positions=attack_positions,
            spawned_at=self.now if now is None else now,
            template=template,
            events=self._emit,
        )
        return self._register(boss)

    def add_enemy(
        self,
        stats: EnemyStats,
        position: Vector3,
        *,
        template: str = "",
        waypoints: tuple[Vector3, ...] = (),
    ) -> EnemyAgent:
        enemy = EnemyAgent(
            self.roster.allocate_id(), stats, self.host, self.rng, position, self.config,
            waypoints=waypoints, template=template, events=self._emit,
        )
        return self._register(enemy)

    def add_tower(self, stats: TowerStats, position: Vector3, *, template: str = "") -> Tower:
        tower = Tower(
            self.roster.allocate_id(), stats, self.host, self.rng, position, self.config,
            template=template, events=self._emit,
        )
        return self._register(tower)

    def add_smart_tower(
        self,
        stats: SmartTowerStats,
        position: Vector3,
        *,
        template: str = "",
        now: float | None = None,
    ) -> SmartTower:
        tower = SmartTower(
            self.roster.allocate_id(), stats, self.host, self.rng, position, self.config,
            self.registry, spawned_at=self.now if now is None else now,
            template=template, events=self._emit,
        )
        return self._register(tower)

    def _register(self, agent):
        self.roster.add(agent)
        agent.on_death(self._on_agent_death)
        logger.info("Spawned %s (%s) at %s", agent.name, agent.template or agent.kind.name.lower(),
                    agent.position)
        self._emit("spawn", f"{agent.name} spawned", (agent.id,),
                   {"kind": agent.kind.name.lower(), "template": agent.template})
        return agent

    def despawn(self, agent_id: int) -> bool:
        """Remove an agent without reporting a kill."""
        agent = self.roster.remove(agent_id)
        if agent is None:
            return False
        if agent.alive:
            self._despawning.add(agent_id)
            agent.kill()
            self._despawning.discard(agent_id)
        self.registry.remove(agent_id)
        self.host.release_navigator(agent_id)
        self._emit("despawn", f"{agent.name} despawned", (agent_id,))
        return True

    def _on_agent_death(self, agent: CombatAgent) -> None:
        if agent.id in self._despawning:
            return
        self.difficulty.report_kill(agent.kind)

    def damage_agent(self, agent_id: int, amount: float) -> float | None:
        """Apply player damage to an agent. Returns damage dealt, or None if unknown."""
        agent = self.roster.get(agent_id)
        if agent is None:
            return None
        return agent.take_damage(amount)

    def populate(self) -> None:
        """Spawn the starting rung's encounters."""
        self.difficulty.populate(self.now)

    def register_player(self) -> None:
        """Fly the scripted sandbox player from the configured start."""
        if not isinstance(self.host, SandboxHost):
            return
        cfg = self.config
        self.host.register_player(Vector3(*cfg.player_start), Vector3(*cfg.player_velocity),
                                  cfg.player_weave_period)

    # -- ticking --

    def tick_once(self, dt: float | None = None) -> bool:
        """Execute a single tick. Returns False once ``max_ticks`` is reached."""
        if self.tick >= self.config.max_ticks:
            logger.info("Tick %d: Max ticks reached.", self.tick)
            return False
        if dt is None:
            dt = self.config.tick_dt

        self._tick_events = []
        t0 = time.perf_counter()
        self.now += dt
        now = self.now

        # --- Phase 1: Profile ---
        pose = self.host.target_pose()
        if pose is not None:
            self.profile.update(pose, now)

        # --- Phase 2: Agents ---
        for agent in self.roster:
            if agent.alive:
                agent.advance(dt, now)

        # --- Phase 3: Difficulty ---
        self.difficulty.update(dt, now)

        # --- Phase 4: Cleanup ---
        self._phase_cleanup()

        # --- Phase 5: Host ---
        self.host.step(dt)

        logger.debug("Tick %d: agents=%d events=%d total=%.4fs",
                     self.tick, len(self.roster), len(self._tick_events), time.perf_counter() - t0)
        if self._recorder:
            self._recorder.record_tick(self.tick, now, self._tick_events, self.roster)
        self.tick += 1
        return True

    def _phase_cleanup(self) -> None:
        for agent in self.roster.dead():
            self.roster.remove(agent.id)
            self.registry.remove(agent.id)
            self.host.release_navigator(agent.id)

    def run(self, ticks: int | None = None) -> int:
        """Tick until *ticks* have run or ``max_ticks`` is reached. Returns ticks run."""
        logger.info("=== Combat session started (seed=%d) ===", self.config.seed)
        limit = self.config.max_ticks if ticks is None else ticks
        ran = 0
        while ran < limit and self.tick_once():
            ran += 1
            if self.tick % 200 == 0:
                logger.info("Tick %d: %d agents alive, difficulty=%s",
                            self.tick, len(self.roster.alive()),
                            self.difficulty.current_level.name if self.difficulty.current_level else "-")
        logger.info("=== Combat session finished at tick %d ===", self.tick)
        if self._recorder:
            self._recorder.flush()
        return ran

    def snapshot(self) -> CombatSnapshot:
        return CombatSnapshot.from_session(self)

    def shutdown(self) -> None:
        for agent in self.roster:
            if isinstance(agent, BossAgent):
                agent.decision.cancel()
        self.worker.shutdown()
