"""Tests for the plain tower.

Covers:
- Engages only inside detection range
- Leads a moving target by projectile flight time
- Fire gated by alignment and fire rate
- Turn speed limits how quickly a tower behind the barrel can fire
- Aim is measured from the barrel, so close and low targets still get shot
- Destroyed towers stop firing and are counted
"""

import sys
import os
import math

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from combat_ai.core.enums import TowerState
from combat_ai.core.models import Vector3
from tests.helpers.arena import CombatArena


class TestEngagement:
    def test_out_of_range_stays_idle(self):
        arena = CombatArena()
        tower = arena.add_tower()
        arena.set_player((0.0, 0.0, 60.0))
        arena.run_ticks(20)
        assert tower.current_state() == TowerState.IDLE
        assert arena.host.projectiles_from(tower.id) == []

    def test_engage_and_disengage_events(self):
        arena = CombatArena()
        tower = arena.add_tower()
        arena.set_player((0.0, 0.0, 30.0))
        arena.run_ticks(1)
        assert tower.current_state() == TowerState.ENGAGED
        arena.set_player((0.0, 0.0, 80.0))
        arena.run_ticks(1)
        assert tower.current_state() == TowerState.IDLE
        messages = [e.message for e in arena.events_by_category("tower")]
        assert messages == [f"{tower.name} engaged", f"{tower.name} disengaged"]


class TestAiming:
    def test_leads_moving_target(self):
        arena = CombatArena()
        tower = arena.add_tower()
        arena.set_player((0.0, 0.0, 30.0), velocity=(10.0, 0.0, 0.0))
        arena.run_ticks(1)
        flight = math.sqrt(3.0 ** 2 + 30.0 ** 2) / 25.0
        assert tower.aim_point.x == pytest.approx(10.0 * flight)
        assert tower.aim_point.z == pytest.approx(30.0)

    def test_no_lead_aims_at_position(self):
        arena = CombatArena()
        tower = arena.add_tower(lead_target=False)
        arena.set_player((0.0, 0.0, 30.0), velocity=(10.0, 0.0, 0.0))
        arena.run_ticks(1)
        assert tower.aim_point.x == pytest.approx(0.0)


class TestFiring:
    def test_fires_when_aligned_then_waits_for_cooldown(self):
        arena = CombatArena()
        tower = arena.add_tower()
        arena.set_player((0.0, 0.0, 30.0))
        arena.run_ticks(1)
        assert len(arena.host.projectiles_from(tower.id)) == 1
        arena.run_ticks(10)
        assert len(arena.host.projectiles_from(tower.id)) == 1
        arena.run_ticks(12)
        assert len(arena.host.projectiles_from(tower.id)) == 2
        shot = arena.host.projectiles_from(tower.id)[0]
        assert shot.damage == pytest.approx(10.0)
        assert shot.speed == pytest.approx(25.0)

    def test_target_behind_needs_to_turn_first(self):
        arena = CombatArena()
        tower = arena.add_tower()
        arena.set_player((0.0, 0.0, -30.0))
        arena.run_ticks(10)
        assert arena.host.projectiles_from(tower.id) == []
        arena.run_until(lambda a: len(a.host.projectiles_from(tower.id)) > 0, max_ticks=60)
        assert tower.shots_fired == 1
        assert tower.alignment(tower.aim_point) > 0.95

    def test_fires_at_close_target_level_with_base(self):
        arena = CombatArena()
        tower = arena.add_tower()
        arena.set_player((6.0, 0.0, 0.0))
        arena.run_until(lambda a: tower.shots_fired > 0, max_ticks=200)
        assert tower.shots_fired == 1
        assert tower.alignment(tower.aim_point) > 0.95
        shot = arena.host.projectiles_from(tower.id)[0]
        assert shot.direction.dot((Vector3(6.0, 0.0, 0.0) - tower.barrel).normalized()) > 0.95

    def test_zero_fire_rate_never_fires(self):
        arena = CombatArena()
        tower = arena.add_tower(fire_rate=0.0)
        arena.set_player((0.0, 0.0, 30.0))
        arena.run_ticks(20)
        assert tower.shots_fired == 0


class TestDestruction:
    def test_destroyed_tower_is_silent(self):
        arena = CombatArena()
        tower = arena.add_tower()
        arena.set_player((0.0, 0.0, 30.0))
        tower.take_damage(1000.0)
        assert tower.current_state() == TowerState.DESTROYED
        arena.run_ticks(20)
        assert arena.host.projectiles_from(tower.id) == []
        assert ("tower_destroyed", tower.position) in arena.host.effects
        assert arena.session.difficulty.performance.towers_destroyed == 1
