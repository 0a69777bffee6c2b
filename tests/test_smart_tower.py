"""Tests for smart towers: learning, archetypes, coordination.

Covers:
- Evasive flag from direction variance over recent samples
- Adaptation needs enough samples and fires on its interval
- ADAPTIVE / PREDICTOR / AMBUSHER / COORDINATOR stat changes
- AMBUSHER holds fire while the target jukes
- COORDINATOR holds fire while a peer is engaged
- Registry skips self, dead, removed and out-of-range peers
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from combat_ai.ai.smart_tower import direction_variance
from combat_ai.core.enums import TowerAIType
from combat_ai.core.models import TargetPose, Vector3
from tests.helpers.arena import CombatArena


def _feed(tower, count: int, weave: bool, speed: float = 5.0, start: float = 0.0) -> None:
    """Record *count* samples; weaving flips the x velocity every sample."""
    for i in range(count):
        vx = speed if (not weave or i % 2 == 0) else -speed
        pose = TargetPose(Vector3(float(i), 10.0, 30.0), Vector3(vx, 0.0, 0.0))
        tower.record_sample(pose, start + i * 0.05)


class TestDirectionVariance:
    def test_straight_line(self):
        v = Vector3(1.0, 0.0, 0.0)
        assert direction_variance([v, v, v]) == pytest.approx(0.0)

    def test_reversal(self):
        assert direction_variance([Vector3(1.0, 0.0, 0.0), Vector3(-1.0, 0.0, 0.0)]) == pytest.approx(2.0)

    def test_right_angle(self):
        assert direction_variance([Vector3(1.0, 0.0, 0.0), Vector3(0.0, 0.0, 1.0)]) == pytest.approx(1.0)


class TestLearning:
    def test_weaving_samples_are_evasive(self):
        arena = CombatArena()
        tower = arena.add_smart_tower()
        _feed(tower, 4, weave=True)
        flags = [s.evasive for s in tower.history]
        assert flags == [False, True, True, True]
        assert tower.is_target_evasive()

    def test_straight_samples_are_not_evasive(self):
        arena = CombatArena()
        tower = arena.add_smart_tower()
        _feed(tower, 4, weave=False)
        assert not any(s.evasive for s in tower.history)
        assert not tower.is_target_evasive()

    def test_adapt_needs_minimum_samples(self):
        arena = CombatArena()
        tower = arena.add_smart_tower()
        _feed(tower, 9, weave=True)
        assert not tower.adapt()
        assert tower.adaptations == 0

    def test_analyze_learns_player_model(self):
        arena = CombatArena()
        tower = arena.add_smart_tower()
        _feed(tower, 10, weave=True)
        tower.analyze()
        assert tower.average_speed == pytest.approx(5.0)
        assert tower.preferred_altitude == pytest.approx(10.0)
        assert tower.evasion_pattern == pytest.approx(0.9)

    def test_analyze_learns_common_direction(self):
        arena = CombatArena()
        tower = arena.add_smart_tower()
        _feed(tower, 10, weave=False)
        tower.analyze()
        assert tower.common_direction == Vector3(1.0, 0.0, 0.0)
        assert tower.to_dict()["common_direction"] == [1.0, 0.0, 0.0]

    def test_adaptation_runs_on_interval_in_session(self):
        arena = CombatArena()
        tower = arena.add_smart_tower(adaptation_interval=1.0)
        arena.set_player((0.0, 10.0, 30.0), velocity=(5.0, 0.0, 0.0))
        arena.run_ticks(15)
        assert tower.adaptations == 0
        arena.run_until(lambda a: tower.adaptations == 1, max_ticks=20)
        assert tower.adaptations == 1
        assert arena.events_by_category("adaptation")
        assert any(kind == "tower_learning" for kind, _pos in arena.host.effects)


class TestArchetypes:
    def test_adaptive_scales_fire_rate_with_evasion(self):
        arena = CombatArena()
        tower = arena.add_smart_tower(ai_type=TowerAIType.ADAPTIVE)
        _feed(tower, 10, weave=True)
        assert tower.adapt()
        assert tower.stats.fire_rate == pytest.approx(1.2 * (1.0 + 0.9 * 0.5))
        assert tower.stats.max_prediction_time == pytest.approx(1.0)
        assert tower.stats.prediction_accuracy == pytest.approx(0.801)

    def test_adaptive_fire_rate_does_not_compound(self):
        arena = CombatArena()
        tower = arena.add_smart_tower(ai_type=TowerAIType.ADAPTIVE)
        _feed(tower, 10, weave=True)
        tower.adapt()
        tower.adapt()
        assert tower.stats.fire_rate == pytest.approx(1.2 * 1.45)

    def test_predictor_sharpens_up_to_caps(self):
        arena = CombatArena()
        tower = arena.add_smart_tower(ai_type=TowerAIType.PREDICTOR)
        _feed(tower, 10, weave=False)
        tower.adapt()
        assert tower.stats.prediction_accuracy == pytest.approx(0.802)
        assert tower.stats.max_prediction_time == pytest.approx(3.1)
        for _ in range(200):
            tower.adapt()
        assert tower.stats.prediction_accuracy == pytest.approx(0.98)
        assert tower.stats.max_prediction_time == pytest.approx(5.0)

    def test_ambusher_trades_rate_for_damage(self):
        arena = CombatArena()
        tower = arena.add_smart_tower(ai_type=TowerAIType.AMBUSHER)
        _feed(tower, 10, weave=False)
        tower.adapt()
        tower.adapt()
        assert tower.stats.fire_rate == pytest.approx(1.2 * 0.7)
        assert tower.stats.damage == pytest.approx(15.0 * 1.3)
        assert tower.required_alignment() == pytest.approx(0.98)

    def test_ambusher_holds_fire_while_target_jukes(self):
        arena = CombatArena()
        tower = arena.add_smart_tower(ai_type=TowerAIType.AMBUSHER)
        _feed(tower, 3, weave=True)
        assert not tower.should_fire_now()
        _feed(tower, 3, weave=False, start=1.0)
        assert tower.should_fire_now()

    def test_coordinator_staggers_by_group_index(self):
        arena = CombatArena()
        first = arena.add_smart_tower((0.0, 0.0, 0.0), ai_type=TowerAIType.COORDINATOR)
        second = arena.add_smart_tower((10.0, 0.0, 0.0), ai_type=TowerAIType.COORDINATOR)
        for tower in (first, second):
            tower.coordinate(0.0)
            _feed(tower, 10, weave=False)
            tower.adapt()
        assert first.group_index() == 0 and second.group_index() == 1
        assert first.stagger_delay == pytest.approx(0.0)
        assert second.stagger_delay == pytest.approx(0.3)

    def test_coordinator_holds_fire_while_peer_engaged(self):
        arena = CombatArena()
        first = arena.add_smart_tower((0.0, 0.0, 0.0), ai_type=TowerAIType.COORDINATOR)
        second = arena.add_smart_tower((10.0, 0.0, 0.0), ai_type=TowerAIType.COORDINATOR)
        first.coordinate(0.0)
        assert first.should_fire_now()
        second.engaged = True
        first.coordinate(1.0)
        assert not first.should_fire_now()


class TestRegistry:
    def test_peers_exclude_self_and_far_towers(self):
        arena = CombatArena()
        tower = arena.add_smart_tower((0.0, 0.0, 0.0), coordination_range=60.0)
        near = arena.add_smart_tower((30.0, 0.0, 0.0))
        arena.add_smart_tower((100.0, 0.0, 0.0))
        tower.coordinate(2.0)
        assert [p.peer_id for p in tower.peers] == [near.id]
        record = tower.peers[0]
        assert record.snapshot_time == 2.0
        assert record.ai_type == TowerAIType.ADAPTIVE

    def test_destroyed_peer_leaves_registry(self):
        arena = CombatArena()
        tower = arena.add_smart_tower((0.0, 0.0, 0.0))
        peer = arena.add_smart_tower((10.0, 0.0, 0.0))
        assert len(arena.session.registry) == 2
        peer.take_damage(10_000.0)
        assert peer.id not in arena.session.registry
        tower.coordinate(1.0)
        assert tower.peers == []

    def test_dead_peer_still_registered_is_skipped(self):
        arena = CombatArena()
        tower = arena.add_smart_tower((0.0, 0.0, 0.0))
        peer = arena.add_smart_tower((10.0, 0.0, 0.0))
        peer.take_damage(10_000.0)
        arena.session.registry.add(peer)
        assert arena.session.registry.snapshot_peers(tower, 60.0, 0.0) == []

    def test_removed_peer_is_skipped(self):
        arena = CombatArena()
        tower = arena.add_smart_tower((0.0, 0.0, 0.0))
        peer = arena.add_smart_tower((10.0, 0.0, 0.0))
        arena.session.registry.remove(peer.id)
        assert arena.session.registry.snapshot_peers(tower, 60.0, 0.0) == []


class TestFiring:
    def test_fires_at_predicted_point(self):
        arena = CombatArena()
        tower = arena.add_smart_tower(ai_type=TowerAIType.PREDICTOR)
        arena.set_player((0.0, 0.0, 30.0))
        arena.run_until(lambda a: tower.shots_fired > 0, max_ticks=40)
        shot = arena.host.projectiles_from(tower.id)[0]
        expected = (tower.predicted_target - tower.barrel).normalized()
        assert shot.direction.dot(expected) > 0.9
        assert shot.damage == pytest.approx(15.0)

    @pytest.mark.parametrize("ai_type", [TowerAIType.ADAPTIVE, TowerAIType.PREDICTOR])
    def test_fires_at_close_target_level_with_base(self, ai_type):
        arena = CombatArena()
        tower = arena.add_smart_tower(ai_type=ai_type)
        arena.set_player((6.0, 0.0, 0.0))
        arena.run_until(lambda a: tower.shots_fired > 0, max_ticks=200)
        assert tower.shots_fired == 1
        assert tower.alignment(tower.predicted_target) > 0.92

    def test_out_of_range_keeps_learning(self):
        arena = CombatArena()
        tower = arena.add_smart_tower()
        arena.set_player((0.0, 0.0, 80.0), velocity=(5.0, 0.0, 0.0))
        arena.run_ticks(10)
        assert not tower.engaged
        assert len(tower.history) == 10
        assert tower.shots_fired == 0
