"""Tests for the shared PlayerProfile.

Covers:
- Fixed-capacity window drops the oldest sample
- At most one sample per timestamp
- Aggression, altitude and evasion aggregates
- Tactic frequency map
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from combat_ai.ai.profile import PlayerProfile
from combat_ai.core.models import TargetPose, Vector3


def _pose(x: float = 0.0, y: float = 0.0, z: float = 0.0,
          vel: tuple[float, float, float] = (0.0, 0.0, 0.0), attacking: bool = False) -> TargetPose:
    return TargetPose(Vector3(x, y, z), Vector3(*vel), attacking)


class TestWindow:
    def test_capacity_keeps_latest_samples(self):
        profile = PlayerProfile(capacity=20)
        for i in range(25):
            profile.update(_pose(x=float(i)), now=float(i))
        assert profile.sample_count == 20
        path = profile.flight_path
        assert path[0].x == 5.0
        assert path[-1].x == 24.0
        assert profile.last_known_position == Vector3(24.0, 0.0, 0.0)

    def test_same_timestamp_is_ignored(self):
        profile = PlayerProfile()
        assert profile.update(_pose(x=1.0), now=1.0)
        assert not profile.update(_pose(x=2.0), now=1.0)
        assert profile.sample_count == 1
        assert profile.last_known_position.x == 1.0

    def test_older_timestamp_is_ignored(self):
        profile = PlayerProfile()
        profile.update(_pose(), now=2.0)
        assert not profile.update(_pose(), now=1.5)
        assert profile.last_update == 2.0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            PlayerProfile(capacity=0)


class TestAggregates:
    def test_aggression_is_attacking_fraction(self):
        profile = PlayerProfile()
        for i, attacking in enumerate([True, False, True, False]):
            profile.update(_pose(attacking=attacking), now=float(i))
        assert profile.aggression_score == pytest.approx(0.5)

    def test_average_altitude(self):
        profile = PlayerProfile()
        profile.update(_pose(y=10.0), now=1.0)
        profile.update(_pose(y=20.0), now=2.0)
        assert profile.average_altitude == pytest.approx(15.0)

    def test_straight_flight_is_not_evasive(self):
        profile = PlayerProfile()
        for i in range(6):
            profile.update(_pose(x=float(i), vel=(5.0, 0.0, 0.0)), now=float(i))
        assert profile.evasion_score == pytest.approx(0.0)
        assert profile.average_speed == pytest.approx(5.0)

    def test_dominant_heading_ignores_climb(self):
        profile = PlayerProfile()
        for i in range(4):
            profile.update(_pose(vel=(0.0, 3.0, 4.0)), now=float(i))
        assert profile.dominant_heading == Vector3(0.0, 0.0, 1.0)
        assert profile.to_dict()["dominant_heading"] == [0.0, 0.0, 1.0]

    def test_reversing_flight_is_fully_evasive(self):
        profile = PlayerProfile()
        for i in range(6):
            vx = 5.0 if i % 2 == 0 else -5.0
            profile.update(_pose(vel=(vx, 0.0, 0.0)), now=float(i))
        assert profile.evasion_score == pytest.approx(1.0)

    def test_evasion_stays_in_unit_range(self):
        profile = PlayerProfile()
        velocities = [(1, 0, 0), (0, 0, 1), (-1, 0, 0), (0, 0, -1), (1, 1, 0)]
        for i, v in enumerate(velocities):
            profile.update(_pose(vel=v), now=float(i))
        assert 0.0 <= profile.evasion_score <= 1.0


class TestTactics:
    def test_record_tactic_counts(self):
        profile = PlayerProfile()
        profile.record_tactic("area_denial")
        profile.record_tactic("area_denial")
        profile.record_tactic("special_ability")
        assert profile.preferred_tactics["area_denial"] == 2
        assert profile.to_dict()["preferred_tactics"] == {"area_denial": 2, "special_ability": 1}

    def test_reset_clears_everything(self):
        profile = PlayerProfile()
        profile.update(_pose(attacking=True), now=1.0)
        profile.record_tactic("area_denial")
        profile.reset()
        assert profile.sample_count == 0
        assert not profile.preferred_tactics
        assert profile.update(_pose(), now=1.0)
