"""PlayerProfile — rolling behavior model of the player shared by all AIs.

Written once per tick by the session (single writer); agents only read it,
except for the boss decision layer recording which tactic it picked.
"""

from __future__ import annotations

import logging
from collections import Counter, deque
from dataclasses import dataclass

from combat_ai.core.models import ZERO, TargetPose, Vector3

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProfileSample:
    position: Vector3
    velocity: Vector3
    attacking: bool
    timestamp: float


class PlayerProfile:
    """Fixed-capacity window of player samples plus derived aggregates."""

    __slots__ = (
        "_samples",
        "_last_update",
        "last_known_position",
        "average_position",
        "average_altitude",
        "average_speed",
        "dominant_heading",
        "evasion_score",
        "aggression_score",
        "preferred_tactics",
    )

    def __init__(self, capacity: int = 20) -> None:
        if capacity < 1:
            raise ValueError("profile capacity must be positive")
        self._samples: deque[ProfileSample] = deque(maxlen=capacity)
        self._last_update: float | None = None
        self.last_known_position: Vector3 = ZERO
        self.average_position: Vector3 = ZERO
        self.average_altitude: float = 0.0
        self.average_speed: float = 0.0
        self.dominant_heading: Vector3 = ZERO
        self.evasion_score: float = 0.0
        self.aggression_score: float = 0.0
        self.preferred_tactics: Counter[str] = Counter()

    # -- properties --

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def flight_path(self) -> list[Vector3]:
        return [s.position for s in self._samples]

    @property
    def has_data(self) -> bool:
        return bool(self._samples)

    @property
    def last_update(self) -> float | None:
        return self._last_update

    # -- mutation --

    def update(self, pose: TargetPose, now: float) -> bool:
        """Append a sample for *now*. Returns False if *now* was already recorded."""
        if self._last_update is not None and now <= self._last_update:
            return False
        self._last_update = now
        self._samples.append(ProfileSample(pose.position, pose.velocity, pose.attacking, now))
        self.last_known_position = pose.position
        self._recompute()
        return True

    def record_tactic(self, tactic: str) -> None:
        self.preferred_tactics[tactic] += 1

    def reset(self) -> None:
        self._samples.clear()
        self._last_update = None
        self.preferred_tactics.clear()
        self.evasion_score = 0.0
        self.aggression_score = 0.0

    # -- derived metrics --

    def _recompute(self) -> None:
        samples = self._samples
        n = len(samples)
        sx = sy = sz = 0.0
        speed_sum = 0.0
        hx = hz = 0.0
        attacking = 0
        for s in samples:
            sx += s.position.x
            sy += s.position.y
            sz += s.position.z
            speed_sum += s.velocity.length()
            flat = s.velocity.flattened().normalized()
            hx += flat.x
            hz += flat.z
            if s.attacking:
                attacking += 1

        self.average_position = Vector3(sx / n, sy / n, sz / n)
        self.average_altitude = sy / n
        self.average_speed = speed_sum / n
        self.dominant_heading = Vector3(hx, 0.0, hz).normalized()
        self.aggression_score = attacking / n
        self.evasion_score = self._heading_variance()

    def _heading_variance(self) -> float:
        """Mean normalized direction change between consecutive samples, in [0, 1]."""
        if len(self._samples) < 2:
            return 0.0
        total = 0.0
        pairs = 0
        prev = None
        for s in self._samples:
            v = s.velocity.normalized()
            if v == ZERO:
                continue
            if prev is not None:
                total += (1.0 - prev.dot(v)) * 0.5
                pairs += 1
            prev = v
        if pairs == 0:
            return 0.0
        return max(0.0, min(1.0, total / pairs))

    def to_dict(self) -> dict:
        return {
            "samples": len(self._samples),
            "last_known_position": self.last_known_position.to_list(),
            "average_altitude": round(self.average_altitude, 2),
            "average_speed": round(self.average_speed, 2),
            "dominant_heading": self.dominant_heading.to_list(),
            "evasion_score": round(self.evasion_score, 3),
            "aggression_score": round(self.aggression_score, 3),
            "preferred_tactics": dict(self.preferred_tactics),
        }
