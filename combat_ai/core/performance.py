"""Player performance sample scored by the difficulty controller."""

from __future__ import annotations

from dataclasses import dataclass, field


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass(slots=True)
class PlayerPerformance:
    """Cumulative session counters and the player's skill ratings."""

    survival_time: float = 0.0
    enemies_defeated: int = 0
    towers_destroyed: int = 0
    bosses_defeated: int = 0
    damage_received: float = 0.0
    accuracy_rating: float = 0.0        # [0, 1], reported by the weapon system
    evasion_rating: float = 0.0         # [0, 1], reported by the damage system
    session_start: float = 0.0
    level_completion_times: list[float] = field(default_factory=list)

    def overall_score(self) -> float:
        """Weighted performance score in [0, 1].

        Survival saturates at five minutes; combat saturates at a combat
        score of 10 (kills count 0.1, towers 0.3, bosses 1.0).
        """
        score = clamp01(self.survival_time / 300.0) * 0.3
        combat = self.enemies_defeated * 0.1 + self.towers_destroyed * 0.3 + self.bosses_defeated * 1.0
        score += clamp01(combat / 10.0) * 0.4
        score += self.accuracy_rating * 0.15
        score += self.evasion_rating * 0.15
        return clamp01(score)

    def to_dict(self) -> dict:
        return {
            "survival_time": round(self.survival_time, 2),
            "enemies_defeated": self.enemies_defeated,
            "towers_destroyed": self.towers_destroyed,
            "bosses_defeated": self.bosses_defeated,
            "damage_received": round(self.damage_received, 2),
            "accuracy_rating": self.accuracy_rating,
            "evasion_rating": self.evasion_rating,
            "score": round(self.overall_score(), 4),
            "level_completion_times": list(self.level_completion_times),
        }
