"""AI layer: agents, state machines, prediction and the boss decision layer."""

from combat_ai.ai.boss import BossAgent
from combat_ai.ai.decision_cache import DecisionCache
from combat_ai.ai.enemy import EnemyAgent
from combat_ai.ai.prediction import PredictionEngine
from combat_ai.ai.profile import PlayerProfile
from combat_ai.ai.smart_tower import SmartTower, TowerRegistry
from combat_ai.ai.tower import Tower

__all__ = [
    "BossAgent",
    "DecisionCache",
    "EnemyAgent",
    "PlayerProfile",
    "PredictionEngine",
    "SmartTower",
    "Tower",
    "TowerRegistry",
]
