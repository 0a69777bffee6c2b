"""Core data models, stat tables and the difficulty ladder."""

from combat_ai.core.enums import (
    AgentKind, BossState, BossType, Domain, EnemyState, EnemyType, Tactic, TowerAIType, TowerState,
)
from combat_ai.core.errors import CombatAIError, ConfigurationError, DecisionSynthesisFailure, TargetUnavailable
from combat_ai.core.ladder import DEFAULT_LADDER, DifficultyLevel
from combat_ai.core.models import TargetPose, Vector3
from combat_ai.core.performance import PlayerPerformance
from combat_ai.core.stats import BossStats, EnemyStats, SmartTowerStats, StatTable, TowerStats

__all__ = [
    "AgentKind",
    "BossState",
    "BossStats",
    "BossType",
    "CombatAIError",
    "ConfigurationError",
    "DEFAULT_LADDER",
    "DecisionSynthesisFailure",
    "DifficultyLevel",
    "Domain",
    "EnemyState",
    "EnemyStats",
    "EnemyType",
    "PlayerPerformance",
    "SmartTowerStats",
    "StatTable",
    "Tactic",
    "TargetPose",
    "TowerAIType",
    "TowerState",
    "TowerStats",
    "Vector3",
]
