"""Exception taxonomy for the combat core.

Nothing here ever reaches a player-facing surface; callers log and recover.
"""

from __future__ import annotations


class CombatAIError(Exception):
    """Base class for all combat-core errors."""


class ConfigurationError(CombatAIError):
    """Empty ladder, unknown template or otherwise unusable configuration.

    Raised during validation; the owning feature is disabled instead of
    crashing the host.
    """


class TargetUnavailable(CombatAIError):
    """No player has been registered yet. Recoverable: re-acquired each tick."""


class DecisionSynthesisFailure(CombatAIError):
    """Tactic synthesis or application failed; the fallback heuristic runs."""

    def __init__(self, agent_id: int, reason: str) -> None:
        super().__init__(f"decision failed for agent {agent_id}: {reason}")
        self.agent_id = agent_id
        self.reason = reason
