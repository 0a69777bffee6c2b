"""Engine layer: host interface, timers, decision workers, roster and session."""

from combat_ai.engine.decision_pool import DecisionWorker
from combat_ai.engine.host import CombatHost, KinematicNavigator, Navigator, SandboxHost
from combat_ai.engine.roster import AgentRoster
from combat_ai.engine.timers import TimerQueue

__all__ = ["AgentRoster", "CombatHost", "DecisionWorker", "KinematicNavigator", "Navigator", "SandboxHost", "TimerQueue"]
