"""FastAPI dependency injection — the process-wide EngineManager."""

from __future__ import annotations

from combat_ai.api.engine_manager import EngineManager

_manager: EngineManager | None = None


def set_engine_manager(manager: EngineManager | None) -> None:
    """Install (or with None, clear) the manager served to route handlers."""
    global _manager
    _manager = manager


def get_engine_manager() -> EngineManager:
    if _manager is None:
        raise RuntimeError("No combat session is being served; start the app through create_app().")
    return _manager
