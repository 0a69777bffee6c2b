"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from combat_ai.api.dependencies import set_engine_manager
from combat_ai.api.engine_manager import EngineManager
from combat_ai.api.routes import api_router
from combat_ai.config import CombatConfig
from combat_ai.utils.logging import setup_logging

if TYPE_CHECKING:
    from combat_ai.core.ladder import DifficultyLevel
    from combat_ai.core.stats import StatTable

logger = logging.getLogger(__name__)


def create_app(
    config: CombatConfig | None = None,
    *,
    stat_table: StatTable | None = None,
    ladder: tuple[DifficultyLevel, ...] | None = None,
    autostart: bool = True,
) -> FastAPI:
    """Build and return the fully-configured FastAPI application."""
    if config is None:
        config = CombatConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(_config.log_level)
        manager = EngineManager(_config, stat_table=stat_table, ladder=ladder)
        set_engine_manager(manager)
        if autostart:
            manager.start()
        logger.info("API server started (autostart=%s).", autostart)
        yield
        manager.stop()
        set_engine_manager(None)
        logger.info("API server shutting down.")

    app = FastAPI(
        title="Combat AI Sandbox",
        description=(
            "Boss, enemy and tower AI running against a scripted player.\n\n"
            "## API Groups\n\n"
            "- **State** — Live agents, player pose and combat events\n"
            "- **Control** — Session lifecycle: start, pause, resume, step, reset\n"
            "- **Config** — Read-only session configuration\n"
            "- **Difficulty** — Current rung, player performance and collaborator reports\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "State", "description": "Agents, player pose and recent events from the latest snapshot."},
            {"name": "Control", "description": "Session lifecycle controls: start, pause, resume, single-step, and reset."},
            {"name": "Config", "description": "Read-only session configuration (seed, tick length, thresholds)."},
            {"name": "Difficulty", "description": "Difficulty ladder state plus kill, damage, accuracy and evasion reports."},
        ],
    )

    # CORS — allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app
