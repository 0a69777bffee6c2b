"""Entry point: ``python -m combat_ai``.

Supports two modes:
  - ``python -m combat_ai``            → FastAPI server running the sandbox session
  - ``python -m combat_ai cli``        → Headless session, optional JSON replay
"""

from __future__ import annotations

import argparse
import logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Combat AI decision core sandbox")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the FastAPI server (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--seed", type=int, default=42)
    srv.add_argument("--workers", type=int, default=1)
    srv.add_argument("--stats", type=str, default=None, help="Stat table JSON file")
    srv.add_argument("--ladder", type=str, default=None, help="Difficulty ladder JSON file")
    srv.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    # --- Headless CLI mode ---
    cli = sub.add_parser("cli", help="Run a headless combat session")
    cli.add_argument("--seed", type=int, default=42)
    cli.add_argument("--ticks", type=int, default=2400)
    cli.add_argument("--workers", type=int, default=1)
    cli.add_argument("--difficulty", type=int, default=1, help="Starting rung index")
    cli.add_argument("--no-adapt", action="store_true", help="Disable difficulty adaptation")
    cli.add_argument("--stats", type=str, default=None, help="Stat table JSON file")
    cli.add_argument("--ladder", type=str, default=None, help="Difficulty ladder JSON file")
    cli.add_argument("--replay", type=str, default=None, help="Write a JSON replay to this path")
    cli.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    return parser


def _load_tables(args: argparse.Namespace):
    from combat_ai.core.ladder import load_ladder
    from combat_ai.core.stats import load_stat_table

    stat_table = load_stat_table(args.stats) if args.stats else None
    ladder = load_ladder(args.ladder) if args.ladder else None
    return stat_table, ladder


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from combat_ai.api.app import create_app
    from combat_ai.config import CombatConfig

    config = CombatConfig(
        seed=args.seed,
        decision_workers=args.workers,
        log_level=args.log_level,
    )
    stat_table, ladder = _load_tables(args)
    app = create_app(config, stat_table=stat_table, ladder=ladder)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_cli(args: argparse.Namespace) -> None:
    from combat_ai.config import CombatConfig
    from combat_ai.engine.session import CombatSession
    from combat_ai.utils.logging import setup_logging
    from combat_ai.utils.replay import ReplayRecorder

    config = CombatConfig(
        seed=args.seed,
        max_ticks=args.ticks,
        decision_workers=args.workers,
        starting_difficulty_index=args.difficulty,
        difficulty_enabled=not args.no_adapt,
        log_level=args.log_level,
        replay_file=args.replay or "",
    )
    setup_logging(config.log_level)

    stat_table, ladder = _load_tables(args)
    recorder = ReplayRecorder(config.replay_file, config.seed) if config.replay_file else None
    kwargs = {"ladder": ladder} if ladder is not None else {}
    session = CombatSession(config, stat_table=stat_table, recorder=recorder, **kwargs)
    session.register_player()
    session.populate()

    try:
        session.run()
    finally:
        session.shutdown()

    perf = session.difficulty.performance
    logger.info("Done at tick %d: difficulty=%s score=%.2f cache=%s",
                session.tick,
                session.difficulty.current_level.name if session.difficulty.current_level else "-",
                perf.overall_score(), session.cache.stats())
    if recorder:
        logger.info("Replay written to %s", config.replay_file)


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None or args.command == "serve":
        if args.command is None:
            args = parser.parse_args(["serve"])
        _run_server(args)
    elif args.command == "cli":
        _run_cli(args)


if __name__ == "__main__":
    main()
