"""EngineManager — runs the CombatSession on a background thread.

The API reads from an atomically-swapped immutable CombatSnapshot; the
session is mutated exclusively on the engine thread.  Requests that change
the session (damage, collaborator reports) are queued as commands and
drained at the start of the next tick.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import TYPE_CHECKING, Callable

from combat_ai.core.snapshot import CombatSnapshot
from combat_ai.engine.session import CombatSession
from combat_ai.utils.event_log import EventLog

if TYPE_CHECKING:
    from combat_ai.config import CombatConfig
    from combat_ai.core.ladder import DifficultyLevel
    from combat_ai.core.stats import StatTable

logger = logging.getLogger(__name__)

Command = Callable[[CombatSession], None]


class EngineManager:
    """Manages the combat session lifecycle on a background thread.

    Provides thread-safe access to:
      - latest snapshot (atomic reference swap)
      - event log (lock-guarded ring buffer)
      - control commands (start / pause / resume / step / reset)
      - queued session commands
    """

    def __init__(
        self,
        config: CombatConfig,
        stat_table: StatTable | None = None,
        ladder: tuple[DifficultyLevel, ...] | None = None,
    ) -> None:
        self.config = config
        self._stat_table = stat_table
        self._ladder = ladder
        self._tick_rate: float = config.tick_dt

        self._session: CombatSession | None = None
        self._commands: queue.SimpleQueue[Command] = queue.SimpleQueue()

        # Thread-safe shared state
        self._snapshot_lock = threading.Lock()
        self._latest_snapshot: CombatSnapshot | None = None
        self._event_log = EventLog()

        # Control
        self._thread: threading.Thread | None = None
        self._running = threading.Event()
        self._paused = threading.Event()
        self._step_requested = threading.Event()
        self._stop_requested = threading.Event()

        self._build()

    # -- public properties --

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def tick_rate(self) -> float:
        return self._tick_rate

    @tick_rate.setter
    def tick_rate(self, value: float) -> None:
        self._tick_rate = max(0.01, min(value, 2.0))

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    # -- snapshot access --

    def get_snapshot(self) -> CombatSnapshot | None:
        with self._snapshot_lock:
            return self._latest_snapshot

    # -- commands --

    def submit(self, command: Command) -> None:
        """Queue *command* to run on the engine thread before the next tick."""
        self._commands.put(command)

    def _drain_commands(self) -> int:
        assert self._session is not None
        count = 0
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return count
            command(self._session)
            count += 1

    # -- lifecycle --

    def start(self) -> None:
        if self._running.is_set():
            return
        self._stop_requested.clear()
        self._paused.clear()
        self._running.set()
        self._thread = threading.Thread(target=self._run_loop, name="engine-loop", daemon=True)
        self._thread.start()
        logger.info("EngineManager started (tick_rate=%.3fs)", self._tick_rate)

    def pause(self) -> None:
        self._paused.set()
        logger.info("EngineManager paused at tick %d", self._current_tick())

    def resume(self) -> None:
        self._paused.clear()
        logger.info("EngineManager resumed at tick %d", self._current_tick())

    def step(self) -> None:
        """Execute exactly one tick (must be paused)."""
        if not self._paused.is_set():
            self.pause()
        self._step_requested.set()

    def stop(self) -> None:
        self._stop_requested.set()
        self._paused.clear()
        self._running.clear()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        if self._session:
            self._session.shutdown()
        logger.info("EngineManager stopped.")

    def reset(self) -> None:
        """Stop, rebuild, and leave stopped ready to start."""
        self.stop()
        self._event_log.reset()
        self._commands = queue.SimpleQueue()
        self._build()
        logger.info("EngineManager reset.")

    # -- internals --

    def _build(self) -> None:
        """Construct the session, register the sandbox player and spawn the first rung."""
        kwargs = {}
        if self._ladder is not None:
            kwargs["ladder"] = self._ladder
        self._session = CombatSession(self.config, stat_table=self._stat_table, **kwargs)
        self._session.register_player()
        self._session.populate()
        self._publish_snapshot_and_events()

    def _run_loop(self) -> None:
        """Background thread main loop."""
        logger.info("Engine thread started.")
        assert self._session is not None

        while not self._stop_requested.is_set():
            # Handle pause
            if self._paused.is_set() and not self._step_requested.is_set():
                time.sleep(0.01)
                continue

            single_step = self._step_requested.is_set()
            if single_step:
                self._step_requested.clear()

            self._drain_commands()
            can_continue = self._session.tick_once()
            self._publish_snapshot_and_events()

            if not can_continue:
                logger.info("Session ended at tick %d.", self._session.tick)
                break

            # Rate limiting
            if not single_step:
                time.sleep(self._tick_rate)

        self._running.clear()
        logger.info("Engine thread exited.")

    def _publish_snapshot_and_events(self) -> None:
        """Swap snapshot + push the last tick's events."""
        assert self._session is not None
        snap = self._session.snapshot()
        with self._snapshot_lock:
            self._latest_snapshot = snap

        events = self._session.tick_events
        if events:
            self._event_log.publish(events)

    def _current_tick(self) -> int:
        if self._session:
            return self._session.tick
        return 0
