"""Session configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CombatConfig:
    """Immutable configuration for a combat session."""

    # Session
    seed: int = 42
    tick_dt: float = 0.05                  # Seconds of game time per tick
    max_ticks: int = 12000

    # Workers
    decision_workers: int = 1              # <= 1 runs tactic synthesis inline
    worker_timeout_seconds: float = 2.0    # Session seconds before a stalled synthesis falls back

    # Shared AI state
    profile_capacity: int = 20             # Player position window
    decision_cache_capacity: int = 50

    # Boss timing
    channel_duration: float = 2.0
    area_attack_stagger: float = 0.3       # Seconds between area-denial shots per attack point
    retreat_arrival_distance: float = 2.0
    emergency_health_fraction: float = 0.25
    reposition_range_factor: float = 0.8   # Optimal engagement distance as a fraction of attack range

    # Enemy
    arrival_distance: float = 0.5
    archer_retreat_distance: float = 10.0
    archer_min_band: float = 0.7           # Retreat when closer than this fraction of preferred distance

    # Towers
    tower_align_threshold: float = 0.95
    smart_align_threshold: float = 0.92
    ambusher_align_threshold: float = 0.98
    coordination_stagger: float = 0.3

    # Difficulty adaptation
    difficulty_enabled: bool = True
    adaptation_interval: float = 30.0
    increase_threshold: float = 0.75
    decrease_threshold: float = 0.35
    max_changes_per_level: int = 2
    starting_difficulty_index: int = 1     # "Normal"
    transition_delay: float = 1.0          # Before despawning old encounters
    transition_pause: float = 0.5          # Between despawn and respawn
    boss_decision_floor: float = 3.0
    tower_adaptation_floor: float = 1.0
    spawn_radius: float = 20.0

    # Arena anchors (x, y, z)
    player_start: tuple[float, float, float] = (0.0, 10.0, 0.0)
    enemy_anchor: tuple[float, float, float] = (40.0, 0.0, 40.0)
    tower_anchor: tuple[float, float, float] = (-30.0, 0.0, 30.0)
    boss_anchor: tuple[float, float, float] = (0.0, 0.0, 80.0)

    # Sandbox player flight
    player_velocity: tuple[float, float, float] = (6.0, 0.0, 8.0)
    player_weave_period: float = 2.0       # Seconds per lateral flip; 0 flies straight

    # Logging
    log_level: str = "INFO"
    replay_file: str = "replay.json"
