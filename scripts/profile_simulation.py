#!/usr/bin/env python3
"""Headless combat session profiler.

Usage:
    python scripts/profile_simulation.py --ticks 2000 --seed 42
    python scripts/profile_simulation.py --ticks 4000 --difficulty 3 --cprofile profile.prof
    python scripts/profile_simulation.py --ticks 2000 --memory

Reports:
    - Per-tick timing statistics (min, max, p50, p95, p99)
    - Agent count over time
    - Decision cache hit rate and boss decision counters
    - Optional: cProfile dump for flame graph generation
    - Optional: tracemalloc memory snapshot
"""

from __future__ import annotations

import argparse
import cProfile
import io
import os
import pstats
import statistics
import sys
import time
import tracemalloc

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from combat_ai.ai.boss import BossAgent
from combat_ai.config import CombatConfig
from combat_ai.engine.session import CombatSession


def _run_session(cfg: CombatConfig, num_ticks: int) -> dict:
    session = CombatSession(cfg)
    session.register_player()
    session.populate()

    tick_times: list[float] = []
    agent_counts: list[int] = []
    bosses: dict[int, BossAgent] = {}

    for _ in range(num_ticks):
        t0 = time.perf_counter()
        if not session.tick_once():
            break
        tick_times.append(time.perf_counter() - t0)
        agent_counts.append(len(session.roster))
        for agent in session.roster:
            if isinstance(agent, BossAgent):
                bosses[agent.id] = agent

    session.shutdown()
    return {
        "tick_times": tick_times,
        "agent_counts": agent_counts,
        "cache": session.cache.stats(),
        "bosses": list(bosses.values()),
        "difficulty": session.difficulty.to_dict(),
    }


def _percentile(data: list[float], p: float) -> float:
    if not data:
        return 0.0
    ordered = sorted(data)
    k = (len(ordered) - 1) * (p / 100.0)
    lo = int(k)
    hi = lo + 1
    if hi >= len(ordered):
        return ordered[lo]
    return ordered[lo] + (k - lo) * (ordered[hi] - ordered[lo])


def _print_report(data: dict, wall_time: float) -> None:
    tick_times = data["tick_times"]
    agent_counts = data["agent_counts"]
    num_ticks = len(tick_times)

    if num_ticks == 0:
        print("No ticks executed.")
        return

    print("\n" + "=" * 70)
    print("  COMBAT SESSION PERFORMANCE REPORT")
    print("=" * 70)

    print(f"\n  Ticks executed:    {num_ticks}")
    print(f"  Wall clock time:   {wall_time:.3f}s")
    print(f"  Throughput:        {num_ticks / wall_time:.1f} ticks/sec")
    print(f"  Avg tick time:     {statistics.mean(tick_times) * 1000:.3f}ms")

    print(f"\n  Agents (start):    {agent_counts[0]}")
    print(f"  Agents (end):      {agent_counts[-1]}")
    print(f"  Agents (peak):     {max(agent_counts)}")

    print(f"\n  {'Metric':<16} {'Time (ms)':>10}")
    print(f"  {'-' * 16} {'-' * 10}")
    print(f"  {'Min':<16} {min(tick_times) * 1000:>10.3f}")
    print(f"  {'P50 (median)':<16} {_percentile(tick_times, 50) * 1000:>10.3f}")
    print(f"  {'P95':<16} {_percentile(tick_times, 95) * 1000:>10.3f}")
    print(f"  {'P99':<16} {_percentile(tick_times, 99) * 1000:>10.3f}")
    print(f"  {'Max':<16} {max(tick_times) * 1000:>10.3f}")

    cache = data["cache"]
    lookups = cache["hits"] + cache["misses"]
    rate = cache["hits"] / lookups * 100 if lookups else 0.0
    print(f"\n  Decision cache:    {cache['size']}/{cache['capacity']} entries, "
          f"{rate:.1f}% hit rate, {cache['evictions']} evictions")

    for boss in data["bosses"]:
        layer = boss.decision
        print(f"  {boss.name:<18} decisions={layer.decisions_made} hits={layer.cache_hits} "
              f"fallbacks={layer.fallbacks} discarded={layer.discarded}")

    difficulty = data["difficulty"]
    print(f"\n  Final difficulty:  {difficulty['level']} "
          f"(score {difficulty['performance']['score']:.3f})")

    print("\n" + "=" * 70)


def main() -> None:
    parser = argparse.ArgumentParser(description="Profile a headless combat session")
    parser.add_argument("--ticks", type=int, default=2000, help="Number of ticks to run")
    parser.add_argument("--seed", type=int, default=42, help="Session seed")
    parser.add_argument("--difficulty", type=int, default=1, help="Starting rung index")
    parser.add_argument("--workers", type=int, default=1, help="Decision workers (1 runs inline)")
    parser.add_argument("--cprofile", type=str, default=None, help="Save cProfile output to file")
    parser.add_argument("--memory", action="store_true", help="Enable tracemalloc memory profiling")
    args = parser.parse_args()

    cfg = CombatConfig(
        seed=args.seed,
        max_ticks=args.ticks + 10,
        decision_workers=args.workers,
        starting_difficulty_index=args.difficulty,
        log_level="WARNING",
    )

    print(f"Profiling: {args.ticks} ticks, seed={args.seed}, "
          f"difficulty={args.difficulty}, workers={args.workers}")

    if args.memory:
        tracemalloc.start()

    profiler = None
    if args.cprofile:
        profiler = cProfile.Profile()
        profiler.enable()

    wall_start = time.perf_counter()
    data = _run_session(cfg, args.ticks)
    wall_time = time.perf_counter() - wall_start

    if profiler:
        profiler.disable()

    _print_report(data, wall_time)

    if profiler and args.cprofile:
        profiler.dump_stats(args.cprofile)
        print(f"\n  cProfile data saved to: {args.cprofile}")
        print(f"\n  Top 20 functions by cumulative time:")
        stream = io.StringIO()
        ps = pstats.Stats(profiler, stream=stream)
        ps.sort_stats("cumulative")
        ps.print_stats(20)
        print(stream.getvalue())

    if args.memory:
        snapshot = tracemalloc.take_snapshot()
        print("\n  Top 15 memory allocations by size:")
        for stat in snapshot.statistics("lineno")[:15]:
            print(f"  {str(stat.traceback):<60} {stat.size / 1024:>8.1f} KB")
        current, peak = tracemalloc.get_traced_memory()
        print(f"\n  Current memory: {current / 1024:.1f} KB")
        print(f"  Peak memory:    {peak / 1024:.1f} KB")
        tracemalloc.stop()


if __name__ == "__main__":
    main()
