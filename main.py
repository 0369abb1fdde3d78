#!/usr/bin/env python3
"""
Workout Analytics - CLI Entry Point

Usage:
    python main.py progression HISTORY.csv [--exercise-id ID] [--name NAME] [--target-low 8] [--target-high 12]
    python main.py run TRACE.csv [--weight-kg W] [--max-hr H]
    python main.py start-weight ONE_REP_MAX [--reps R]
    python main.py demo [--seed S]
    python main.py params

All commands accept --params CONFIG.json and --verbose.
"""

import argparse
import json
import logging
from typing import Any, Dict, List, Optional

from workout_core.engine import WorkoutAnalyticsEngine
from workout_core.one_rep_max import percentage_table
from workout_data.loaders import load_exercise_history, load_route_points, splits_to_dataframe
from workout_data.synthetic import generate_history, generate_route, HISTORY_PATTERNS

logger = logging.getLogger(__name__)


def build_engine(params_path: Optional[str] = None) -> WorkoutAnalyticsEngine:
    """Create the engine from a JSON config file, or with defaults."""
    if params_path is None:
        return WorkoutAnalyticsEngine()

    with open(params_path) as f:
        config = json.load(f)
    logger.info("Loaded parameters from %s", params_path)
    return WorkoutAnalyticsEngine.from_dict(config)


def run_progression(
    engine: WorkoutAnalyticsEngine,
    history_path: str,
    exercise_id: Optional[str] = None,
    name: Optional[str] = None,
    target_reps: Optional[tuple] = None
) -> List[Dict[str, Any]]:
    """Suggest the next session for each exercise in a history CSV."""
    history = load_exercise_history(history_path)

    if exercise_id is not None:
        history = [e for e in history if str(e.exercise_id) == str(exercise_id)]
        suggestions = [engine.suggest(exercise_id, name or str(exercise_id), history, target_reps)]
    else:
        suggestions = engine.suggest_all(history)

    results = [s.to_dict() for s in suggestions]
    print(json.dumps(results, indent=2, default=str))
    return results


def run_run_summary(
    engine: WorkoutAnalyticsEngine,
    trace_path: str,
    weight_kg: Optional[float] = None,
    max_hr: Optional[int] = None
) -> Dict[str, Any]:
    """Summarize one run from a GPS trace CSV."""
    points = load_route_points(trace_path)
    summary = engine.analyze_run(points, weight_kg, max_hr)

    result = summary.to_dict()
    print(json.dumps({k: v for k, v in result.items() if k != 'splits'}, indent=2, default=str))
    if summary.splits:
        print()
        print(splits_to_dataframe(summary.splits).to_string(index=False))
    return result


def run_start_weight(engine: WorkoutAnalyticsEngine, one_rep_max: float, reps: int) -> float:
    """Print a conservative starting weight and the loading table for a 1RM."""
    weight = engine.starting_weight(one_rep_max, reps)
    print(f"Starting weight for {reps} reps at 1RM {one_rep_max:g}: {weight:g}")
    print()
    print("Reps | % 1RM | Weight")
    print("-" * 24)
    for r, fraction, w in percentage_table(one_rep_max):
        print(f"{r:4d} | {fraction:5.0%} | {w:6.1f}")
    return weight


def run_demo(engine: WorkoutAnalyticsEngine, seed: int = 42) -> Dict[str, Any]:
    """Run both engines over synthetic data."""
    print("Strength progression on synthetic histories:")
    suggestions = {}
    for i, pattern in enumerate(HISTORY_PATTERNS, start=1):
        history = generate_history(6, exercise_id=i, pattern=pattern, seed=seed)
        suggestion = engine.suggest(i, pattern, history)
        suggestions[pattern] = suggestion.to_dict()
        print(f"  {pattern:12s} -> {suggestion.suggestion_type.value:16s} "
              f"{suggestion.suggested_weight:6.1f} x {suggestion.suggested_reps:2d} "
              f"(confidence {suggestion.confidence:.2f})")

    print("\nSynthetic 5.5 km run:")
    points = generate_route(
        5500, pace_s_per_km=300, hr_noise=5, altitude=50, altitude_noise=0.5,
        pace_noise=0.05, cadence=170, seed=seed
    )
    summary = engine.analyze_run(points, weight_kg=70, max_heart_rate=190)
    print(f"  Distance: {summary.distance_m:.0f} m, pace {summary.to_dict()['avg_pace']}/km, "
          f"{summary.calories} kcal, VO2max {summary.vo2max_estimate or 0:.1f}")
    print(splits_to_dataframe(summary.splits).to_string(index=False))

    return {'suggestions': suggestions, 'run': summary.to_dict()}


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description='Workout Analytics Engines')
    parser.add_argument('--params', default=None, help='JSON parameter file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Progression command
    prog_parser = subparsers.add_parser('progression', help='Suggest next strength session')
    prog_parser.add_argument('history', help='Exercise history CSV')
    prog_parser.add_argument('--exercise-id', default=None, help='Only this exercise')
    prog_parser.add_argument('--name', default=None, help='Exercise display name')
    prog_parser.add_argument('--target-low', type=int, default=None, help='Bottom of rep range')
    prog_parser.add_argument('--target-high', type=int, default=None, help='Top of rep range')

    # Run command
    run_parser = subparsers.add_parser('run', help='Summarize a run from a GPS trace')
    run_parser.add_argument('trace', help='Route points CSV')
    run_parser.add_argument('--weight-kg', type=float, default=None, help='Body weight')
    run_parser.add_argument('--max-hr', type=int, default=None, help='Maximum heart rate')

    # Starting weight command
    sw_parser = subparsers.add_parser('start-weight', help='Conservative starting weight')
    sw_parser.add_argument('one_rep_max', type=float, help='Estimated 1RM')
    sw_parser.add_argument('--reps', type=int, default=10, help='Target reps')

    # Demo command
    demo_parser = subparsers.add_parser('demo', help='Run engines on synthetic data')
    demo_parser.add_argument('--seed', type=int, default=42, help='Random seed')

    # Params command
    subparsers.add_parser('params', help='Print the active parameters')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    if args.command is None:
        parser.print_help()
        return None

    engine = build_engine(args.params)

    if args.command == 'progression':
        target = None
        if args.target_low is not None or args.target_high is not None:
            low = args.target_low if args.target_low is not None else engine.target_reps[0]
            high = args.target_high if args.target_high is not None else engine.target_reps[1]
            target = (low, high)
        return run_progression(engine, args.history, args.exercise_id, args.name, target)
    elif args.command == 'run':
        return run_run_summary(engine, args.trace, args.weight_kg, args.max_hr)
    elif args.command == 'start-weight':
        return run_start_weight(engine, args.one_rep_max, args.reps)
    elif args.command == 'demo':
        return run_demo(engine, args.seed)
    elif args.command == 'params':
        config = engine.to_dict()
        print(json.dumps(config, indent=2))
        return config


if __name__ == '__main__':
    main()
