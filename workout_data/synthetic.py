"""
Synthetic workout data generation.

Generates realistic inputs for the engines:
- GPS traces along a straight north-bound line with pace, heart rate
  and altitude variance
- Strength session histories following progressing, stalled or
  declining patterns
"""

from datetime import datetime, timedelta
from typing import List, Optional
import math

import numpy as np

from workout_core.geo import RoutePoint, EARTH_RADIUS_M
from workout_core.one_rep_max import calculate
from workout_core.progression import ExerciseHistoryEntry


METERS_PER_DEGREE_LAT = EARTH_RADIUS_M * math.pi / 180.0

HISTORY_PATTERNS = ('progressing', 'stalled', 'declining')


def generate_route(
    total_distance_m: float,
    pace_s_per_km: float = 300.0,
    spacing_m: float = 100.0,
    start_lat: float = 0.0,
    start_lon: float = 0.0,
    start_timestamp: int = 0,
    heart_rate: Optional[int] = 150,
    hr_noise: float = 0.0,
    altitude: Optional[float] = 0.0,
    altitude_noise: float = 0.0,
    pace_noise: float = 0.0,
    cadence: Optional[int] = None,
    seed: Optional[int] = None
) -> List[RoutePoint]:
    """
    Generate a GPS trace heading due north.

    Args:
        total_distance_m: Length of the trace
        pace_s_per_km: Mean pace
        spacing_m: Distance between samples
        start_lat, start_lon: Starting coordinate in degrees
        start_timestamp: Timestamp of the first sample (ms)
        heart_rate: Mean heart rate, or None for no HR samples
        hr_noise: Standard deviation of heart rate (bpm)
        altitude: Base altitude, or None for no altitude samples
        altitude_noise: Standard deviation of the altitude random walk (m)
        pace_noise: Relative standard deviation of per-segment pace
        cadence: Constant cadence, or None
        seed: Random seed

    Returns:
        List of RoutePoint in timestamp order
    """
    if seed is not None:
        np.random.seed(seed)

    n_segments = max(0, int(math.ceil(total_distance_m / spacing_m)))
    offsets = np.minimum(np.arange(n_segments + 1) * spacing_m, total_distance_m)
    segment_lengths = np.diff(offsets)

    segment_pace = pace_s_per_km * (1 + pace_noise * np.random.randn(len(segment_lengths)))
    segment_pace = np.clip(segment_pace, pace_s_per_km * 0.5, None)
    segment_ms = np.round(segment_lengths / 1000.0 * segment_pace * 1000).astype(int)
    timestamps = start_timestamp + np.concatenate([[0], np.cumsum(segment_ms)])

    altitudes = None
    if altitude is not None:
        walk = np.cumsum(altitude_noise * np.random.randn(len(offsets)))
        altitudes = altitude + walk

    points = []
    for i, offset in enumerate(offsets):
        hr = None
        if heart_rate is not None:
            hr = int(round(heart_rate + hr_noise * np.random.randn()))
        points.append(RoutePoint(
            latitude=start_lat + offset / METERS_PER_DEGREE_LAT,
            longitude=start_lon,
            timestamp=int(timestamps[i]),
            altitude=float(altitudes[i]) if altitudes is not None else None,
            heart_rate=hr,
            cadence=cadence,
        ))

    return points


def generate_history(
    n_sessions: int,
    exercise_id: int = 1,
    pattern: str = 'progressing',
    start_weight: float = 60.0,
    start_reps: int = 8,
    rep_range: tuple = (8, 12),
    weight_increment: float = 2.5,
    start_date: Optional[datetime] = None,
    days_between: int = 3,
    seed: Optional[int] = None
) -> List[ExerciseHistoryEntry]:
    """
    Generate a strength history for one exercise, most recent first.

    Patterns:
        progressing: one rep per session, weight added at the top of the range
        stalled: reps fluctuate around the start without progressing
        declining: reps drop by one per session at constant weight

    Args:
        n_sessions: Number of sessions
        exercise_id: Exercise identifier
        pattern: One of HISTORY_PATTERNS
        start_weight: Weight of the first session
        start_reps: Reps of the first session
        rep_range: Inclusive rep range used by the progressing pattern
        weight_increment: Weight added when the range tops out
        start_date: Date of the first session (defaults to 2024-01-01)
        days_between: Days between sessions
        seed: Random seed

    Returns:
        List of ExerciseHistoryEntry, newest first
    """
    if pattern not in HISTORY_PATTERNS:
        raise ValueError(f"Pattern must be one of {HISTORY_PATTERNS}, got '{pattern}'")
    if seed is not None:
        np.random.seed(seed)
    if start_date is None:
        start_date = datetime(2024, 1, 1)

    low, high = rep_range
    weight = start_weight
    reps = start_reps
    entries = []

    for i in range(n_sessions):
        entries.append(ExerciseHistoryEntry(
            exercise_id=exercise_id,
            date=start_date + timedelta(days=i * days_between),
            best_weight=weight,
            best_reps=reps,
            estimated_one_rep_max=calculate(weight, reps),
            total_volume=weight * reps * 3,
            total_sets=3,
            total_reps=reps * 3,
        ))

        if pattern == 'progressing':
            if reps >= high:
                weight += weight_increment
                reps = low
            else:
                reps += 1
        elif pattern == 'stalled':
            reps = int(np.clip(start_reps + np.random.choice([-1, 0]), 1, None))
        else:
            reps = max(1, reps - 1)

    return list(reversed(entries))
