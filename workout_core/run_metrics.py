"""
Run Metrics Engine: pace, calories, kilometre splits, heart rate and VO2max.

Based on:
- Keytel et al. (2005): heart-rate based energy expenditure
- Cooper, K. (1968): 12-minute run test for VO2max
- ACSM running equation (speed × 3.5 scaled by %HRmax)

All trace-walking calculations run on a track ordered by timestamp with
duplicate timestamps removed (see geo.prepare_track).
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List, Sequence, Tuple
import logging
import math

import numpy as np

from .geo import (
    RoutePoint,
    prepare_track,
    segment_distances,
    total_distance,
    elevation_gain,
    elevation_loss,
)

logger = logging.getLogger(__name__)

# Float slack when comparing summed segment lengths to a split boundary
SPLIT_TOLERANCE_M = 1e-6


@dataclass
class RunMetricsParams:
    """Tunable constants for run metrics."""

    split_distance_m: float = 1000.0
    default_weight_kg: float = 70.0
    calories_per_kg_km: float = 1.036       # Distance-based fallback

    # HR-based VO2max needs a meaningful effort
    vo2max_min_distance_m: float = 1000.0
    vo2max_min_duration_ms: int = 60_000

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'RunMetricsParams':
        """Create parameters from dictionary."""
        return cls(**d)

    def validate(self) -> Tuple[bool, str]:
        """Validate parameter constraints."""
        issues = []

        if self.split_distance_m <= 0:
            issues.append("Split distance must be positive")
        if self.default_weight_kg <= 0:
            issues.append("Default weight must be positive")
        if self.calories_per_kg_km <= 0:
            issues.append("Calories per kg per km must be positive")
        if self.vo2max_min_distance_m < 0 or self.vo2max_min_duration_ms < 0:
            issues.append("VO2max minimums must be non-negative")

        if issues:
            return False, "; ".join(issues)
        return True, "Valid"


def format_pace(seconds_per_km: float) -> str:
    """Format pace as m:ss, or --:-- when undefined."""
    if seconds_per_km is None or not math.isfinite(seconds_per_km) or seconds_per_km <= 0:
        return "--:--"
    minutes = int(seconds_per_km // 60)
    seconds = int(seconds_per_km % 60)
    return f"{minutes}:{seconds:02d}"


def format_duration(duration_millis: int) -> str:
    """Format a duration as m:ss (h:mm:ss past the hour)."""
    total_seconds = max(0, int(duration_millis // 1000))
    hours, rem = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


@dataclass(frozen=True)
class Split:
    """One completed kilometre of a run."""
    kilometer: int
    duration_millis: int
    pace_seconds_per_km: float
    elevation_change: float = 0.0
    avg_heart_rate: Optional[int] = None

    @property
    def pace_formatted(self) -> str:
        return format_pace(self.pace_seconds_per_km)

    @property
    def duration_formatted(self) -> str:
        return format_duration(self.duration_millis)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RunSummary:
    """Aggregate metrics for one completed run."""
    distance_m: float
    duration_ms: int
    avg_pace_seconds_per_km: float
    calories: int
    splits: List[Split] = field(default_factory=list)
    avg_heart_rate: Optional[int] = None
    max_heart_rate: Optional[int] = None
    avg_cadence: Optional[int] = None
    elevation_gain_m: float = 0.0
    elevation_loss_m: float = 0.0
    vo2max_estimate: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['avg_pace'] = format_pace(self.avg_pace_seconds_per_km)
        d['duration'] = format_duration(self.duration_ms)
        return d


# =============================================================================
# Pace and energy
# =============================================================================

def calculate_pace(distance_m: float, duration_ms: float) -> float:
    """
    Average pace.

    Args:
        distance_m: Distance covered in metres
        duration_ms: Elapsed time in milliseconds

    Returns:
        Seconds per kilometre, or 0.0 if either input is non-positive
    """
    if distance_m <= 0 or duration_ms <= 0:
        return 0.0
    return (duration_ms / 1000.0) / (distance_m / 1000.0)


def calculate_calories(
    distance_m: float,
    duration_ms: float,
    weight_kg: Optional[float] = None,
    avg_heart_rate: Optional[int] = None,
    params: Optional[RunMetricsParams] = None
) -> int:
    """
    Estimate energy expenditure for a run.

    Uses the heart-rate formula when an average heart rate is known:
        kcal = (0.6309·HR + 0.1988·W + 0.2017·HR - 55.0969) × min / 4.184
    otherwise falls back to distance × weight × 1.036.

    Args:
        distance_m: Distance in metres
        duration_ms: Duration in milliseconds
        weight_kg: Body weight (defaults to params.default_weight_kg)
        avg_heart_rate: Average heart rate in bpm

    Returns:
        Non-negative whole kilocalories
    """
    if params is None:
        params = RunMetricsParams()

    weight = weight_kg if weight_kg is not None and weight_kg > 0 else params.default_weight_kg

    if avg_heart_rate is not None and avg_heart_rate > 0:
        duration_min = max(0.0, duration_ms) / 60_000.0
        kcal = (avg_heart_rate * 0.6309 + weight * 0.1988
                + avg_heart_rate * 0.2017 - 55.0969) * duration_min / 4.184
    else:
        distance_km = max(0.0, distance_m) / 1000.0
        kcal = distance_km * weight * params.calories_per_kg_km

    return max(0, int(kcal))


# =============================================================================
# Splits
# =============================================================================

def _split_from_points(
    kilometer: int,
    segment: Sequence[RoutePoint],
    split_distance_m: float
) -> Split:
    duration = int(segment[-1].timestamp - segment[0].timestamp)

    altitudes = [p.altitude for p in segment if p.altitude is not None]
    elevation_change = altitudes[-1] - altitudes[0] if len(altitudes) >= 2 else 0.0

    heart_rates = [p.heart_rate for p in segment if p.heart_rate is not None]
    avg_hr = int(np.mean(heart_rates)) if heart_rates else None

    return Split(
        kilometer=kilometer,
        duration_millis=duration,
        pace_seconds_per_km=calculate_pace(split_distance_m, duration),
        elevation_change=float(elevation_change),
        avg_heart_rate=avg_hr,
    )


def calculate_splits(
    points: Sequence[RoutePoint],
    params: Optional[RunMetricsParams] = None
) -> List[Split]:
    """
    Per-kilometre splits for a run.

    A split is emitted each time the accumulated distance crosses a multiple
    of the split distance; it covers the samples from the previous crossing
    up to and including the crossing sample. The partial final kilometre is
    dropped.

    Args:
        points: GPS samples of one run
        params: RunMetricsParams (uses defaults if None)

    Returns:
        Ordered list of Split
    """
    if params is None:
        params = RunMetricsParams()

    track = prepare_track(points)
    if len(track) < 2:
        return []

    segments = segment_distances(track)
    splits = []
    kilometer = 1
    split_start = 0
    accumulated = 0.0

    for i, segment_m in enumerate(segments, start=1):
        accumulated += segment_m

        # A long GPS gap can cross several kilometres in one segment
        while accumulated + SPLIT_TOLERANCE_M >= kilometer * params.split_distance_m:
            splits.append(_split_from_points(
                kilometer, track[split_start:i + 1], params.split_distance_m
            ))
            split_start = i
            kilometer += 1

    return splits


# =============================================================================
# Sensor aggregates
# =============================================================================

def calculate_average_heart_rate(points: Sequence[RoutePoint]) -> Optional[int]:
    """Mean heart rate over samples that carry one; None when there are none."""
    heart_rates = [p.heart_rate for p in points if p.heart_rate is not None]
    if not heart_rates:
        return None
    return int(np.mean(heart_rates))


def calculate_max_heart_rate(points: Sequence[RoutePoint]) -> Optional[int]:
    """Peak heart rate; None when no sample carries one."""
    heart_rates = [p.heart_rate for p in points if p.heart_rate is not None]
    if not heart_rates:
        return None
    return int(max(heart_rates))


def calculate_average_cadence(points: Sequence[RoutePoint]) -> Optional[int]:
    cadences = [p.cadence for p in points if p.cadence is not None]
    if not cadences:
        return None
    return int(np.mean(cadences))


def get_running_zone(current_heart_rate: int, max_heart_rate: int) -> int:
    """
    Heart rate zone 1-5 by percentage of max.

    Zones:
        1: < 60%
        2: 60-70%
        3: 70-80%
        4: 80-90%
        5: >= 90%
    """
    if max_heart_rate <= 0:
        return 1
    percentage = current_heart_rate / max_heart_rate
    if percentage < 0.6:
        return 1
    elif percentage < 0.7:
        return 2
    elif percentage < 0.8:
        return 3
    elif percentage < 0.9:
        return 4
    else:
        return 5


# =============================================================================
# VO2max
# =============================================================================

def estimate_vo2max(distance_m: float, duration_minutes: float) -> float:
    """
    Cooper test estimate: VO2max = (distance - 504.9) / 44.73.

    Only meaningful for a 12-minute maximal effort.

    Returns:
        ml/kg/min, or 0.0 if either input is non-positive
    """
    if distance_m <= 0 or duration_minutes <= 0:
        return 0.0
    return (distance_m - 504.9) / 44.73


def estimate_vo2max_with_heart_rate(
    distance_m: float,
    duration_ms: float,
    avg_heart_rate: Optional[int],
    max_heart_rate: Optional[int],
    params: Optional[RunMetricsParams] = None
) -> Optional[float]:
    """
    Speed-based VO2max scaled by the fraction of max heart rate used.

    VO2max = speed_kmh × 3.5 / (avg_hr / max_hr)

    Returns:
        ml/kg/min, or None without heart rate data or for efforts shorter
        than the configured minimum distance/duration
    """
    if params is None:
        params = RunMetricsParams()

    if avg_heart_rate is None or avg_heart_rate <= 0:
        return None
    if max_heart_rate is None or max_heart_rate <= 0:
        return None
    if distance_m < params.vo2max_min_distance_m or duration_ms < params.vo2max_min_duration_ms:
        return None

    speed_kmh = (distance_m / 1000.0) / (duration_ms / 3_600_000.0)
    percent_hr_max = avg_heart_rate / max_heart_rate
    return speed_kmh * 3.5 / percent_hr_max


# =============================================================================
# Whole-run summary
# =============================================================================

def summarize_run(
    points: Sequence[RoutePoint],
    weight_kg: Optional[float] = None,
    max_heart_rate: Optional[int] = None,
    params: Optional[RunMetricsParams] = None
) -> RunSummary:
    """
    Compute every metric for one completed run.

    Args:
        points: GPS samples in any order
        weight_kg: Runner's body weight for calories
        max_heart_rate: Runner's max HR for the VO2max estimate
        params: RunMetricsParams (uses defaults if None)

    Returns:
        RunSummary
    """
    if params is None:
        params = RunMetricsParams()

    track = prepare_track(points)
    distance_m = total_distance(track)
    duration_ms = int(track[-1].timestamp - track[0].timestamp) if len(track) >= 2 else 0
    avg_hr = calculate_average_heart_rate(track)

    summary = RunSummary(
        distance_m=distance_m,
        duration_ms=duration_ms,
        avg_pace_seconds_per_km=calculate_pace(distance_m, duration_ms),
        calories=calculate_calories(distance_m, duration_ms, weight_kg, avg_hr, params),
        splits=calculate_splits(track, params),
        avg_heart_rate=avg_hr,
        max_heart_rate=calculate_max_heart_rate(track),
        avg_cadence=calculate_average_cadence(track),
        elevation_gain_m=elevation_gain(track),
        elevation_loss_m=elevation_loss(track),
        vo2max_estimate=estimate_vo2max_with_heart_rate(
            distance_m, duration_ms, avg_hr, max_heart_rate, params
        ),
    )
    logger.debug(
        "Run summary: %.0f m in %s, %d splits",
        summary.distance_m, format_duration(summary.duration_ms), len(summary.splits)
    )
    return summary
