"""
Core workout analytics engines.

This package provides pure, stateless calculations for:
- One-rep-max estimation (Brzycki)
- Progressive overload suggestions for strength training
- Great-circle distance and elevation over GPS traces
- Run metrics: pace, calories, kilometre splits, heart rate, VO2max
"""

# One-rep max
from .one_rep_max import (
    calculate,
    estimate_weight,
    get_percentage_of_max,
    percentage_table,
)

# Progressive overload
from .progression import (
    SuggestionType,
    TrendDirection,
    ExerciseHistoryEntry,
    ProgressionSuggestion,
    ProgressionParams,
    suggest_progression,
    suggest_starting_weight,
    classify_trend,
    is_personal_record,
)

# Geo math
from .geo import (
    RoutePoint,
    distance,
    total_distance,
    elevation_gain,
    elevation_loss,
    prepare_track,
)

# Run metrics
from .run_metrics import (
    Split,
    RunSummary,
    RunMetricsParams,
    calculate_pace,
    calculate_calories,
    calculate_splits,
    calculate_average_heart_rate,
    calculate_max_heart_rate,
    calculate_average_cadence,
    get_running_zone,
    estimate_vo2max,
    estimate_vo2max_with_heart_rate,
    summarize_run,
    format_pace,
    format_duration,
)

# Unified engine
from .engine import WorkoutAnalyticsEngine

__all__ = [
    # One-rep max
    'calculate',
    'estimate_weight',
    'get_percentage_of_max',
    'percentage_table',
    # Progression
    'SuggestionType',
    'TrendDirection',
    'ExerciseHistoryEntry',
    'ProgressionSuggestion',
    'ProgressionParams',
    'suggest_progression',
    'suggest_starting_weight',
    'classify_trend',
    'is_personal_record',
    # Geo
    'RoutePoint',
    'distance',
    'total_distance',
    'elevation_gain',
    'elevation_loss',
    'prepare_track',
    # Run metrics
    'Split',
    'RunSummary',
    'RunMetricsParams',
    'calculate_pace',
    'calculate_calories',
    'calculate_splits',
    'calculate_average_heart_rate',
    'calculate_max_heart_rate',
    'calculate_average_cadence',
    'get_running_zone',
    'estimate_vo2max',
    'estimate_vo2max_with_heart_rate',
    'summarize_run',
    'format_pace',
    'format_duration',
    # Engine
    'WorkoutAnalyticsEngine',
]
