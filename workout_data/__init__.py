"""Data generation and loading utilities."""

from .synthetic import generate_route, generate_history, HISTORY_PATTERNS
from .loaders import (
    load_exercise_history,
    load_route_points,
    history_to_dataframe,
    route_to_dataframe,
    splits_to_dataframe,
)

__all__ = [
    # Synthetic data
    'generate_route',
    'generate_history',
    'HISTORY_PATTERNS',
    # CSV loaders
    'load_exercise_history',
    'load_route_points',
    'history_to_dataframe',
    'route_to_dataframe',
    'splits_to_dataframe',
]
