"""
CSV loaders producing engine input records.

Exercise history CSV columns:
    exercise_id, date, best_weight, best_reps   (required)
    estimated_one_rep_max, total_volume, total_sets, total_reps   (optional)

Route CSV columns:
    latitude, longitude, timestamp   (required, timestamp in ms)
    altitude, heart_rate, cadence, speed, accuracy   (optional)

Missing optional values become None; a missing estimated 1RM is computed
from the session's best set.
"""

from pathlib import Path
from typing import Any, List, Optional, Sequence, Union
import logging

import pandas as pd

from workout_core.one_rep_max import calculate
from workout_core.progression import ExerciseHistoryEntry
from workout_core.geo import RoutePoint
from workout_core.run_metrics import Split

logger = logging.getLogger(__name__)


HISTORY_REQUIRED = ('exercise_id', 'date', 'best_weight', 'best_reps')
ROUTE_REQUIRED = ('latitude', 'longitude', 'timestamp')
ROUTE_OPTIONAL_INT = ('heart_rate', 'cadence')
ROUTE_OPTIONAL_FLOAT = ('altitude', 'speed', 'accuracy')


def _read_csv(path: Union[str, Path], required: Sequence[str]) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No such file: {path}")

    df = pd.read_csv(path)
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{path.name} is missing required columns: {', '.join(missing)}")
    return df


def _optional(value: Any, cast) -> Optional[Any]:
    if value is None or pd.isna(value):
        return None
    return cast(value)


def _parse_dates(column: pd.Series) -> pd.Series:
    """Keep epoch-millis columns numeric, parse anything else as datetimes."""
    if pd.api.types.is_numeric_dtype(column):
        return column.astype('int64')
    return pd.to_datetime(column)


def load_exercise_history(path: Union[str, Path]) -> List[ExerciseHistoryEntry]:
    """
    Load exercise history from CSV.

    Args:
        path: CSV file path

    Returns:
        List of ExerciseHistoryEntry in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If required columns are missing
    """
    df = _read_csv(path, HISTORY_REQUIRED)
    df['date'] = _parse_dates(df['date'])
    df['best_weight'] = df['best_weight'].fillna(0.0).astype(float)
    df['best_reps'] = df['best_reps'].fillna(0).astype(int)

    entries = []
    for row in df.to_dict('records'):
        date = row['date']
        if isinstance(date, pd.Timestamp):
            date = date.to_pydatetime()

        estimated = _optional(row.get('estimated_one_rep_max'), float)
        if estimated is None:
            estimated = calculate(row['best_weight'], row['best_reps'])

        entries.append(ExerciseHistoryEntry(
            exercise_id=row['exercise_id'],
            date=date,
            best_weight=row['best_weight'],
            best_reps=row['best_reps'],
            estimated_one_rep_max=estimated,
            total_volume=_optional(row.get('total_volume'), float) or 0.0,
            total_sets=_optional(row.get('total_sets'), int) or 0,
            total_reps=_optional(row.get('total_reps'), int) or 0,
        ))

    logger.info("Loaded %d history entries from %s", len(entries), path)
    return entries


def load_route_points(path: Union[str, Path]) -> List[RoutePoint]:
    """
    Load a GPS trace from CSV.

    Args:
        path: CSV file path

    Returns:
        List of RoutePoint in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If required columns are missing
    """
    df = _read_csv(path, ROUTE_REQUIRED)

    n_before = len(df)
    df = df.dropna(subset=list(ROUTE_REQUIRED))
    if len(df) < n_before:
        logger.warning("Skipped %d samples without coordinates or timestamp", n_before - len(df))

    points = []
    for row in df.to_dict('records'):
        optional = {}
        for col in ROUTE_OPTIONAL_INT:
            optional[col] = _optional(row.get(col), lambda v: int(round(v)))
        for col in ROUTE_OPTIONAL_FLOAT:
            optional[col] = _optional(row.get(col), float)

        points.append(RoutePoint(
            latitude=float(row['latitude']),
            longitude=float(row['longitude']),
            timestamp=int(row['timestamp']),
            **optional,
        ))

    logger.info("Loaded %d route points from %s", len(points), path)
    return points


def history_to_dataframe(entries: Sequence[ExerciseHistoryEntry]) -> pd.DataFrame:
    """Convert history entries to a DataFrame with the loader's columns."""
    columns = list(HISTORY_REQUIRED) + [
        'estimated_one_rep_max', 'total_volume', 'total_sets', 'total_reps'
    ]
    return pd.DataFrame(
        [{c: getattr(e, c) for c in columns} for e in entries],
        columns=columns,
    )


def route_to_dataframe(points: Sequence[RoutePoint]) -> pd.DataFrame:
    """Convert route points to a DataFrame with the loader's columns."""
    columns = list(ROUTE_REQUIRED) + list(ROUTE_OPTIONAL_FLOAT) + list(ROUTE_OPTIONAL_INT)
    return pd.DataFrame(
        [{c: getattr(p, c) for c in columns} for p in points],
        columns=columns,
    )


def splits_to_dataframe(splits: Sequence[Split]) -> pd.DataFrame:
    """
    Tabulate splits for display.

    Returns:
        DataFrame with columns: kilometer, duration, pace, elevation_change, avg_heart_rate
    """
    return pd.DataFrame(
        [{
            'kilometer': s.kilometer,
            'duration': s.duration_formatted,
            'pace': s.pace_formatted,
            'elevation_change': round(s.elevation_change, 1),
            'avg_heart_rate': s.avg_heart_rate,
        } for s in splits],
        columns=['kilometer', 'duration', 'pace', 'elevation_change', 'avg_heart_rate'],
    )
