"""
Workout Analytics Engine: single entry point over the strength and run engines.

Holds the parameter objects so callers configure once (per user or per
exercise) and then pass plain records in, getting immutable results back.
The engine keeps no state between calls.
"""

from collections import defaultdict
from typing import Optional, Dict, Any, List, Sequence, Tuple
import logging

from .progression import (
    ExerciseHistoryEntry,
    ProgressionParams,
    ProgressionSuggestion,
    suggest_progression,
    suggest_starting_weight,
)
from .geo import RoutePoint
from .run_metrics import (
    RunMetricsParams,
    RunSummary,
    summarize_run,
)

logger = logging.getLogger(__name__)


class WorkoutAnalyticsEngine:
    """
    Main engine for workout analytics.

    Wraps the progression and run metric functions with a fixed
    configuration.
    """

    def __init__(
        self,
        progression_params: Optional[ProgressionParams] = None,
        run_params: Optional[RunMetricsParams] = None,
        target_reps: Tuple[int, int] = (8, 12)
    ):
        """
        Initialize the engine.

        Args:
            progression_params: Strength progression parameters (optional)
            run_params: Run metric parameters (optional)
            target_reps: Default inclusive rep range for suggestions

        Raises:
            ValueError: If either parameter set fails validation
        """
        self.progression_params = progression_params or ProgressionParams()
        self.run_params = run_params or RunMetricsParams()
        self.target_reps = target_reps

        for params in (self.progression_params, self.run_params):
            ok, message = params.validate()
            if not ok:
                raise ValueError(f"Invalid {type(params).__name__}: {message}")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'WorkoutAnalyticsEngine':
        """
        Build an engine from a nested config dictionary.

        Recognised keys: 'progression', 'run', 'target_reps'.
        """
        progression = config.get('progression')
        run = config.get('run')
        return cls(
            progression_params=ProgressionParams.from_dict(progression) if progression else None,
            run_params=RunMetricsParams.from_dict(run) if run else None,
            target_reps=tuple(config.get('target_reps', (8, 12))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'progression': self.progression_params.to_dict(),
            'run': self.run_params.to_dict(),
            'target_reps': list(self.target_reps),
        }

    def suggest(
        self,
        exercise_id: Any,
        exercise_name: str,
        recent_history: Sequence[ExerciseHistoryEntry],
        target_reps: Optional[Tuple[int, int]] = None
    ) -> ProgressionSuggestion:
        """Next-session suggestion for one exercise."""
        return suggest_progression(
            exercise_id,
            exercise_name,
            recent_history,
            target_reps=target_reps or self.target_reps,
            params=self.progression_params,
        )

    def suggest_all(
        self,
        history: Sequence[ExerciseHistoryEntry],
        exercise_names: Optional[Dict[Any, str]] = None
    ) -> List[ProgressionSuggestion]:
        """
        Suggestions for every exercise present in a mixed history.

        Args:
            history: Entries for any number of exercises
            exercise_names: Optional id → display name mapping

        Returns:
            One suggestion per exercise id, in first-seen order
        """
        exercise_names = exercise_names or {}
        grouped: Dict[Any, List[ExerciseHistoryEntry]] = defaultdict(list)
        for entry in history:
            grouped[entry.exercise_id].append(entry)

        logger.debug("Suggesting progression for %d exercises", len(grouped))
        return [
            self.suggest(exercise_id, exercise_names.get(exercise_id, str(exercise_id)), entries)
            for exercise_id, entries in grouped.items()
        ]

    def starting_weight(self, one_rep_max: Optional[float], target_reps: int) -> float:
        return suggest_starting_weight(one_rep_max, target_reps, self.progression_params)

    def analyze_run(
        self,
        points: Sequence[RoutePoint],
        weight_kg: Optional[float] = None,
        max_heart_rate: Optional[int] = None
    ) -> RunSummary:
        """Full metric summary for one completed run."""
        return summarize_run(points, weight_kg, max_heart_rate, self.run_params)
