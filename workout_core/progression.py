"""
Progressive Overload Engine: next-session recommendations for strength training.

Classifies a short window of per-session exercise history into one of four
actions (maintain, add weight, add reps, deload) using a decision table keyed on:
- how much valid history backs the decision
- where the latest session's reps sit within the target rep range
- the direction of the estimated 1RM across the window

Every degenerate input resolves to a MAINTAIN suggestion with low confidence;
nothing in this module raises for bad history.
"""

from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Optional, Dict, Any, Tuple, List, Sequence
import logging
import math

import numpy as np

from . import one_rep_max

logger = logging.getLogger(__name__)


class SuggestionType(Enum):
    """Recommended action for the next session."""
    MAINTAIN = "maintain"
    INCREASE_WEIGHT = "increase_weight"
    INCREASE_REPS = "increase_reps"
    DELOAD = "deload"


class HistoryBucket(Enum):
    """How much valid history informed the decision."""
    EMPTY = "empty"
    SINGLE = "single"
    PARTIAL = "partial"     # Enough to progress, not a full trend window
    FULL = "full"


class RepPosition(Enum):
    """Latest session's reps relative to the target range."""
    BELOW = "below"
    WITHIN = "within"
    AT_OR_ABOVE_TOP = "at_or_above_top"


class OneRepMaxTrend(Enum):
    """Direction of estimated 1RM, read oldest to newest."""
    RISING = "rising"
    FLAT = "flat"
    FALLING = "falling"
    DECLINING = "declining"  # Strictly falling across a full window


class TrendDirection(Enum):
    """Long-run progress label for an exercise."""
    IMPROVING = "improving"
    MAINTAINING = "maintaining"
    DECLINING = "declining"
    NEW = "new"


@dataclass(frozen=True)
class ExerciseHistoryEntry:
    """
    One completed session for an exercise.

    `estimated_one_rep_max` is the value recorded at the time of the session;
    the engine trusts it rather than recomputing.
    """
    exercise_id: Any
    date: Any  # datetime or epoch millis, consistent within one call
    best_weight: float
    best_reps: int
    estimated_one_rep_max: float
    total_volume: float = 0.0
    total_sets: int = 0
    total_reps: int = 0
    is_personal_record: bool = False

    @property
    def is_valid(self) -> bool:
        return self.best_weight > 0 and self.best_reps > 0

    @classmethod
    def from_sets(
        cls,
        exercise_id: Any,
        date: Any,
        sets: Sequence[Tuple[float, int]],
        previous_best: Optional['ExerciseHistoryEntry'] = None
    ) -> Optional['ExerciseHistoryEntry']:
        """
        Build an entry from the completed (weight, reps) sets of a session.

        The best set is the one moving the most load (weight × reps).
        Returns None when no sets were completed.
        """
        completed = [(w, r) for w, r in sets if r > 0]
        if not completed:
            return None

        best_weight, best_reps = max(completed, key=lambda s: s[0] * s[1])
        estimated = one_rep_max.calculate(best_weight, best_reps)
        entry = cls(
            exercise_id=exercise_id,
            date=date,
            best_weight=float(best_weight),
            best_reps=int(best_reps),
            estimated_one_rep_max=estimated,
            total_volume=float(sum(w * r for w, r in completed)),
            total_sets=len(completed),
            total_reps=int(sum(r for _, r in completed)),
        )
        if is_personal_record(entry, previous_best):
            entry = replace(entry, is_personal_record=True)
        return entry


@dataclass(frozen=True)
class ProgressionSuggestion:
    """Recommendation for the next session of one exercise."""
    exercise_id: Any
    exercise_name: str
    suggestion_type: SuggestionType
    current_weight: float
    current_reps: int
    suggested_weight: float
    suggested_reps: int
    confidence: float
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['suggestion_type'] = self.suggestion_type.value
        return d


@dataclass
class ProgressionParams:
    """
    Tunable parameters for the progression engine.

    Weights are unit-agnostic; use `imperial()` for pound-based equipment.
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # LOADING
    # ═══════════════════════════════════════════════════════════════════════════

    weight_increment: float = 2.5         # Smallest practical plate jump
    deload_factor: float = 0.9            # Deload to 90% of latest weight
    starting_safety_factor: float = 0.9   # Conservative start for untracked rep counts

    # ═══════════════════════════════════════════════════════════════════════════
    # HISTORY WINDOW
    # ═══════════════════════════════════════════════════════════════════════════

    trend_window: int = 3                 # Most recent sessions considered
    min_sessions_for_progression: int = 2

    # ═══════════════════════════════════════════════════════════════════════════
    # CONFIDENCE (full window)
    # ═══════════════════════════════════════════════════════════════════════════

    single_session_confidence: float = 0.5
    base_confidence: Dict[str, float] = field(default_factory=lambda: {
        SuggestionType.INCREASE_WEIGHT.value: 0.85,
        SuggestionType.DELOAD.value: 0.80,
        SuggestionType.INCREASE_REPS.value: 0.75,
        SuggestionType.MAINTAIN.value: 0.70,
    })

    @classmethod
    def imperial(cls) -> 'ProgressionParams':
        """Parameters for pound plates."""
        return cls(weight_increment=5.0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ProgressionParams':
        """Create parameters from dictionary."""
        return cls(**d)

    def validate(self) -> Tuple[bool, str]:
        """Validate parameter constraints."""
        issues = []

        if self.weight_increment <= 0:
            issues.append("Weight increment must be positive")
        if not (0 < self.deload_factor < 1):
            issues.append("Deload factor must be in (0, 1)")
        if not (0 < self.starting_safety_factor < 1):
            issues.append("Starting safety factor must be in (0, 1)")
        if self.trend_window < 3:
            issues.append("Trend window needs at least 3 sessions")
        if not (2 <= self.min_sessions_for_progression <= self.trend_window):
            issues.append("Minimum sessions must be in [2, trend_window]")
        if not (0 <= self.single_session_confidence <= 1):
            issues.append("Single session confidence must be in [0, 1]")
        for name, value in self.base_confidence.items():
            if not (0 <= value <= 1):
                issues.append(f"Confidence for {name} must be in [0, 1]")

        if issues:
            return False, "; ".join(issues)
        return True, "Valid"

    def confidence_for(self, suggestion_type: SuggestionType) -> float:
        return self.base_confidence.get(suggestion_type.value, 0.7)


# =============================================================================
# Helpers
# =============================================================================

def round_to_increment(weight: float, increment: float) -> float:
    """Round a weight to the nearest plate increment, halves rounding up."""
    if increment <= 0:
        return weight
    return math.floor(weight / increment + 0.5) * increment


def is_personal_record(
    entry: ExerciseHistoryEntry,
    previous_best: Optional[ExerciseHistoryEntry]
) -> bool:
    """A session is a PR when it beats the best recorded estimated 1RM."""
    if not entry.is_valid:
        return False
    if previous_best is None:
        return True
    return entry.estimated_one_rep_max > previous_best.estimated_one_rep_max


def _normalize_target_reps(target_reps: Tuple[int, int]) -> Tuple[int, int]:
    low, high = sorted(int(r) for r in target_reps)
    low = max(1, low)
    high = max(low, high)
    return low, high


def prepare_history(
    recent_history: Sequence[ExerciseHistoryEntry],
    window: Optional[int] = None
) -> List[ExerciseHistoryEntry]:
    """
    Drop invalid entries and order most-recent-first.

    Entries sharing a date keep the caller's order.
    """
    valid = [e for e in recent_history if e.is_valid]
    dropped = len(recent_history) - len(valid)
    if dropped:
        logger.debug("Excluded %d invalid history entries", dropped)

    ordered = sorted(valid, key=lambda e: e.date, reverse=True)
    if window is not None:
        ordered = ordered[:window]
    return ordered


def classify_bucket(n_entries: int, params: ProgressionParams) -> HistoryBucket:
    if n_entries == 0:
        return HistoryBucket.EMPTY
    if n_entries < params.min_sessions_for_progression:
        return HistoryBucket.SINGLE
    if n_entries < params.trend_window:
        return HistoryBucket.PARTIAL
    return HistoryBucket.FULL


def classify_rep_position(reps: int, target_reps: Tuple[int, int]) -> RepPosition:
    low, high = target_reps
    if reps >= high:
        return RepPosition.AT_OR_ABOVE_TOP
    if reps >= low:
        return RepPosition.WITHIN
    return RepPosition.BELOW


def classify_one_rep_max_trend(
    window: Sequence[ExerciseHistoryEntry],
    full_window: int = 3
) -> OneRepMaxTrend:
    """
    Direction of estimated 1RM over a most-recent-first window.

    DECLINING requires every session to be strictly lower than the one
    before it across at least `full_window` sessions.
    """
    if len(window) < 2:
        return OneRepMaxTrend.FLAT

    # Oldest to newest
    values = np.array([e.estimated_one_rep_max for e in reversed(window)], dtype=float)
    steps = np.diff(values)

    if len(values) >= full_window and np.all(steps < 0):
        return OneRepMaxTrend.DECLINING
    if values[-1] > values[0]:
        return OneRepMaxTrend.RISING
    if values[-1] < values[0]:
        return OneRepMaxTrend.FALLING
    return OneRepMaxTrend.FLAT


# Decision table: (rep position, trend) → action. DECLINING always deloads.
_DECISION_TABLE: Dict[Tuple[RepPosition, OneRepMaxTrend], SuggestionType] = {
    (RepPosition.AT_OR_ABOVE_TOP, OneRepMaxTrend.RISING): SuggestionType.INCREASE_WEIGHT,
    (RepPosition.AT_OR_ABOVE_TOP, OneRepMaxTrend.FLAT): SuggestionType.INCREASE_WEIGHT,
    (RepPosition.AT_OR_ABOVE_TOP, OneRepMaxTrend.FALLING): SuggestionType.INCREASE_WEIGHT,
    (RepPosition.WITHIN, OneRepMaxTrend.RISING): SuggestionType.INCREASE_REPS,
    (RepPosition.WITHIN, OneRepMaxTrend.FLAT): SuggestionType.INCREASE_REPS,
    (RepPosition.WITHIN, OneRepMaxTrend.FALLING): SuggestionType.MAINTAIN,
    (RepPosition.BELOW, OneRepMaxTrend.RISING): SuggestionType.MAINTAIN,
    (RepPosition.BELOW, OneRepMaxTrend.FLAT): SuggestionType.MAINTAIN,
    (RepPosition.BELOW, OneRepMaxTrend.FALLING): SuggestionType.MAINTAIN,
}


def decide(position: RepPosition, trend: OneRepMaxTrend) -> SuggestionType:
    """Look up the action for a rep position and 1RM trend."""
    if trend == OneRepMaxTrend.DECLINING:
        return SuggestionType.DELOAD
    return _DECISION_TABLE.get((position, trend), SuggestionType.MAINTAIN)


def _confidence(
    suggestion_type: SuggestionType,
    n_entries: int,
    params: ProgressionParams
) -> float:
    coverage = min(1.0, n_entries / params.trend_window)
    scaled = params.confidence_for(suggestion_type) * coverage
    return min(1.0, max(params.single_session_confidence, scaled))


# =============================================================================
# Engine
# =============================================================================

def suggest_progression(
    exercise_id: Any,
    exercise_name: str,
    recent_history: Sequence[ExerciseHistoryEntry],
    target_reps: Tuple[int, int] = (8, 12),
    params: Optional[ProgressionParams] = None
) -> ProgressionSuggestion:
    """
    Recommend the next session's weight and reps.

    Args:
        exercise_id: Identifier carried through to the suggestion
        exercise_name: Display name carried through to the suggestion
        recent_history: Session entries in any order
        target_reps: Inclusive (low, high) rep range, default 8-12
        params: ProgressionParams (uses defaults if None)

    Returns:
        ProgressionSuggestion
    """
    if params is None:
        params = ProgressionParams()

    low, high = _normalize_target_reps(target_reps)
    window = prepare_history(recent_history, params.trend_window)
    bucket = classify_bucket(len(window), params)

    # ═══════════════════════════════════════════════════════════════════════════
    # NO HISTORY
    # ═══════════════════════════════════════════════════════════════════════════
    if bucket == HistoryBucket.EMPTY:
        return ProgressionSuggestion(
            exercise_id=exercise_id,
            exercise_name=exercise_name,
            suggestion_type=SuggestionType.MAINTAIN,
            current_weight=0.0,
            current_reps=low,
            suggested_weight=0.0,
            suggested_reps=low,
            confidence=0.0,
            reason="No history available. Start with a comfortable weight.",
        )

    last = window[0]

    # ═══════════════════════════════════════════════════════════════════════════
    # SINGLE SESSION: no trend yet
    # ═══════════════════════════════════════════════════════════════════════════
    if bucket == HistoryBucket.SINGLE:
        return ProgressionSuggestion(
            exercise_id=exercise_id,
            exercise_name=exercise_name,
            suggestion_type=SuggestionType.MAINTAIN,
            current_weight=last.best_weight,
            current_reps=last.best_reps,
            suggested_weight=last.best_weight,
            suggested_reps=last.best_reps,
            confidence=params.single_session_confidence,
            reason="Need more sessions to make a confident suggestion. Keep current weight.",
        )

    position = classify_rep_position(last.best_reps, (low, high))
    trend = classify_one_rep_max_trend(window, params.trend_window)
    suggestion_type = decide(position, trend)
    logger.debug(
        "Exercise %s: bucket=%s position=%s trend=%s -> %s",
        exercise_id, bucket.value, position.value, trend.value, suggestion_type.value
    )

    if suggestion_type == SuggestionType.INCREASE_WEIGHT:
        weight = last.best_weight + params.weight_increment
        reps = low
        reason = (f"Hit {last.best_reps} reps (top of {low}-{high}). "
                  f"Add {params.weight_increment:g} and restart at {low} reps.")
    elif suggestion_type == SuggestionType.INCREASE_REPS:
        weight = last.best_weight
        reps = last.best_reps + 1
        reason = "Good progress! Try to add 1 more rep this session."
    elif suggestion_type == SuggestionType.DELOAD:
        weight = round_to_increment(last.best_weight * params.deload_factor, params.weight_increment)
        reps = low
        reason = (f"Estimated 1RM declining over {len(window)} sessions. "
                  f"Deload to {params.deload_factor:.0%} weight.")
    else:
        weight = last.best_weight
        reps = low
        reason = f"Focus on hitting {low} reps before progressing."

    return ProgressionSuggestion(
        exercise_id=exercise_id,
        exercise_name=exercise_name,
        suggestion_type=suggestion_type,
        current_weight=last.best_weight,
        current_reps=last.best_reps,
        suggested_weight=weight,
        suggested_reps=reps,
        confidence=_confidence(suggestion_type, len(window), params),
        reason=reason,
    )


def suggest_starting_weight(
    one_rep_max_value: Optional[float],
    target_reps: int,
    params: Optional[ProgressionParams] = None
) -> float:
    """
    Conservative working weight for a rep count with no tracked history.

    Estimates the weight for `target_reps` from the 1RM, scales it down by
    the safety factor, then floors to the plate increment. Always strictly
    below the raw estimate and above zero for a positive 1RM.
    """
    if params is None:
        params = ProgressionParams()

    if one_rep_max_value is None or one_rep_max_value <= 0:
        return 0.0

    raw = one_rep_max.estimate_weight(one_rep_max_value, max(1, target_reps))
    conservative = raw * params.starting_safety_factor
    if params.weight_increment <= 0:
        return conservative

    rounded = math.floor(conservative / params.weight_increment) * params.weight_increment
    if rounded <= 0:
        return conservative
    return rounded


def classify_trend(
    history: Sequence[ExerciseHistoryEntry],
    threshold: float = 0.01
) -> TrendDirection:
    """
    Label long-run progress from the latest two valid sessions.

    Args:
        history: Session entries in any order
        threshold: Relative 1RM change treated as maintaining

    Returns:
        TrendDirection
    """
    ordered = prepare_history(history)
    if len(ordered) < 2:
        return TrendDirection.NEW

    current = ordered[0].estimated_one_rep_max
    previous = ordered[1].estimated_one_rep_max
    if previous <= 0:
        return TrendDirection.NEW

    change = (current - previous) / previous
    if change > threshold:
        return TrendDirection.IMPROVING
    if change < -threshold:
        return TrendDirection.DECLINING
    return TrendDirection.MAINTAINING
