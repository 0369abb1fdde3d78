"""
One-rep-max estimation using the Brzycki formula.

Based on:
- Brzycki, M. (1993): Strength testing, predicting a one-rep max from reps-to-fatigue

1RM = weight × 36 / (37 - reps)

The formula diverges as reps approach 37 and inverts beyond it, so rep counts
are clamped to the last point where it is defined. Estimates are only
reliable up to about 20 reps; past that they grow quickly (100 x 36 gives
3600) and should be read as a bound, not a prediction.
"""

from typing import List, Tuple
import logging

logger = logging.getLogger(__name__)


# Largest rep count the Brzycki denominator (37 - reps) stays positive for
MAX_BRZYCKI_REPS = 36

# Above this the estimate is a loose upper bound
RELIABLE_REPS = 20

# Typical fraction of 1RM liftable for a given number of reps
PERCENTAGE_OF_MAX = {
    1: 1.00,
    2: 0.97,
    3: 0.94,
    4: 0.92,
    5: 0.89,
    6: 0.86,
    7: 0.83,
    8: 0.81,
    9: 0.78,
    10: 0.75,
    11: 0.73,
    12: 0.71,
}
HIGH_REP_PERCENTAGE = 0.65


def _clamp_reps(reps: int) -> int:
    if reps > MAX_BRZYCKI_REPS:
        logger.debug("Clamping %d reps to %d for Brzycki formula", reps, MAX_BRZYCKI_REPS)
        return MAX_BRZYCKI_REPS
    return reps


def calculate(weight: float, reps: int) -> float:
    """
    Estimate the one-rep max for a set.

    Args:
        weight: Weight lifted (any unit, kept consistent by the caller)
        reps: Repetitions completed at that weight

    Returns:
        Estimated 1RM, or 0.0 for non-positive weight or reps
    """
    if weight <= 0 or reps <= 0:
        return 0.0
    if reps == 1:
        return float(weight)

    if reps > RELIABLE_REPS:
        logger.debug("1RM estimate from %d reps is unreliable", reps)
    reps = _clamp_reps(reps)
    return weight * (36.0 / (37.0 - reps))


def estimate_weight(one_rep_max: float, reps: int) -> float:
    """
    Inverse Brzycki: weight liftable for `reps` at a given 1RM.

    Args:
        one_rep_max: Estimated or tested 1RM
        reps: Target repetitions

    Returns:
        Working weight, or 0.0 for non-positive inputs
    """
    if one_rep_max <= 0 or reps <= 0:
        return 0.0
    if reps == 1:
        return float(one_rep_max)

    reps = _clamp_reps(reps)
    return one_rep_max * (37.0 - reps) / 36.0


def get_percentage_of_max(reps: int) -> float:
    """
    Fraction of 1RM typically liftable for a rep count.

    Reference points: 1 → 1.00, 5 → 0.89, 10 → 0.75, 15 → 0.65.
    """
    if reps <= 0:
        return 1.0
    if reps in PERCENTAGE_OF_MAX:
        return PERCENTAGE_OF_MAX[reps]
    return HIGH_REP_PERCENTAGE


def percentage_table(one_rep_max: float, max_reps: int = 12) -> List[Tuple[int, float, float]]:
    """
    Build a loading table for a 1RM.

    Args:
        one_rep_max: Estimated 1RM
        max_reps: Last rep count to include

    Returns:
        List of (reps, fraction_of_max, weight) rows
    """
    rows = []
    for reps in range(1, max_reps + 1):
        fraction = get_percentage_of_max(reps)
        rows.append((reps, fraction, round(one_rep_max * fraction, 1)))
    return rows
