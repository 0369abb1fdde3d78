"""
Great-circle distance and elevation math over GPS samples.

Distances use the haversine formula on a spherical Earth (mean radius
6,371 km), which stays within ~0.5% of the WGS84 ellipsoid for running-scale
segments.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging
import math

import numpy as np

logger = logging.getLogger(__name__)


EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True)
class RoutePoint:
    """One GPS/sensor sample of a run."""
    latitude: float
    longitude: float
    timestamp: int                       # ms since an arbitrary epoch
    altitude: Optional[float] = None     # metres
    heart_rate: Optional[int] = None     # bpm
    cadence: Optional[int] = None        # steps/min
    speed: Optional[float] = None        # m/s
    accuracy: Optional[float] = None     # metres


def distance(a: RoutePoint, b: RoutePoint) -> float:
    """
    Haversine distance between two samples.

    Args:
        a: First sample
        b: Second sample

    Returns:
        Distance in metres
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def segment_distances(points: Sequence[RoutePoint]) -> np.ndarray:
    """
    Distances between consecutive samples.

    Returns:
        Array of length len(points) - 1 (empty for fewer than two points)
    """
    if len(points) < 2:
        return np.array([])

    lat = np.radians([p.latitude for p in points])
    lon = np.radians([p.longitude for p in points])

    dlat = np.diff(lat)
    dlon = np.diff(lon)
    h = np.sin(dlat / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(dlon / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return 2 * EARTH_RADIUS_M * np.arcsin(np.sqrt(h))


def total_distance(points: Sequence[RoutePoint]) -> float:
    """Sum of consecutive segment distances in metres."""
    return float(np.sum(segment_distances(points)))


def _altitude_deltas(points: Sequence[RoutePoint]) -> List[float]:
    deltas = []
    for prev, curr in zip(points, points[1:]):
        if prev.altitude is None or curr.altitude is None:
            continue
        deltas.append(curr.altitude - prev.altitude)
    return deltas


def elevation_gain(points: Sequence[RoutePoint]) -> float:
    """Total climb in metres; pairs missing an altitude are skipped."""
    return float(sum(d for d in _altitude_deltas(points) if d > 0))


def elevation_loss(points: Sequence[RoutePoint]) -> float:
    """Total descent in metres (positive); pairs missing an altitude are skipped."""
    return float(sum(-d for d in _altitude_deltas(points) if d < 0))


def prepare_track(points: Sequence[RoutePoint]) -> List[RoutePoint]:
    """
    Order samples by timestamp and drop duplicate timestamps.

    The first sample seen for a timestamp wins. Every trace-walking
    calculation runs on the prepared track.
    """
    ordered = sorted(points, key=lambda p: p.timestamp)

    track = []
    last_ts = None
    for p in ordered:
        if p.timestamp == last_ts:
            continue
        track.append(p)
        last_ts = p.timestamp

    dropped = len(points) - len(track)
    if dropped:
        logger.debug("Dropped %d samples with duplicate timestamps", dropped)
    return track
