"""
Live walk accumulator.

A TrackSession ingests position samples one at a time and keeps the running
distance, elapsed time, average speed, pace and goal progress. Every sample is
trusted as-is: no smoothing, no jitter threshold, no outlier cap.

Lifecycle:
    session = TrackSession.start(goal_km=2.0)
    snap = session.ingest(GeoPoint(45.4642, 9.19))   # one call per sample
    record = session.stop()                          # → WalkRecord

After stop() the session is inactive: ingest() and a second stop() raise
InvalidState. Not safe for concurrent ingests; one writer only.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from walkie.analysis.geo import GeoPoint, haversine_km
from walkie.errors import InvalidInput, InvalidState

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def average_speed_kmh(distance_km: float, elapsed_sec: float) -> float:
    """km/h over the whole walk; 0 before any time has elapsed."""
    if elapsed_sec <= 0:
        return 0.0
    return distance_km / (elapsed_sec / 3600)


def pace_sec_per_km(distance_km: float, elapsed_sec: float) -> Optional[float]:
    """Seconds per kilometer, or None while no distance has been covered."""
    if distance_km <= 0:
        return None
    return elapsed_sec / distance_km


def goal_progress_pct(distance_km: float, goal_km: float) -> int:
    """Whole percent of the goal walked, clamped at 100."""
    return min(100, round_half_up(distance_km / goal_km * 100))


@dataclass(frozen=True)
class TrackSnapshot:
    """Metrics after one ingest tick. Pure data for rendering sinks."""

    distance_km: float
    elapsed_sec: float
    avg_speed_kmh: float
    pace_sec_per_km: Optional[float]
    goal_progress_pct: int
    goal_reached: bool
    point_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distance_km": self.distance_km,
            "elapsed_sec": self.elapsed_sec,
            "avg_speed_kmh": self.avg_speed_kmh,
            "pace_sec_per_km": self.pace_sec_per_km,
            "goal_progress_pct": self.goal_progress_pct,
            "goal_reached": self.goal_reached,
            "point_count": self.point_count,
        }


@dataclass(frozen=True)
class WalkRecord:
    """
    Summary of one finished walk, as stored in history.

    Serialized with the short keys the history list has always used:
    {"date", "km", "sec", "avg"}.
    """

    date: datetime
    distance_km: float    # rounded to 2 decimals
    duration_sec: int     # rounded to the nearest second
    avg_speed_kmh: float

    def to_json(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "km": self.distance_km,
            "sec": self.duration_sec,
            "avg": self.avg_speed_kmh,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "WalkRecord":
        return cls(
            date=datetime.fromisoformat(data["date"]),
            distance_km=float(data["km"]),
            duration_sec=int(data["sec"]),
            avg_speed_kmh=float(data["avg"]),
        )


class TrackSession:
    """Mutable state of one walk in progress."""

    def __init__(self, goal_km: float, started_at: datetime, clock: Clock = utc_now):
        self.goal_km = goal_km
        self.started_at = started_at
        self._clock = clock
        self._points: List[GeoPoint] = []
        self._total_distance_km = 0.0
        self._active = True

    @classmethod
    def start(cls, goal_km: float, clock: Optional[Clock] = None) -> "TrackSession":
        """
        Begin a walk now: no points, zero distance.

        Raises:
            InvalidInput: goal_km is not a finite number > 0.
        """
        if isinstance(goal_km, bool) or not isinstance(goal_km, (int, float)) \
                or not math.isfinite(goal_km) or goal_km <= 0:
            raise InvalidInput(f"Goal must be a positive number of km, got {goal_km!r}")
        clock = clock or utc_now
        return cls(goal_km=goal_km, started_at=clock(), clock=clock)

    # ── State ─────────────────────────────────────────────────────────────────

    @property
    def active(self) -> bool:
        return self._active

    @property
    def points(self) -> List[GeoPoint]:
        """Copy of the recorded track, in ingestion order."""
        return list(self._points)

    @property
    def total_distance_km(self) -> float:
        return self._total_distance_km

    @property
    def last_point(self) -> Optional[GeoPoint]:
        return self._points[-1] if self._points else None

    def elapsed_sec(self) -> float:
        return (self._clock() - self.started_at).total_seconds()

    # ── Operations ────────────────────────────────────────────────────────────

    def ingest(self, point: GeoPoint) -> TrackSnapshot:
        """
        Append one sample and return the updated metrics.

        The increment from the previous point is added even when implausibly
        large. Distance and points are updated together, after the increment
        has been computed, so a failure leaves both untouched.
        """
        self._require_active()
        increment = haversine_km(self._points[-1], point) if self._points else 0.0
        self._points.append(point)
        self._total_distance_km += increment
        return self.snapshot()

    def snapshot(self) -> TrackSnapshot:
        """Current metrics without ingesting anything."""
        self._require_active()
        distance = self._total_distance_km
        elapsed = self.elapsed_sec()
        return TrackSnapshot(
            distance_km=distance,
            elapsed_sec=elapsed,
            avg_speed_kmh=average_speed_kmh(distance, elapsed),
            pace_sec_per_km=pace_sec_per_km(distance, elapsed),
            goal_progress_pct=goal_progress_pct(distance, self.goal_km),
            goal_reached=distance >= self.goal_km,
            point_count=len(self._points),
        )

    def stop(self) -> WalkRecord:
        """Finalize into a WalkRecord and deactivate the session."""
        self._require_active()
        ended_at = self._clock()
        elapsed = (ended_at - self.started_at).total_seconds()
        self._active = False
        return WalkRecord(
            date=ended_at,
            distance_km=round(self._total_distance_km, 2),
            duration_sec=round_half_up(elapsed),
            avg_speed_kmh=average_speed_kmh(self._total_distance_km, elapsed),
        )

    def _require_active(self) -> None:
        if not self._active:
            raise InvalidState("Walk session has already been stopped")
