"""Text rendering of walk metrics and history for the walk and history screens."""
from typing import Dict, List, Sequence

from walkie.analysis.pace import format_clock, format_distance, format_pace, format_speed
from walkie.analysis.track import TrackSnapshot, WalkRecord

EMPTY_HISTORY = "No walks saved yet."
DEFAULT_HISTORY_LIMIT = 25


def format_snapshot(snapshot: TrackSnapshot) -> Dict[str, str]:
    """The walk screen tiles: distance, duration, speed, pace, goal progress."""
    return {
        "distance": format_distance(snapshot.distance_km),
        "duration": format_clock(snapshot.elapsed_sec),
        "speed": format_speed(snapshot.avg_speed_kmh),
        "pace": format_pace(snapshot.pace_sec_per_km),
        "goal": f"{snapshot.goal_progress_pct}%",
    }


def format_history_item(record: WalkRecord, index: int) -> str:
    """One history line: "1.23 km · 15:04 · 4.9 km/h · 2025-01-15 07:30  #1"."""
    return (
        f"{format_distance(record.distance_km)} · {format_clock(record.duration_sec)} · "
        f"{format_speed(record.avg_speed_kmh)} · {record.date.strftime('%Y-%m-%d %H:%M')}"
        f"  #{index + 1}"
    )


def format_history(
    records: Sequence[WalkRecord],
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> List[str]:
    """Most recent first, at most `limit` lines; a single empty-state line if none."""
    if not records:
        return [EMPTY_HISTORY]
    return [format_history_item(r, i) for i, r in enumerate(records[:limit])]
