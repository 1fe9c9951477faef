"""
Display formatting for walk metrics: clock, pace, speed, distance, goal.

Walks are slow and short, so the walk screen shows average speed in km/h
and elapsed time as MM:SS; pace (time per distance) is offered alongside.
"""
from typing import Optional

# 1 mile in kilometers
_KM_PER_MILE = 1.60934


def format_clock(seconds: float) -> str:
    """
    Format elapsed seconds as "MM:SS".

    Minutes are not wrapped at 60: a 75-minute walk reads "75:00".
    """
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"


def format_pace(pace_s_per_km: Optional[float], unit: str = "km") -> str:
    """
    Format a pace (seconds/km) as "12:30/km" or "20:07/mi".

    Returns "--" when pace is undefined (nothing walked yet).
    """
    if pace_s_per_km is None:
        return "--"
    if unit == "mi":
        pace_s = pace_s_per_km * _KM_PER_MILE
        unit_label = "mi"
    else:
        pace_s = pace_s_per_km
        unit_label = "km"

    minutes = int(pace_s) // 60
    seconds = int(pace_s) % 60
    return f"{minutes}:{seconds:02d}/{unit_label}"


def format_speed(speed_kmh: float) -> str:
    return f"{speed_kmh:.1f} km/h"


def format_distance(distance_km: float) -> str:
    return f"{distance_km:.2f} km"


def format_goal(goal_km: float) -> str:
    return f"Goal: {goal_km:.1f} km"
