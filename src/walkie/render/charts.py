"""
Track chart: the walked polyline as a PNG.

Stands in for the map surface when there is no tile layer to draw on.
Longitude on X, latitude on Y, aspect corrected by cos(latitude) so a square
block looks square. Start marked green, current/last position marked gold.

Each chart function returns (png_bytes, caption).
"""
import io
import math
from typing import Optional, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from walkie.analysis.geo import GeoPoint, path_length_km
from walkie.analysis.pace import format_distance

TRACK_COLOR = "#4ecdc4"
START_COLOR = "#70ad47"
LAST_COLOR = "#ffd700"
BACKGROUND = "#1a1a2e"


def render_track_png(
    points: Sequence[GeoPoint],
    title: Optional[str] = None,
) -> Tuple[bytes, str]:
    """
    Draw the track. Works for zero or one point (empty axes / single marker).

    Returns (png_bytes, caption).
    """
    lats = np.array([p.lat for p in points], dtype=float)
    lngs = np.array([p.lng for p in points], dtype=float)

    fig, ax = plt.subplots(figsize=(6, 6))
    fig.patch.set_facecolor(BACKGROUND)
    _style_ax(ax)

    if len(points) >= 2:
        ax.plot(lngs, lats, color=TRACK_COLOR, linewidth=2.5, zorder=2)
    if len(points) >= 1:
        ax.scatter(lngs[:1], lats[:1], color=START_COLOR, s=50, zorder=3, label="Start")
        ax.scatter(lngs[-1:], lats[-1:], color=LAST_COLOR, s=60, zorder=4, label="Now")
        mid_lat = float(np.mean(lats))
        cos_lat = math.cos(math.radians(mid_lat))
        if cos_lat > 1e-6:
            ax.set_aspect(1 / cos_lat, adjustable="datalim")
        ax.legend(loc="upper right", fontsize=8, facecolor=BACKGROUND, labelcolor="white")

    caption = f"{len(points)} points  ·  {format_distance(path_length_km(points))}"
    if title:
        caption = f"{title}  ·  {caption}"
    fig.suptitle(caption, color="white", fontsize=11, fontweight="bold")

    buf = io.BytesIO()
    plt.savefig(buf, format="png", dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    buf.seek(0)
    return buf.read(), caption


def _style_ax(ax) -> None:
    ax.set_facecolor("#2d2d4e")
    ax.tick_params(colors="white", labelsize=7)
    for side in ("bottom", "top", "left", "right"):
        ax.spines[side].set_color("#555577")
    ax.set_xlabel("Longitude", color="white", fontsize=8)
    ax.set_ylabel("Latitude", color="white", fontsize=8)
    ax.grid(color="#555577", linewidth=0.4, alpha=0.6)
