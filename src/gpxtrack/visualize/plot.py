# gpxtrack/visualize/plot.py
"""
Plotting routines for gpxtrack
"""

from __future__ import annotations

from typing import Optional, Sequence

import matplotlib.pyplot as plt

from gpxtrack.analyze.geo import m_to_unit
from gpxtrack.analyze.markers import DistanceMarker
from gpxtrack.analyze.track import DistanceIndexedPath, elevation_profile


def plot_profile(
        path: DistanceIndexedPath,
        markers: Sequence[DistanceMarker] = (),
        *,
        unit: str = "km",
        title: Optional[str] = None,
        show: bool = True,
):
    """
    Elevation against distance, with a dashed line at each distance marker.

    Returns the matplotlib Figure.
    """
    profile = elevation_profile(path)
    xs = [m_to_unit(d, unit) for d, _ in profile]
    ys = [e for _, e in profile]

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(xs, ys, linewidth=1.2)
    for m in markers:
        ax.axvline(m_to_unit(m.distance_m, unit), color="grey", linestyle="--", linewidth=0.6)
        ax.annotate(m.label, (m_to_unit(m.distance_m, unit), 1.0),
                    xycoords=("data", "axes fraction"),
                    ha="center", va="bottom", fontsize=7)
    ax.set_xlabel(f"Distance ({unit})")
    ax.set_ylabel("Elevation (m)")
    ax.set_title(title or "Elevation profile")
    fig.tight_layout()

    if show:
        plt.show()
    return fig
