# gpxtrack/analyze/markers.py
"""
Distance markers: evenly spaced virtual points along an analyzed track.

A marker sits at every multiple of the configured interval up to the
track's total distance. Its position is linearly interpolated between the
two recorded points that bracket that distance.
"""

from __future__ import annotations

from dataclasses import dataclass

from gpxtrack.analyze.geo import UNITS, interpolate, normalize_unit
from gpxtrack.analyze.track import DistanceIndexedPath
from gpxtrack.errors import ConfigurationError


@dataclass(frozen=True)
class MarkerConfig:
    """Marker spacing, expressed in the caller's unit ("km" or "mi")."""
    interval: float = 1.0
    unit: str = "km"

    def __post_init__(self) -> None:
        canonical = normalize_unit(self.unit)
        if canonical is None:
            raise ConfigurationError(
                f"Unknown distance unit {self.unit!r} (expected one of: {', '.join(UNITS)})")
        if (isinstance(self.interval, bool)
                or not isinstance(self.interval, (int, float))
                or not self.interval > 0):
            raise ConfigurationError(f"Marker interval must be positive, got {self.interval!r}")
        # frozen: bypass __setattr__ to store the canonical spelling
        object.__setattr__(self, "unit", canonical)

    @property
    def interval_m(self) -> float:
        return self.interval * UNITS[self.unit]

    def label(self, k: int) -> str:
        """Label for the k-th marker, e.g. "3 km" or "0.5 km"."""
        return f"{format_number(k * self.interval)} {self.unit}"


@dataclass(frozen=True)
class DistanceMarker:
    lat: float
    lon: float
    distance_m: float
    label: str
    index: int


def format_number(v: float) -> str:
    """Format a number without a redundant trailing ".0" (3.0 -> "3", 0.5 -> "0.5")."""
    s = f"{round(v, 6):.6f}".rstrip("0").rstrip(".")
    return "0" if s in ("", "-0") else s


def distance_markers(path: DistanceIndexedPath, config: MarkerConfig) -> list[DistanceMarker]:
    """
    Place a marker at every interval multiple reached by the path.

    Markers come out in increasing distance order; the number of markers is
    floor(total_distance / interval). A multiple landing exactly on a point
    is emitted on the segment that ends at that point.

    Paths with fewer than two points yield no markers.
    """
    interval_m = config.interval_m
    markers: list[DistanceMarker] = []
    if len(path) < 2:
        return markers

    k = 1
    for (d_a, a), (d_b, b) in zip(path, path[1:]):
        # Multiples below d_a were consumed on earlier segments.
        while k * interval_m <= d_b:
            target = k * interval_m
            f = (target - d_a) / (d_b - d_a) if d_b > d_a else 0.0
            lat, lon = interpolate(a.lat, a.lon, b.lat, b.lon, f)
            markers.append(DistanceMarker(
                lat=lat,
                lon=lon,
                distance_m=target,
                label=config.label(k),
                index=k,
            ))
            k += 1

    return markers
