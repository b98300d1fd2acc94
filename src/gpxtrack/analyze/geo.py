# gpxtrack/analyze/geo.py
"""
Spherical-earth distance and unit helpers for gpxtrack.

All distances are meters unless a function name says otherwise.
"""

from __future__ import annotations

import math
from typing import Optional

from haversine import haversine, Unit

EARTH_RADIUS_M = 6_371_000.0

METERS_PER_KM = 1000.0
METERS_PER_MILE = 1609.34
FEET_PER_METER = 3.28084

# Canonical unit abbreviation -> meters per unit
UNITS = {
    "km": METERS_PER_KM,
    "mi": METERS_PER_MILE,
}

_UNIT_ALIASES = {
    "km": "km",
    "kilometer": "km",
    "kilometers": "km",
    "kilometre": "km",
    "kilometres": "km",
    "mi": "mi",
    "mile": "mi",
    "miles": "mi",
}


def normalize_unit(unit: str) -> Optional[str]:
    """Return the canonical abbreviation for `unit`, or None if unknown."""
    if not isinstance(unit, str):
        return None
    return _UNIT_ALIASES.get(unit.strip().lower())


def distance_2d(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (haversine) distance in meters on a 6 371 km sphere."""
    # Unit.RADIANS yields the central angle, so the radius is ours to pick.
    return EARTH_RADIUS_M * haversine((lat1, lon1), (lat2, lon2), unit=Unit.RADIANS)


def distance_3d(
        lat1: float, lon1: float, ele1: Optional[float],
        lat2: float, lon2: float, ele2: Optional[float],
) -> float:
    """
    Planar distance combined with the elevation difference.

    An unknown elevation on either side contributes no vertical component.
    """
    planar = distance_2d(lat1, lon1, lat2, lon2)
    if ele1 is None or ele2 is None:
        return planar
    return math.hypot(planar, ele2 - ele1)


def interpolate(lat1: float, lon1: float, lat2: float, lon2: float, f: float) -> tuple[float, float]:
    """Linear blend of two positions; f=0 gives the first, f=1 the second."""
    return lat1 + f * (lat2 - lat1), lon1 + f * (lon2 - lon1)


def m_to_ft(v: float) -> float:
    return v * FEET_PER_METER


def m_to_unit(v: float, unit: str) -> float:
    """Convert meters to a canonical unit abbreviation ("km" or "mi")."""
    return v / UNITS[unit]
