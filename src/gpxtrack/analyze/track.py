# gpxtrack/analyze/track.py
"""
Track analysis functions for gpxtrack

One left-to-right pass over an ordered list of TrackPoint values produces:
  - an AnalysisResult (distance, elevation, durations, speed, averages)
  - the distance-indexed path: [(cumulative_distance_m, point), ...]

The path is what the distance-marker resampler walks.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence

from gpxtrack.analyze.geo import distance_3d, m_to_unit
from gpxtrack.errors import ConfigurationError
from gpxtrack.util.timefmt import HOUR_MS

MAX_POINT_INTERVAL_MS = 15_000

# Points without a <time> count as if recorded at the Unix epoch.
EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)

DistanceIndexedPath = list[tuple[float, "TrackPoint"]]


@dataclass(frozen=True)
class TrackPoint:
    lat: float
    lon: float
    ele: float | None = None
    time: dt.datetime | None = None
    hr: int | None = None
    cad: int | None = None
    atemp: float | None = None
    speed: float | None = None     # m/s, as recorded by the device


@dataclass(frozen=True)
class AnalysisResult:
    """
    Aggregates for one trajectory.

    Optional fields are None when no point supplied the underlying value,
    never NaN and never a 0/0 average.
    """
    points: int = 0
    distance_m: float = 0.0
    elevation_gain: float = 0.0
    elevation_loss: float = 0.0
    elevation_max: Optional[float] = None
    elevation_min: Optional[float] = None
    duration_total_ms: float = 0.0
    duration_moving_ms: float = 0.0
    speed_max_mps: float = 0.0
    hr_avg: Optional[int] = None
    cad_avg: Optional[int] = None
    atemp_avg: Optional[int] = None
    start_time: Optional[dt.datetime] = None
    end_time: Optional[dt.datetime] = None

    def in_units(self, unit: str) -> float:
        """Total distance in "km" or "mi"."""
        return m_to_unit(self.distance_m, unit)

    def moving_speed(self, unit: str = "km") -> Optional[float]:
        """Distance per hour of moving time, in `unit` per hour."""
        if not self.duration_moving_ms:
            return None
        return self.in_units(unit) / (self.duration_moving_ms / HOUR_MS)

    def total_speed(self, unit: str = "km") -> Optional[float]:
        """Distance per hour of total time, in `unit` per hour."""
        if not self.duration_total_ms:
            return None
        return self.in_units(unit) / (self.duration_total_ms / HOUR_MS)

    def moving_pace(self, unit: str = "km") -> Optional[float]:
        """Moving milliseconds per `unit` of distance."""
        if not self.distance_m:
            return None
        return self.duration_moving_ms / self.in_units(unit)


def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def _epoch_like(other: Optional[dt.datetime]) -> dt.datetime:
    """The epoch, naive or aware to match `other`."""
    if other is not None and other.tzinfo is None:
        return EPOCH.replace(tzinfo=None)
    return EPOCH


def _millis(a: Optional[dt.datetime], b: Optional[dt.datetime]) -> float:
    """Absolute time between two timestamps in milliseconds."""
    a = a if a is not None else _epoch_like(b)
    b = b if b is not None else _epoch_like(a)
    return abs((b - a) / dt.timedelta(milliseconds=1))


class _Sample:
    """Running sum/count for a per-point optional field."""

    __slots__ = ("total", "count")

    def __init__(self) -> None:
        self.total = 0.0
        self.count = 0

    def add(self, v) -> None:
        if v is not None:
            self.total += v
            self.count += 1

    def average(self) -> Optional[int]:
        if not self.count:
            return None
        return _round_half_up(self.total / self.count)


def _check_interval(max_point_interval_ms) -> None:
    if (isinstance(max_point_interval_ms, bool)
            or not isinstance(max_point_interval_ms, (int, float))
            or not max_point_interval_ms > 0):
        raise ConfigurationError(
            f"max_point_interval_ms must be a positive number, got {max_point_interval_ms!r}")


class _Accumulator:
    """
    Running aggregates over one or more segments.

    Pairwise quantities (distance, gain/loss, durations, derived speed) only
    look at consecutive points of the same segment; new_segment() drops the
    previous-point cursor and the carried elevation.
    """

    def __init__(self, max_point_interval_ms: float) -> None:
        self.max_point_interval_ms = max_point_interval_ms
        self.path: DistanceIndexedPath = []
        self.length = 0.0
        self.gain = self.loss = 0.0
        self.ele_max = -math.inf
        self.ele_min = math.inf
        self.total_ms = self.moving_ms = 0.0
        self.speed_max = 0.0
        self.hr, self.cad, self.atemp = _Sample(), _Sample(), _Sample()
        self.new_segment()

    def new_segment(self) -> None:
        self.last: Optional[TrackPoint] = None
        self.last_ele: Optional[float] = None

    def add(self, p: TrackPoint) -> None:
        last, last_ele = self.last, self.last_ele
        ele = p.ele if p.ele is not None else last_ele

        if ele is not None:
            self.ele_max = max(self.ele_max, ele)
            self.ele_min = min(self.ele_min, ele)

        self.hr.add(p.hr)
        self.cad.add(p.cad)
        self.atemp.add(p.atemp)

        speed = p.speed
        if last is not None:
            d = distance_3d(last.lat, last.lon, last_ele, p.lat, p.lon, ele)
            self.length += d

            if ele is not None and last_ele is not None:
                delta = ele - last_ele
                if delta > 0:
                    self.gain += delta
                else:
                    self.loss += -delta

            t = _millis(last.time, p.time)
            self.total_ms += t
            if t < self.max_point_interval_ms:
                self.moving_ms += t

            if speed is None:
                speed = 1000.0 * d / t if t > 0 else 0.0

        if speed is not None:
            self.speed_max = max(self.speed_max, speed)

        self.path.append((self.length, p))
        self.last = p
        self.last_ele = ele

    def result(self) -> AnalysisResult:
        path = self.path
        return AnalysisResult(
            points=len(path),
            distance_m=self.length,
            elevation_gain=self.gain,
            elevation_loss=self.loss,
            elevation_max=self.ele_max if self.ele_max != -math.inf else None,
            elevation_min=self.ele_min if self.ele_min != math.inf else None,
            duration_total_ms=self.total_ms,
            duration_moving_ms=self.moving_ms,
            speed_max_mps=self.speed_max,
            hr_avg=self.hr.average(),
            cad_avg=self.cad.average(),
            atemp_avg=self.atemp.average(),
            start_time=path[0][1].time if path else None,
            end_time=path[-1][1].time if path else None,
        )


def accumulate(
        points: Sequence[TrackPoint], *,
        max_point_interval_ms: float = MAX_POINT_INTERVAL_MS,
) -> tuple[AnalysisResult, DistanceIndexedPath]:
    """
    Analyze an ordered point list in a single pass.

    Returns (AnalysisResult, distance-indexed path). The path has one entry
    per input point; the first entry's distance is always 0.0.

    Raises:
      ConfigurationError if max_point_interval_ms is not a positive number.
    """
    return accumulate_segments([points], max_point_interval_ms=max_point_interval_ms)


def accumulate_segments(
        segments: Iterable[Sequence[TrackPoint]], *,
        max_point_interval_ms: float = MAX_POINT_INTERVAL_MS,
) -> tuple[AnalysisResult, DistanceIndexedPath]:
    """
    Analyze several segments (e.g. GPX <trkseg>s) into one set of totals.

    Nothing is measured across a segment boundary: no distance, no time,
    no elevation change. The returned path runs through all segments, so a
    segment's first point repeats the previous segment's final distance.
    """
    _check_interval(max_point_interval_ms)

    acc = _Accumulator(max_point_interval_ms)
    for points in segments:
        acc.new_segment()
        for p in points:
            acc.add(p)
    return acc.result(), acc.path


def elevation_profile(path: DistanceIndexedPath) -> list[tuple[float, float]]:
    """(distance_m, elevation) for every point with a known elevation, carried forward."""
    out: list[tuple[float, float]] = []
    last_ele: Optional[float] = None
    for d, p in path:
        if p.ele is not None:
            last_ele = p.ele
        if last_ele is not None:
            out.append((d, last_ele))
    return out


def hr_profile(path: DistanceIndexedPath) -> list[tuple[float, int]]:
    """(distance_m, heart rate) for every point that recorded one."""
    return [(d, p.hr) for d, p in path if p.hr is not None]


def analyze_track(gpx_path: Path, *, max_point_interval_ms: float = MAX_POINT_INTERVAL_MS):
    """Read a GPX file and analyze its track segments into one set of totals."""
    # Imported here: the GPX adapter depends on TrackPoint from this module.
    from gpxtrack.formats.gpx import read_gpx, extract_segments

    segments = extract_segments(read_gpx(gpx_path))
    return accumulate_segments(segments, max_point_interval_ms=max_point_interval_ms)
