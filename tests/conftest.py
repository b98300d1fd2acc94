import datetime as dt
from pathlib import Path

import pytest

from gpxtrack.analyze.track import TrackPoint

T0 = dt.datetime(2023, 1, 1, tzinfo=dt.timezone.utc)


@pytest.fixture
def sample_gpx_path() -> Path:
    return Path(__file__).parent / "data" / "sample.gpx"


@pytest.fixture
def broken_gpx_path() -> Path:
    return Path(__file__).parent / "data" / "broken.gpx"


@pytest.fixture
def make_points():
    """Build equator points from longitudes, one minute apart by default."""

    def _make(lons, *, step_s=60, eles=None):
        eles = eles or [None] * len(lons)
        return [
            TrackPoint(lat=0.0, lon=lon, ele=ele, time=T0 + dt.timedelta(seconds=i * step_s))
            for i, (lon, ele) in enumerate(zip(lons, eles))
        ]

    return _make


@pytest.fixture
def path_3km(make_points):
    """Four points 0.01 degrees apart on the equator (~3.34 km)."""
    return make_points([0.0, 0.01, 0.02, 0.03])
