import math

import pytest

from gpxtrack.analyze.geo import (
    distance_2d,
    distance_3d,
    interpolate,
    m_to_ft,
    m_to_unit,
    normalize_unit,
)


def test_distance_2d_on_equator_uses_6371km_sphere():
    expected = 6_371_000.0 * math.radians(0.01)

    assert distance_2d(0.0, 0.0, 0.0, 0.01) == pytest.approx(expected, rel=1e-9)
    assert distance_2d(45.0, 7.0, 45.0, 7.0) == 0.0


def test_distance_3d_combines_height():
    planar = distance_2d(0.0, 0.0, 0.0, 0.001)

    assert distance_3d(0.0, 0.0, 10.0, 0.0, 0.001, 40.0) == pytest.approx(math.hypot(planar, 30.0))
    assert distance_3d(0.0, 0.0, None, 0.0, 0.001, 40.0) == pytest.approx(planar)


def test_interpolate():
    assert interpolate(10.0, 20.0, 12.0, 24.0, 0.25) == (10.5, 21.0)
    assert interpolate(10.0, 20.0, 12.0, 24.0, 0.0) == (10.0, 20.0)


def test_units():
    assert m_to_unit(1609.34, "mi") == pytest.approx(1.0)
    assert m_to_unit(2500.0, "km") == 2.5
    assert m_to_ft(1.0) == pytest.approx(3.28084)
    assert normalize_unit(" Miles ") == "mi"
    assert normalize_unit("leagues") is None
