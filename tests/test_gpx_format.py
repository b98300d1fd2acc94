import datetime as dt
from xml.etree import ElementTree as ET

import pytest

from gpxtrack.analyze.track import accumulate
from gpxtrack.analyze.markers import DistanceMarker
from gpxtrack.errors import InvalidGpxError
from gpxtrack.formats.gpx import (
    GPX_NS,
    _parse_gpx_time,
    extract_segments,
    extract_trackpoints,
    read_gpx,
    read_metadata,
    read_waypoints,
    write_markers_gpx,
)


def test_extract_trackpoints(sample_gpx_path):
    points = extract_trackpoints(read_gpx(sample_gpx_path))

    assert len(points) == 5
    first = points[0]
    assert (first.lat, first.lon, first.ele) == (0.0, 0.0, 100.0)
    assert first.time == dt.datetime(2024, 5, 1, 8, 0, tzinfo=dt.timezone.utc)
    assert (first.hr, first.cad, first.atemp, first.speed) == (120, 80, 20.0, None)

    # absent values stay absent
    assert points[2].ele is None
    assert points[2].cad is None
    assert points[3].hr is None


def test_extract_segments(sample_gpx_path):
    tree = read_gpx(sample_gpx_path)

    segments = extract_segments(tree)
    assert [len(s) for s in segments] == [2, 3]

    with_route = extract_segments(tree, elements=("track", "route"))
    assert [len(s) for s in with_route] == [2, 3, 2]
    assert with_route[-1][1].lon == 1.01

    route_only = extract_trackpoints(tree, elements=("route",))
    assert [(p.lat, p.lon) for p in route_only] == [(1.0, 1.0), (1.0, 1.01)]


def test_unknown_element_kind(sample_gpx_path):
    with pytest.raises(ValueError):
        extract_segments(read_gpx(sample_gpx_path), elements=("waypoint",))


def test_read_metadata(sample_gpx_path):
    meta = read_metadata(read_gpx(sample_gpx_path))

    assert meta.name == "Sample Ride"
    assert meta.desc == "Four equator steps and a long stop"
    assert meta.author == "Test Author"
    assert meta.copyright == "Test Author"


def test_gpx10_speed_and_track_name(tmp_path):
    doc = tmp_path / "old.gpx"
    doc.write_text(
        '<gpx xmlns="http://www.topografix.com/GPX/1/0" version="1.0">'
        "<trk><name>Commute</name><trkseg>"
        '<trkpt lat="1.5" lon="2.5"><speed>3.25</speed><time>2020-01-01T00:00:00</time></trkpt>'
        '<trkpt lat="1.5" lon="2.6"><ele>not-a-number</ele></trkpt>'
        "</trkseg></trk></gpx>",
        encoding="utf-8",
    )
    tree = read_gpx(doc)
    points = extract_trackpoints(tree)

    assert points[0].speed == 3.25
    assert points[0].time.tzinfo is not None
    assert points[1].ele is None
    assert points[1].time is None
    assert read_metadata(tree).name == "Commute"


def test_missing_latitude_is_invalid(tmp_path):
    doc = tmp_path / "nolat.gpx"
    doc.write_text(
        '<gpx xmlns="http://www.topografix.com/GPX/1/1"><trk><trkseg>'
        '<trkpt lon="2.5"/></trkseg></trk></gpx>',
        encoding="utf-8",
    )
    with pytest.raises(InvalidGpxError, match="lat"):
        extract_trackpoints(read_gpx(doc))


def test_malformed_xml(broken_gpx_path):
    with pytest.raises(InvalidGpxError):
        read_gpx(broken_gpx_path)


def test_missing_file(tmp_path):
    with pytest.raises(InvalidGpxError):
        read_gpx(tmp_path / "nope.gpx")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2026-01-02T21:14:44Z", dt.datetime(2026, 1, 2, 21, 14, 44, tzinfo=dt.timezone.utc)),
        ("2026-01-02T23:14:44+02:00", dt.datetime(2026, 1, 2, 21, 14, 44, tzinfo=dt.timezone.utc)),
        ("garbage", None),
        ("   ", None),
    ],
)
def test_parse_gpx_time(text, expected):
    assert _parse_gpx_time(text) == expected


def test_write_markers_gpx(tmp_path):
    markers = [
        DistanceMarker(lat=0.0, lon=0.009, distance_m=1000.0, label="1 km", index=1),
        DistanceMarker(lat=0.0, lon=0.018, distance_m=2000.0, label="2 km", index=2),
    ]
    out = tmp_path / "nested" / "ride.markers.gpx"

    write_markers_gpx(markers, out, name="Ride")

    root = ET.parse(out).getroot()
    wpts = root.findall("gpx:wpt", GPX_NS)
    assert [w.findtext("gpx:name", namespaces=GPX_NS) for w in wpts] == ["1 km", "2 km"]
    assert float(wpts[1].get("lon")) == pytest.approx(0.018)
    assert root.findtext("gpx:metadata/gpx:name", namespaces=GPX_NS) == "Ride"


def _one_point_gpx(tmp_path, trkpt: str):
    doc = tmp_path / "one.gpx"
    doc.write_text(
        '<gpx xmlns="http://www.topografix.com/GPX/1/1"><trk><trkseg>'
        f"{trkpt}"
        '<trkpt lat="0.0" lon="0.001"><ele>12</ele></trkpt>'
        "</trkseg></trk></gpx>",
        encoding="utf-8",
    )
    return read_gpx(doc)


@pytest.mark.parametrize("value", ["nan", "NaN", "inf", "-inf", "Infinity"])
def test_non_finite_measurements_are_absent(tmp_path, value):
    tree = _one_point_gpx(
        tmp_path,
        f'<trkpt lat="0.0" lon="0.0"><ele>{value}</ele><speed>{value}</speed>'
        f"<extensions><hr>{value}</hr><cad>{value}</cad><atemp>{value}</atemp></extensions>"
        "</trkpt>",
    )
    points = extract_trackpoints(tree)

    first = points[0]
    assert (first.ele, first.hr, first.cad, first.atemp, first.speed) == (None, None, None, None, None)

    result, _ = accumulate(points)
    assert result.distance_m == pytest.approx(111.19, abs=0.01)
    assert result.elevation_max == result.elevation_min == 12.0


@pytest.mark.parametrize("attr", ["lat", "lon"])
@pytest.mark.parametrize("value", ["nan", "inf", "-inf"])
def test_non_finite_coordinates_are_invalid(tmp_path, attr, value):
    coords = {"lat": "0.0", "lon": "0.0", attr: value}
    tree = _one_point_gpx(tmp_path, f'<trkpt lat="{coords["lat"]}" lon="{coords["lon"]}"/>')

    with pytest.raises(InvalidGpxError, match=attr):
        extract_trackpoints(tree)


def test_read_waypoints(sample_gpx_path):
    waypoints = read_waypoints(read_gpx(sample_gpx_path))

    assert len(waypoints) == 1
    start = waypoints[0]
    assert start.name == "START"
    assert (start.point.lat, start.point.lon) == (0.0, 0.0)
    assert start.desc is None
    assert start.sym is None


def test_track_without_waypoints(tmp_path):
    assert read_waypoints(_one_point_gpx(tmp_path, "")) == []
