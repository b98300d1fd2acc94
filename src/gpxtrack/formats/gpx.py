# gpxtrack/formats/gpx.py
"""
GPX helpers for gpxtrack

This module is intentionally format-focused:
- GPX namespace handling
- safely reading and writing ElementTree
- turning <trkpt>/<rtept> nodes into immutable TrackPoint values
- extracting track metadata (name, desc, author, copyright) and waypoints

Key design principle:
  Keep analysis (distance, durations, markers) in gpxtrack.analyze,
  separate from GPX parsing and serialization (here).
"""

from __future__ import annotations

import datetime as _dt
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional
from xml.etree import ElementTree as ET

from gpxtrack.analyze.markers import DistanceMarker
from gpxtrack.analyze.track import TrackPoint
from gpxtrack.errors import InvalidGpxError

# GPX 1.1 default namespace
GPX_NS = {"gpx": "http://www.topografix.com/GPX/1/1"}

# Which containers to read for each requested element kind
_ELEMENT_TAGS = {
    "track": ("trkseg", "trkpt"),
    "route": ("rte", "rtept"),
}


def qn(tag: str) -> str:
    """
    Build an ElementTree-qualified name for a GPX tag.

    ElementTree represents namespaced tags internally as
      "{namespace-uri}tag"
    """
    return f"{{{GPX_NS['gpx']}}}{tag}"


def _local(tag: str) -> str:
    """Strip any "{namespace}" prefix from an ElementTree tag."""
    return tag.rsplit("}", 1)[-1]


def _parse_gpx_time(text: str) -> Optional[_dt.datetime]:
    """
    Parse an ISO-8601 timestamp commonly found in GPX <time> nodes.

    Expected examples:
      - "2026-01-02T21:14:44Z"
      - "2026-01-02T21:14:44.123Z"
      - "2026-01-02T21:14:44+00:00"
    """
    if not text:
        return None
    s = text.strip()
    if not s:
        return None

    # ElementTree GPX times commonly use Z for UTC.
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        dt = _dt.datetime.fromisoformat(s)
    except ValueError:
        return None

    # Ensure tz-aware; if naive, assume UTC (conservative for GPX sources)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)

    return dt.astimezone(_dt.timezone.utc)


def _format_gpx_time(dt: _dt.datetime) -> str:
    """
    Format a tz-aware datetime as GPX time (UTC with Z).
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)
    dt_utc = dt.astimezone(_dt.timezone.utc)
    # Use seconds resolution for readability and stability.
    return dt_utc.replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _indent(elem: ET.Element, level: int = 0, indent: str = "  ") -> None:
    """
    In-place pretty-printer for ElementTree output. Eliminates double blank-line
    issues by explicitly controlling .text/.tail.
    """
    i = "\n" + level * indent
    j = "\n" + (level - 1) * indent if level > 0 else "\n"

    children = list(elem)
    if children:
        if elem.text is None or not elem.text.strip():
            elem.text = i + indent
        for child in children:
            _indent(child, level + 1, indent=indent)
        if children[-1].tail is None or not children[-1].tail.strip():
            children[-1].tail = i
    if elem.tail is None or not elem.tail.strip():
        elem.tail = j


def read_gpx(path: Path) -> ET.ElementTree:
    """
    Read a GPX file into an ElementTree.

    Raises:
      InvalidGpxError if the file cannot be read or is not well-formed XML.
    """
    try:
        return ET.parse(path)
    except (ET.ParseError, OSError) as e:
        raise InvalidGpxError(f"Cannot read GPX {path}: {e}") from e


def write_gpx(root: ET.Element, out_path: Path, *, pretty: bool = True) -> None:
    """
    Write a GPX XML tree to disk.

    - pretty=True applies indentation for human readability
    - writes UTF-8 with XML declaration
    """
    if pretty:
        _indent(root)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tree = ET.ElementTree(root)
    tree.write(out_path, encoding="utf-8", xml_declaration=True)


# ---------------------------------------------------------------------------
# Value parsing
# ---------------------------------------------------------------------------
def _child_text(el: ET.Element, name: str) -> Optional[str]:
    """Text of the first direct child with local name `name`, if non-empty."""
    for child in el:
        if _local(child.tag) == name:
            text = (child.text or "").strip()
            return text or None
    return None


def _extension_text(el: ET.Element, name: str) -> Optional[str]:
    """
    Text of the first descendant with local name `name`.

    Garmin and other vendors nest values like <gpxtpx:hr> several levels
    deep under <extensions>, in whatever namespace they chose.
    """
    for child in el.iter():
        if child is el:
            continue
        if _local(child.tag) == name:
            text = (child.text or "").strip()
            if text:
                return text
    return None


def _as_float(text: Optional[str]) -> Optional[float]:
    if text is None:
        return None
    try:
        v = float(text)
    except ValueError:
        return None
    # "nan", "inf" and "Infinity" parse, but are not measurements
    return v if math.isfinite(v) else None


def _as_int(text: Optional[str]) -> Optional[int]:
    v = _as_float(text)
    return int(v) if v is not None else None


def _coord(el: ET.Element, attr: str) -> float:
    raw = el.get(attr)
    try:
        v = float(raw)
    except (TypeError, ValueError):
        v = math.nan
    if not math.isfinite(v):
        raise InvalidGpxError(f"<{_local(el.tag)}> has missing or invalid {attr}={raw!r}")
    return v


def parse_point(el: ET.Element) -> TrackPoint:
    """Build a TrackPoint from a <trkpt>, <rtept> or <wpt> element."""
    time_text = _child_text(el, "time")
    return TrackPoint(
        lat=_coord(el, "lat"),
        lon=_coord(el, "lon"),
        ele=_as_float(_child_text(el, "ele")),
        time=_parse_gpx_time(time_text) if time_text else None,
        hr=_as_int(_extension_text(el, "hr")),
        cad=_as_int(_extension_text(el, "cad")),
        atemp=_as_float(_extension_text(el, "atemp")),
        speed=_as_float(_extension_text(el, "speed")),
    )


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------
def _iter_local(root: ET.Element, name: str) -> Iterable[ET.Element]:
    """All elements with local name `name`, in document order (any namespace)."""
    return (el for el in root.iter() if _local(el.tag) == name)


def extract_segments(
        tree: ET.ElementTree, *,
        elements: Iterable[str] = ("track",),
) -> list[list[TrackPoint]]:
    """
    Extract one ordered point list per <trkseg> (and per <rte> for "route").

    Empty segments are dropped.
    """
    root = tree.getroot()
    segments: list[list[TrackPoint]] = []
    for kind in elements:
        if kind not in _ELEMENT_TAGS:
            raise ValueError(f"Unknown GPX element kind {kind!r}")
        container, point_tag = _ELEMENT_TAGS[kind]
        for seg in _iter_local(root, container):
            pts = [parse_point(el) for el in seg if _local(el.tag) == point_tag]
            if pts:
                segments.append(pts)
    return segments


def extract_trackpoints(
        tree: ET.ElementTree, *,
        elements: Iterable[str] = ("track",),
) -> list[TrackPoint]:
    """Extract ordered points from a GPX tree as one flat list."""
    return [p for seg in extract_segments(tree, elements=elements) for p in seg]


@dataclass(frozen=True)
class TrackMetadata:
    name: Optional[str] = None
    desc: Optional[str] = None
    author: Optional[str] = None
    copyright: Optional[str] = None


def read_metadata(tree: ET.ElementTree) -> TrackMetadata:
    """
    Collect descriptive fields.

    Preference order for name/desc:
      - <metadata> child (GPX 1.1)
      - <gpx> child (GPX 1.0)
      - first <trk>, then first <rte>
    """
    root = tree.getroot()
    containers = [*_iter_local(root, "metadata"), root,
                  *_iter_local(root, "trk"), *_iter_local(root, "rte")]

    def first_text(name: str) -> Optional[str]:
        for el in containers:
            text = _child_text(el, name)
            if text:
                return text
        return None

    author = None
    for el in _iter_local(root, "author"):
        # GPX 1.1: <author><name>..</name></author>; GPX 1.0: <author>text</author>
        author = _child_text(el, "name") or (el.text or "").strip() or None
        if author:
            break

    copyright_ = None
    for el in _iter_local(root, "copyright"):
        copyright_ = el.get("author") or (el.text or "").strip() or None
        if copyright_:
            break

    return TrackMetadata(
        name=first_text("name"),
        desc=first_text("desc"),
        author=author,
        copyright=copyright_,
    )


@dataclass(frozen=True)
class Waypoint:
    point: TrackPoint
    name: Optional[str] = None
    desc: Optional[str] = None
    sym: Optional[str] = None


def read_waypoints(tree: ET.ElementTree) -> list[Waypoint]:
    """Top-level <wpt> elements, in document order."""
    return [
        Waypoint(
            point=parse_point(el),
            name=_child_text(el, "name"),
            desc=_child_text(el, "desc"),
            sym=_child_text(el, "sym"),
        )
        for el in _iter_local(tree.getroot(), "wpt")
    ]


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------
def markers_to_gpx(markers: Iterable[DistanceMarker], *, name: Optional[str] = None) -> ET.Element:
    """Build a GPX 1.1 document holding one <wpt> per distance marker."""
    ET.register_namespace("", GPX_NS["gpx"])
    root = ET.Element(qn("gpx"), {"version": "1.1", "creator": "gpxtrack"})

    md = ET.SubElement(root, qn("metadata"))
    if name:
        ET.SubElement(md, qn("name")).text = name
    ET.SubElement(md, qn("time")).text = _format_gpx_time(_dt.datetime.now(_dt.timezone.utc))

    for m in markers:
        wpt = ET.SubElement(root, qn("wpt"), {"lat": f"{m.lat:.7f}", "lon": f"{m.lon:.7f}"})
        ET.SubElement(wpt, qn("name")).text = m.label
        ET.SubElement(wpt, qn("desc")).text = f"{m.distance_m:.1f} m"
        ET.SubElement(wpt, qn("type")).text = "distance-marker"
    return root


def write_markers_gpx(
        markers: Iterable[DistanceMarker], out_path: Path, *,
        name: Optional[str] = None, pretty: bool = True,
) -> None:
    """Write distance markers as GPX waypoints."""
    write_gpx(markers_to_gpx(markers, name=name), out_path, pretty=pretty)
