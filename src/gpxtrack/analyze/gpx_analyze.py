#!/usr/bin/env python3
"""
gpx-analyze: distance, elevation, timing and distance markers for GPX tracks.

Examples:
  gpx-analyze ride.gpx
  gpx-analyze --unit mi --interval 0.5 --markers ride.gpx
  gpx-analyze --tsv *.gpx > summary.tsv
  gpx-analyze                      # pick files under the work root with fzf
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from gpxtrack.analyze.geo import m_to_ft
from gpxtrack.analyze.markers import DistanceMarker, MarkerConfig, distance_markers
from gpxtrack.analyze.track import AnalysisResult, accumulate_segments
from gpxtrack.config import load_config
from gpxtrack.errors import ConfigurationError, GpxTrackError, InvalidGpxError
from gpxtrack.formats.gpx import (
    extract_segments,
    read_gpx,
    read_metadata,
    read_waypoints,
    write_markers_gpx,
)
from gpxtrack.util.fzf import fzf_select_paths
from gpxtrack.util.logging import log
from gpxtrack.util.timefmt import format_duration
from gpxtrack.visualize.plot import plot_profile

TSV_HEADER = (
    "file\tpoints\tdistance_m\televation_gain_m\televation_loss_m\t"
    "duration_total_ms\tduration_moving_ms\tmax_speed_mps\thr_avg\tmarkers"
)


def _fmt(v, spec: str = "", missing: str = "-") -> str:
    return missing if v is None else format(v, spec)


def _elev(v: Optional[float], unit: str) -> Optional[float]:
    if v is None:
        return None
    return m_to_ft(v) if unit == "mi" else v


def print_report(
        path: Path, name: Optional[str], stats: AnalysisResult,
        markers: list[DistanceMarker], *,
        unit: str, tsv: bool, show_markers: bool, waypoints: int = 0,
) -> None:
    if tsv:
        print(
            f"{path}\t"
            f"{stats.points}\t"
            f"{stats.distance_m:.2f}\t"
            f"{stats.elevation_gain:.1f}\t"
            f"{stats.elevation_loss:.1f}\t"
            f"{stats.duration_total_ms:.0f}\t"
            f"{stats.duration_moving_ms:.0f}\t"
            f"{stats.speed_max_mps:.3f}\t"
            f"{_fmt(stats.hr_avg, missing='')}\t"
            f"{len(markers)}"
        )
        return

    elev_unit = "ft" if unit == "mi" else "m"
    speed = stats.moving_speed(unit)

    print(f"\n{path}" + (f"  ({name})" if name else ""))
    print(f"  points          : {stats.points}")
    print(f"  distance ({unit:2}) : {stats.in_units(unit):.2f}")
    print(f"  elev gain/loss  : {_elev(stats.elevation_gain, unit):.0f} / "
          f"{_elev(stats.elevation_loss, unit):.0f} {elev_unit}")
    print(f"  elev min/max    : {_fmt(_elev(stats.elevation_min, unit), '.0f')} / "
          f"{_fmt(_elev(stats.elevation_max, unit), '.0f')} {elev_unit}")
    print(f"  total time      : {format_duration(stats.duration_total_ms, hide_ms=True)}")
    print(f"  moving time     : {format_duration(stats.duration_moving_ms, hide_ms=True)}")
    print(f"  moving speed    : {_fmt(speed, '.2f')} {unit}/h")
    print(f"  max speed m/s   : {stats.speed_max_mps:.3f}")
    print(f"  avg hr / cad    : {_fmt(stats.hr_avg)} / {_fmt(stats.cad_avg)}")
    print(f"  avg temp (C)    : {_fmt(stats.atemp_avg)}")
    print(f"  waypoints       : {waypoints}")

    if show_markers:
        print(f"  markers         : {len(markers)}")
        for m in markers:
            print(f"    {m.label:>10}  {m.lat:.6f}, {m.lon:.6f}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="gpxtrack: Analyze GPX file(s).")
    ap.add_argument("gpx", nargs="*",
                    help="One or more GPX files. If omitted, use fzf selection under the work root.")
    ap.add_argument("--work-root", default=None,
                    help="Folder searched for *.gpx (default: from config or ~/GPS/_work)")
    ap.add_argument("--tsv", action="store_true",
                    help="Print tab-separated output (good for piping).")
    ap.add_argument("--unit", default=None,
                    help="Distance unit for report and markers: km or mi (default: from config)")
    ap.add_argument("--interval", type=float, default=None,
                    help="Distance marker spacing in --unit (default: from config)")
    ap.add_argument("--max-point-interval", type=float, default=None, metavar="MS",
                    help="Gaps of at least this many milliseconds are not moving time")
    ap.add_argument("--route", action="store_true",
                    help="Also read <rte>/<rtept> points.")
    ap.add_argument("--markers", action="store_true",
                    help="List distance markers under each report.")
    ap.add_argument("--markers-out", default=None, metavar="DIR",
                    help="Write <name>.markers.gpx with the markers as waypoints.")
    ap.add_argument("--plot", action="store_true",
                    help="Show an elevation profile with marker lines.")
    return ap


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config()
        unit = args.unit or cfg.analyze.distance_unit
        interval = args.interval if args.interval is not None else cfg.analyze.marker_interval
        max_gap = (args.max_point_interval if args.max_point_interval is not None
                   else cfg.analyze.max_point_interval_ms)
        marker_cfg = MarkerConfig(interval=interval, unit=unit)
        if not max_gap > 0:
            raise ConfigurationError(f"--max-point-interval must be positive, got {max_gap}")
    except ConfigurationError as e:
        print(f"gpx-analyze: {e}", file=sys.stderr)
        return 2

    if args.gpx:
        selected = [Path(p).expanduser() for p in args.gpx]
    else:
        work_root = Path(args.work_root).expanduser() if args.work_root else cfg.work_root
        gpx_files = sorted(work_root.rglob("*.gpx"))
        if not gpx_files:
            raise SystemExit(f"No GPX files found under {work_root}")
        selected = fzf_select_paths(
            gpx_files,
            header="Select GPX file(s) to analyze:",
            multi=True,
        )

    elements = ("track", "route") if args.route else ("track",)

    if args.tsv:
        print(TSV_HEADER)

    failed = 0
    for path in selected:
        if not path.is_file():
            log(f"Skipping (not a file): {path}", err=True)
            failed += 1
            continue
        try:
            tree = read_gpx(path)
            segments = extract_segments(tree, elements=elements)
            waypoints = read_waypoints(tree)
            meta = read_metadata(tree)
        except InvalidGpxError as e:
            log(f"Skipping: {e}", err=True)
            failed += 1
            continue

        stats, dpath = accumulate_segments(segments, max_point_interval_ms=max_gap)
        markers = distance_markers(dpath, marker_cfg)
        print_report(path, meta.name, stats, markers,
                     unit=marker_cfg.unit, tsv=args.tsv, show_markers=args.markers,
                     waypoints=len(waypoints))

        if args.markers_out:
            out = Path(args.markers_out).expanduser() / f"{path.stem}.markers.gpx"
            write_markers_gpx(markers, out, name=meta.name or path.stem)
            log(f"Wrote {len(markers)} markers: {out}", err=args.tsv)

        if args.plot:
            plot_profile(dpath, markers, unit=marker_cfg.unit, title=meta.name or path.name)

    return 1 if failed else 0


def run() -> int:
    """Console-script entry point: report library errors without a traceback."""
    try:
        return main()
    except GpxTrackError as e:
        print(f"gpx-analyze: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(run())
