# gpxtrack/util/timefmt.py
from __future__ import annotations

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


def format_duration(duration_ms: float, *, hide_ms: bool = False) -> str:
    """
    Render a duration in milliseconds as a compact stopwatch string.

    Examples:
      - 65_000          -> 01'05"
      - 3_725_000       -> 1:02'05"
      - 90_061_250      -> 1d 1:01'01.250
      - 90_061_250, hide_ms=True -> 1d 1:01'01"
    """
    rest = int(duration_ms)
    s = ""

    if rest >= DAY_MS:
        s += f"{rest // DAY_MS}d "
        rest %= DAY_MS

    if rest >= HOUR_MS:
        s += f"{rest // HOUR_MS}:"
        rest %= HOUR_MS

    mins, rest = divmod(rest, MINUTE_MS)
    secs, rest = divmod(rest, SECOND_MS)
    s += f"{mins:02d}'{secs:02d}"

    if not hide_ms and rest > 0:
        s += f".{rest:03d}"
    else:
        s += '"'
    return s
