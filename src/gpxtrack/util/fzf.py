# gpxtrack/util/fzf.py
"""
Interactive GPX file picker backed by `fzf`
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from shutil import which

from gpxtrack.errors import FzfNotFoundError, GpxTrackError

# fzf exit codes: 0 picked, 1 no match, 130 aborted (Esc / Ctrl-C)
_FZF_OK = (0, 1, 130)


def fzf_select_paths(paths: list[Path], *, header: str, multi: bool = True) -> list[Path]:
    """
    Show `paths` by filename and return the ones the user picked.

    Each fzf row is "name<TAB>full path"; only the name is displayed and
    searched. Nothing picked returns [].
    """
    if not which("fzf"):
        raise FzfNotFoundError("fzf not found on PATH")

    cmd = ["fzf", "--delimiter=\t", "--with-nth=1", "--layout=reverse",
           "--height=60%", "--header", header]
    if multi:
        cmd.append("--multi")

    rows = "".join(f"{p.name}\t{p}\n" for p in paths)
    proc = subprocess.run(cmd, input=rows, capture_output=True, text=True)
    if proc.returncode not in _FZF_OK:
        raise GpxTrackError(f"fzf failed ({proc.returncode}): {proc.stderr.strip()}")

    return [
        Path(row.split("\t", 1)[-1]).expanduser().resolve()
        for row in proc.stdout.splitlines()
        if row.strip()
    ]
