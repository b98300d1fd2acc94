# gpxtrack/errors

"""
gpxtrack.errors

Central exception hierarchy for gpxtrack.

Rationale:
  - The analysis engine raises specific, meaningful errors and never logs them.
  - Callers can catch GpxTrackError (broad) or specific subclasses (narrow).
"""


class GpxTrackError(RuntimeError):
    """Base class for all gpxtrack runtime errors."""


# ---- Configuration errors ----------------------

class ConfigurationError(GpxTrackError, ValueError):
    """Invalid analysis settings (non-positive interval, unknown unit, bad TOML)."""


# ---- Input errors ------------------------------

class InvalidGpxError(GpxTrackError):
    """GPX file could not be parsed or did not contain expected data structures."""


# ---- Selection errors --------------------------

class FzfNotFoundError(GpxTrackError):
    """fzf is required but not available on PATH."""
