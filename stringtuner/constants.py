"""Application-wide constants used by the tuning pipeline.

The values in this module configure the capture window, the pitch
estimator and the cadence of the tuning loop.  Centralising them avoids
magic numbers spread throughout the code base and makes it easy to tune
responsiveness in one place.  Every component also accepts these values
as keyword arguments so callers can override them per instance.
"""

from __future__ import annotations

# ─── Audio configuration ────────────────────────────────────────────────────

# Sampling frequency used throughout the application.  Standard CD quality
# (44.1 kHz) offers a good trade‑off between fidelity and CPU usage.
SAMPLE_RATE: int = 44_100

# Number of samples captured per analysis window.  The autocorrelation
# estimator is quadratic in this value, so doubling it roughly quadruples
# the work done per cycle.  4096 samples (~93 ms at 44.1 kHz) hold several
# periods of the low E string.
BUFFER_SIZE: int = 4096

# ─── Pitch estimation ───────────────────────────────────────────────────────

# Smallest autocorrelation lag considered.  Very short lags are dominated by
# noise and correspond to implausibly high frequencies (2205 Hz at 44.1 kHz).
MIN_LAG: int = 20

# ─── Tuning evaluation ──────────────────────────────────────────────────────

# Cents in one octave.  100 cents make an equal-tempered semitone.
CENTS_PER_OCTAVE: float = 1200.0

# A string counts as in tune while its absolute deviation stays strictly
# below this many cents.
IN_TUNE_THRESHOLD_CENTS: float = 5.0

# ─── Loop cadence ───────────────────────────────────────────────────────────

# Seconds slept between analysis cycles (~10 updates per second).
CYCLE_INTERVAL: float = 0.1

# Upper bound in seconds on how long ``stop()`` waits for the worker thread
# to finish its in-flight cycle.
STOP_TIMEOUT: float = 2.0

# ─── Reference tuning ───────────────────────────────────────────────────────

# Standard six-string guitar tuning, low to high.
STANDARD_GUITAR_TUNING: tuple[tuple[str, float], ...] = (
    ("E", 82.41),
    ("A", 110.00),
    ("D", 146.83),
    ("G", 196.00),
    ("B", 246.94),
    ("E", 329.63),
)

__all__ = [
    "SAMPLE_RATE",
    "BUFFER_SIZE",
    "MIN_LAG",
    "CENTS_PER_OCTAVE",
    "IN_TUNE_THRESHOLD_CENTS",
    "CYCLE_INTERVAL",
    "STOP_TIMEOUT",
    "STANDARD_GUITAR_TUNING",
]
