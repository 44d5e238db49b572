"""Time-domain autocorrelation pitch estimation.

The estimator compares a capture window with lagged copies of itself and
reports the lag with the strongest positive correlation as the period of
the fundamental.  It is a pure function of its inputs: no state is kept
between calls and it is safe to call from several threads at once.

The search is quadratic in the window length (every lag times every
offset), so the capture buffer size directly controls the cost of one
analysis cycle.  ``BUFFER_SIZE`` in :mod:`stringtuner.constants` is sized
for a live loop running about ten times per second.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from .constants import MIN_LAG

SampleBlock = Union[np.ndarray, Sequence[int]]


def _as_float_array(samples: SampleBlock) -> np.ndarray:
    """Widen ``samples`` to a one-dimensional float64 array."""
    data = np.asarray(samples, dtype=np.float64)
    if data.ndim != 1:
        data = data.reshape(-1)
    return data


def autocorrelation(samples: SampleBlock, lag: int) -> float:
    """Return ``sum(x[i] * x[i + lag])`` over every valid offset ``i``.

    Args:
        samples: Audio samples.
        lag: Shift in samples, ``0 <= lag < len(samples)``.

    Returns:
        The unnormalised correlation sum, ``0.0`` when ``lag`` leaves no
        overlapping samples.
    """
    data = _as_float_array(samples)
    n = data.size
    if lag < 0 or lag >= n:
        return 0.0
    return float(np.dot(data[: n - lag], data[lag:]))


def estimate_frequency(
    samples: SampleBlock,
    sample_rate: int,
    *,
    min_lag: int = MIN_LAG,
    skip_initial_lobe: bool = True,
) -> float:
    """Estimate the fundamental frequency of ``samples`` in hertz.

    Every lag from ``min_lag`` to ``len(samples) // 2`` (inclusive) is scored
    with :func:`autocorrelation`.  The running best starts at ``0.0`` and only
    moves on a strictly greater score, so only positive correlations can be
    selected and the smallest lag wins a tie.

    Any signal correlates strongly with itself at very short lags.  With
    ``skip_initial_lobe`` enabled, lags are only eligible once the
    correlation has dropped to zero or below for the first time, which
    places the search past that central lobe and onto the first repetition
    of the waveform.  A buffer whose correlation never leaves the central
    lobe (constant offset, very low frequencies) yields no lag.

    Args:
        samples: Signed 16-bit PCM samples (any integer or float array is
            accepted and widened to float64).
        sample_rate: Sampling frequency of ``samples`` in hertz.
        min_lag: Smallest lag considered.
        skip_initial_lobe: Ignore lags inside the central correlation lobe.

    Returns:
        ``sample_rate / lag`` for the selected lag, or ``0.0`` when the
        buffer is empty, too short for the lag range, or has no positive
        correlation peak.
    """
    data = _as_float_array(samples)
    n = data.size
    if n == 0:
        return 0.0

    best_lag = 0
    best_corr = 0.0
    in_lobe = skip_initial_lobe
    for lag in range(min_lag, n // 2 + 1):
        corr = float(np.dot(data[: n - lag], data[lag:]))
        if in_lobe:
            if corr > 0.0:
                continue
            in_lobe = False
        if corr > best_corr:
            best_corr = corr
            best_lag = lag

    if best_lag == 0:
        return 0.0
    return float(sample_rate) / best_lag


__all__ = ["SampleBlock", "autocorrelation", "estimate_frequency"]
