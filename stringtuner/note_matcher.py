"""Match detected frequencies to reference notes and measure deviation."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from .constants import CENTS_PER_OCTAVE, IN_TUNE_THRESHOLD_CENTS, MIN_LAG
from .errors import InvalidConfigurationError
from .pitch_detector import SampleBlock, estimate_frequency
from .tuning import ReferenceNote, TuningResult


def nearest_note(frequency: float, tuning: Iterable[ReferenceNote]) -> ReferenceNote:
    """Return the reference note closest to ``frequency`` in hertz.

    Distance is the absolute difference in hertz.  When two entries are
    equally close the one earlier in ``tuning`` wins.

    Raises:
        InvalidConfigurationError: If ``tuning`` is empty.
    """
    best: Optional[ReferenceNote] = None
    best_distance = math.inf
    for note in tuning:
        distance = abs(note.frequency - frequency)
        if distance < best_distance:
            best = note
            best_distance = distance
    if best is None:
        raise InvalidConfigurationError("Cannot match against an empty reference tuning")
    return best


def cents_deviation(frequency: float, reference: float) -> float:
    """Return the interval from ``reference`` to ``frequency`` in cents.

    Positive values are sharp, negative values flat.  Both arguments must be
    strictly positive.
    """
    return CENTS_PER_OCTAVE * math.log2(frequency / reference)


def evaluate(
    frequency: float,
    note: ReferenceNote,
    *,
    threshold: float = IN_TUNE_THRESHOLD_CENTS,
) -> tuple[float, bool]:
    """Return ``(cents, in_tune)`` for ``frequency`` against ``note``.

    ``in_tune`` holds while ``abs(cents)`` is strictly below ``threshold``.
    """
    cents = cents_deviation(frequency, note.frequency)
    return cents, abs(cents) < threshold


def analyze_block(
    samples: SampleBlock,
    sample_rate: int,
    tuning: Iterable[ReferenceNote],
    *,
    min_lag: int = MIN_LAG,
    threshold: float = IN_TUNE_THRESHOLD_CENTS,
) -> TuningResult:
    """Run one capture window through estimation, matching and evaluation.

    An empty window or one without a detectable pitch yields
    :meth:`TuningResult.silent`.
    """
    frequency = estimate_frequency(samples, sample_rate, min_lag=min_lag)
    if frequency == 0.0:
        return TuningResult.silent()
    note = nearest_note(frequency, tuning)
    cents, in_tune = evaluate(frequency, note, threshold=threshold)
    return TuningResult(
        note=note, cents_deviation=cents, in_tune=in_tune, frequency=frequency
    )


__all__ = ["nearest_note", "cents_deviation", "evaluate", "analyze_block"]
