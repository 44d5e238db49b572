import numpy as np
import pytest

from stringtuner import note_matcher
from stringtuner.audio_source import sine_block
from stringtuner.errors import InvalidConfigurationError
from stringtuner.note_matcher import analyze_block, cents_deviation, evaluate, nearest_note
from stringtuner.tuning import STANDARD_TUNING, ReferenceNote, ReferenceTuning, TuningResult


def test_nearest_note_prefers_earlier_entry_on_tie() -> None:
    tuning = ReferenceTuning.from_pairs([("low", 100.0), ("high", 200.0)])
    assert nearest_note(150.0, tuning).name == "low"

    reversed_tuning = ReferenceTuning.from_pairs([("high", 200.0), ("low", 100.0)])
    assert nearest_note(150.0, reversed_tuning).name == "high"


@pytest.mark.parametrize(
    "freq, expected",
    [(80.0, 82.41), (111.0, 110.0), (150.0, 146.83), (240.0, 246.94), (400.0, 329.63)],
)
def test_nearest_note_standard_tuning(freq: float, expected: float) -> None:
    assert nearest_note(freq, STANDARD_TUNING).frequency == expected


def test_nearest_note_empty_table() -> None:
    with pytest.raises(InvalidConfigurationError):
        nearest_note(110.0, [])


def test_exact_match_is_in_tune() -> None:
    cents, in_tune = evaluate(110.0, ReferenceNote("A", 110.0))
    assert cents == 0.0
    assert in_tune is True


def test_octave_and_semitone() -> None:
    assert cents_deviation(220.0, 110.0) == pytest.approx(1200.0)
    assert cents_deviation(110.0 * 2 ** (1 / 12), 110.0) == pytest.approx(100.0)
    assert cents_deviation(55.0, 110.0) == pytest.approx(-1200.0)


@pytest.mark.parametrize(
    "cents, expected",
    [(5.0, False), (-5.0, False), (4.999999, True), (-4.999999, True), (12.0, False)],
)
def test_in_tune_boundary_is_exclusive(
    monkeypatch: pytest.MonkeyPatch, cents: float, expected: bool
) -> None:
    monkeypatch.setattr(note_matcher, "cents_deviation", lambda f, r: cents)
    result_cents, in_tune = evaluate(110.0, ReferenceNote("A", 110.0))
    assert result_cents == cents
    assert in_tune is expected


def test_evaluate_custom_threshold() -> None:
    note = ReferenceNote("A", 110.0)
    sharp = 110.0 * 2 ** (8 / 1200)
    assert evaluate(sharp, note)[1] is False
    assert evaluate(sharp, note, threshold=10.0)[1] is True


def test_analyze_block_110_hz_scenario() -> None:
    result = analyze_block(sine_block(110.0, 44100, 4096), 44100, STANDARD_TUNING)
    assert result.note == ReferenceNote("A", 110.0)
    assert result.frequency == pytest.approx(110.0, rel=0.02)
    assert abs(result.cents_deviation) < 5.0
    assert result.in_tune is True


@pytest.mark.parametrize("note", list(STANDARD_TUNING))
def test_analyze_block_matches_every_string(note: ReferenceNote) -> None:
    result = analyze_block(sine_block(note.frequency, 44100, 4096), 44100, STANDARD_TUNING)
    assert result.note == note
    assert result.in_tune is True


def test_analyze_block_empty_is_silent() -> None:
    result = analyze_block(np.zeros(0, dtype=np.int16), 44100, STANDARD_TUNING)
    assert result == TuningResult(note=None, cents_deviation=0.0, in_tune=False, frequency=0.0)
