import pytest

from stringtuner.errors import InvalidConfigurationError
from stringtuner.tuning import STANDARD_TUNING, ReferenceNote, ReferenceTuning, TuningResult


def test_standard_tuning_order() -> None:
    assert [n.name for n in STANDARD_TUNING] == ["E", "A", "D", "G", "B", "E"]
    assert STANDARD_TUNING[0].frequency == 82.41
    assert STANDARD_TUNING[-1].frequency == 329.63
    assert len(STANDARD_TUNING) == 6


def test_empty_tuning_rejected() -> None:
    with pytest.raises(InvalidConfigurationError):
        ReferenceTuning([])


def test_duplicate_frequency_rejected() -> None:
    with pytest.raises(InvalidConfigurationError):
        ReferenceTuning.from_pairs([("A", 110.0), ("A'", 110.0)])


@pytest.mark.parametrize("freq", [0.0, -110.0, float("nan")])
def test_reference_note_needs_positive_frequency(freq: float) -> None:
    with pytest.raises(InvalidConfigurationError):
        ReferenceNote("A", freq)


def test_reference_note_needs_name() -> None:
    with pytest.raises(InvalidConfigurationError):
        ReferenceNote("  ", 110.0)


def test_invalid_configuration_is_value_error() -> None:
    with pytest.raises(ValueError):
        ReferenceTuning([])


def test_tuning_is_immutable_sequence() -> None:
    tuning = ReferenceTuning.from_pairs([("A", 110.0), ("D", 146.83)], name="two")
    assert tuning.index(ReferenceNote("D", 146.83)) == 1
    assert ReferenceNote("A", 110.0) in tuning
    assert tuning == ReferenceTuning.from_pairs([("A", 110.0), ("D", 146.83)])
    with pytest.raises(TypeError):
        tuning[0] = ReferenceNote("E", 82.41)  # type: ignore[index]


def test_silent_result() -> None:
    result = TuningResult.silent()
    assert result.note is None
    assert result.cents_deviation == 0.0
    assert result.in_tune is False
    assert result.frequency == 0.0
    assert result.has_note is False
    assert result.direction is None
    assert result.describe() == "no note detected"


def test_result_without_frequency_cannot_have_note() -> None:
    with pytest.raises(InvalidConfigurationError):
        TuningResult(ReferenceNote("A", 110.0), 0.0, False, 0.0)
    with pytest.raises(InvalidConfigurationError):
        TuningResult(None, 0.0, True, 0.0)


def test_negative_frequency_rejected() -> None:
    with pytest.raises(InvalidConfigurationError):
        TuningResult(None, 0.0, False, -1.0)


def test_deviation_without_note_rejected() -> None:
    with pytest.raises(InvalidConfigurationError):
        TuningResult(None, 12.0, False, 220.0)


@pytest.mark.parametrize(
    "cents, in_tune, direction",
    [(-20.0, False, "flat"), (30.0, False, "sharp"), (1.5, True, "in tune")],
)
def test_direction(cents: float, in_tune: bool, direction: str) -> None:
    result = TuningResult(ReferenceNote("A", 110.0), cents, in_tune, 110.0)
    assert result.direction == direction
    assert direction in result.describe()
    assert result.describe().startswith("A")
