"""Stringtuner package."""

from .audio_source import ArraySource, AudioSource, SoundDeviceSource, SourceState
from .channel import TuningResultChannel
from .errors import CaptureUnavailableError, InvalidConfigurationError, TunerError
from .note_matcher import analyze_block, cents_deviation, evaluate, nearest_note
from .pitch_detector import estimate_frequency
from .tuning import STANDARD_TUNING, ReferenceNote, ReferenceTuning, TuningResult
from .tuning_loop import LoopState, TuningLoop

__all__ = [
    "ArraySource",
    "AudioSource",
    "SoundDeviceSource",
    "SourceState",
    "TuningResultChannel",
    "CaptureUnavailableError",
    "InvalidConfigurationError",
    "TunerError",
    "analyze_block",
    "cents_deviation",
    "evaluate",
    "nearest_note",
    "estimate_frequency",
    "STANDARD_TUNING",
    "ReferenceNote",
    "ReferenceTuning",
    "TuningResult",
    "LoopState",
    "TuningLoop",
]
