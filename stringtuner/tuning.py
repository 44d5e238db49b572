"""Reference tunings and the result type published by the tuner.

A :class:`ReferenceTuning` is the fixed, ordered table of target pitches
the detected frequency is compared against.  A :class:`TuningResult` is
the composite value produced once per analysis cycle.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Union, overload

from .constants import STANDARD_GUITAR_TUNING
from .errors import InvalidConfigurationError


@dataclass(frozen=True)
class ReferenceNote:
    """Named target pitch, e.g. ``ReferenceNote("A", 110.0)``."""

    name: str
    frequency: float

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidConfigurationError("Reference note name must not be blank")
        freq = float(self.frequency)
        if not math.isfinite(freq) or freq <= 0.0:
            raise InvalidConfigurationError(
                f"Reference note {self.name!r} needs a positive frequency, got {self.frequency!r}"
            )
        object.__setattr__(self, "frequency", freq)

    def __str__(self) -> str:
        return f"{self.name} ({self.frequency:.2f} Hz)"


class ReferenceTuning(Sequence[ReferenceNote]):
    """Immutable ordered table of :class:`ReferenceNote` entries.

    Order only matters for tie-breaking: when two entries are equally close
    to a detected frequency the earlier one wins.

    Args:
        notes: Reference notes in table order.
        name: Optional label for the tuning, used in log output.

    Raises:
        InvalidConfigurationError: If ``notes`` is empty or two entries share
            the same frequency.
    """

    def __init__(self, notes: Iterable[ReferenceNote], *, name: str = "custom") -> None:
        self._notes: tuple[ReferenceNote, ...] = tuple(notes)
        self.name = name
        if not self._notes:
            raise InvalidConfigurationError("Reference tuning must contain at least one note")
        seen: set[float] = set()
        for note in self._notes:
            if not isinstance(note, ReferenceNote):
                raise InvalidConfigurationError(
                    f"Reference tuning entries must be ReferenceNote, got {type(note).__name__}"
                )
            if note.frequency in seen:
                raise InvalidConfigurationError(
                    f"Duplicate reference frequency {note.frequency:.2f} Hz in tuning {name!r}"
                )
            seen.add(note.frequency)

    @classmethod
    def from_pairs(
        cls, pairs: Iterable[tuple[str, float]], *, name: str = "custom"
    ) -> "ReferenceTuning":
        """Build a tuning from ``(name, frequency)`` pairs."""
        return cls((ReferenceNote(n, f) for n, f in pairs), name=name)

    @overload
    def __getitem__(self, index: int) -> ReferenceNote: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[ReferenceNote]: ...

    def __getitem__(
        self, index: Union[int, slice]
    ) -> Union[ReferenceNote, Sequence[ReferenceNote]]:
        return self._notes[index]

    def __len__(self) -> int:
        return len(self._notes)

    def __iter__(self) -> Iterator[ReferenceNote]:
        return iter(self._notes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReferenceTuning):
            return NotImplemented
        return self._notes == other._notes

    def __hash__(self) -> int:
        return hash(self._notes)

    def __repr__(self) -> str:
        notes = ", ".join(f"{n.name}={n.frequency:g}" for n in self._notes)
        return f"ReferenceTuning({self.name!r}: {notes})"


STANDARD_TUNING = ReferenceTuning.from_pairs(STANDARD_GUITAR_TUNING, name="standard")


@dataclass(frozen=True)
class TuningResult:
    """Outcome of one analysis cycle.

    ``frequency == 0`` means no pitch was detected; in that case ``note`` is
    ``None``, ``cents_deviation`` is ``0.0`` and ``in_tune`` is ``False``.
    Positive deviations are sharp, negative ones flat.
    """

    note: Optional[ReferenceNote]
    cents_deviation: float
    in_tune: bool
    frequency: float

    def __post_init__(self) -> None:
        if self.frequency < 0.0:
            raise InvalidConfigurationError(f"frequency must be >= 0, got {self.frequency!r}")
        if self.frequency == 0.0:
            if self.note is not None or self.cents_deviation != 0.0 or self.in_tune:
                raise InvalidConfigurationError("a result without a frequency cannot carry a note")
        elif self.note is None and (self.cents_deviation != 0.0 or self.in_tune):
            raise InvalidConfigurationError("a deviation requires a matched note")

    @classmethod
    def silent(cls) -> "TuningResult":
        """Return the "no note detected" result."""
        return cls(note=None, cents_deviation=0.0, in_tune=False, frequency=0.0)

    @property
    def has_note(self) -> bool:
        return self.note is not None

    @property
    def direction(self) -> Optional[str]:
        """``"flat"``, ``"sharp"`` or ``"in tune"``; ``None`` without a note."""
        if self.note is None:
            return None
        if self.in_tune:
            return "in tune"
        return "sharp" if self.cents_deviation > 0 else "flat"

    def describe(self) -> str:
        """Return a one-line human readable summary."""
        if self.note is None:
            return "no note detected"
        return (
            f"{self.note.name:<2} {self.frequency:7.2f} Hz "
            f"(target {self.note.frequency:.2f} Hz) "
            f"{self.cents_deviation:+6.1f} cents  {self.direction}"
        )


__all__ = ["ReferenceNote", "ReferenceTuning", "STANDARD_TUNING", "TuningResult"]
