"""Exceptions raised by the tuner."""

from __future__ import annotations


class TunerError(Exception):
    """Base class for every error raised by :mod:`stringtuner`."""


class InvalidConfigurationError(TunerError, ValueError):
    """A component was constructed with settings it cannot work with.

    Raised eagerly at construction time so a misconfigured tuner refuses to
    start instead of failing on every cycle.
    """


class CaptureUnavailableError(TunerError):
    """The audio device could not be opened (missing, busy or not permitted)."""


__all__ = [
    "TunerError",
    "InvalidConfigurationError",
    "CaptureUnavailableError",
]
