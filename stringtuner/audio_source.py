"""Audio sources feeding the tuning loop.

An audio source hands out one fixed-size block of signed 16-bit mono
samples per call to :meth:`AudioSource.capture`.  When no audio is
available (device missing, permission revoked, not prepared yet) the
block is empty instead of an exception being raised, so the loop can
simply report "no note detected" for that cycle.

:class:`SoundDeviceSource` captures from a PortAudio input through
``sounddevice``.  :class:`ArraySource` replays prerecorded blocks and is
used for the demo mode and the test-suite.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Iterable, Optional, Protocol, Union

import numpy as np

from .constants import BUFFER_SIZE, SAMPLE_RATE
from .errors import CaptureUnavailableError, InvalidConfigurationError

logger = logging.getLogger(__name__)


def empty_block() -> np.ndarray:
    """Return the zero-length block meaning "no audio this cycle"."""
    return np.zeros(0, dtype=np.int16)


class AudioSource(Protocol):
    """Capture contract consumed by :class:`~stringtuner.tuning_loop.TuningLoop`.

    ``prepare()`` acquires the device and may raise
    :class:`~stringtuner.errors.CaptureUnavailableError`.  ``capture()``
    never raises for device trouble and returns an empty block instead.
    ``release()`` gives the device back and is safe to call repeatedly.
    """

    sample_rate: int

    def prepare(self) -> None: ...
    def capture(self) -> np.ndarray: ...
    def release(self) -> None: ...


class SourceState(enum.Enum):
    """Lifecycle of a capture device handle."""

    UNPREPARED = "unprepared"
    PREPARED = "prepared"
    RELEASED = "released"


class SoundDeviceSource:
    """Blocking capture from a ``sounddevice`` input stream.

    The stream is opened by :meth:`prepare` and read synchronously, one
    ``buffer_size`` block per :meth:`capture`.  Multi-channel devices are
    down-mixed to mono.  A released source can be prepared again, which
    reopens the device.

    Blocks are passed on without DC removal.  A block whose constant offset
    outweighs the signal never leaves the central correlation lobe and
    reads as no pitch.

    Args:
        device: ``sounddevice`` device index or name. ``None`` selects the
            default input.
        sample_rate: Sampling frequency of the stream.
        buffer_size: Samples returned per capture.
        channels: Number of channels to open on the device.
    """

    def __init__(
        self,
        device: Optional[Union[int, str]] = None,
        *,
        sample_rate: int = SAMPLE_RATE,
        buffer_size: int = BUFFER_SIZE,
        channels: int = 1,
    ) -> None:
        if sample_rate <= 0:
            raise InvalidConfigurationError(f"sample_rate must be positive, got {sample_rate}")
        if buffer_size <= 0:
            raise InvalidConfigurationError(f"buffer_size must be positive, got {buffer_size}")
        if channels <= 0:
            raise InvalidConfigurationError(f"channels must be positive, got {channels}")
        self.device = device
        self.sample_rate = sample_rate
        self.buffer_size = buffer_size
        self.channels = channels
        self._stream = None
        self._state = SourceState.UNPREPARED
        self._lock = threading.Lock()

    @property
    def state(self) -> SourceState:
        return self._state

    # --------------------------------------------------------------
    def prepare(self) -> None:
        """Open and start the input stream.  No-op when already prepared."""
        try:
            import sounddevice as sd
        except OSError as exc:  # PortAudio library missing
            raise CaptureUnavailableError(f"PortAudio is not available: {exc}") from exc

        with self._lock:
            if self._state is SourceState.PREPARED:
                return
            try:
                stream = sd.InputStream(
                    device=self.device,
                    channels=self.channels,
                    samplerate=self.sample_rate,
                    blocksize=self.buffer_size,
                    dtype="int16",
                )
            except (sd.PortAudioError, OSError, ValueError) as exc:
                raise CaptureUnavailableError(
                    f"Cannot open input device {self.device!r}: {exc}"
                ) from exc
            try:
                stream.start()
            except (sd.PortAudioError, OSError) as exc:
                stream.close()
                raise CaptureUnavailableError(
                    f"Cannot start input device {self.device!r}: {exc}"
                ) from exc
            self._stream = stream
            self._state = SourceState.PREPARED
            logger.info(
                "Capturing from device %r at %d Hz, %d samples per block",
                self.device,
                self.sample_rate,
                self.buffer_size,
            )

    # --------------------------------------------------------------
    def capture(self) -> np.ndarray:
        """Read one block of int16 mono samples, empty on any failure."""
        with self._lock:
            stream = self._stream
            if self._state is not SourceState.PREPARED or stream is None:
                return empty_block()
            try:
                data, overflowed = stream.read(self.buffer_size)
            except Exception as exc:
                logger.warning("Audio capture failed: %s", exc)
                return empty_block()
        if overflowed:
            logger.debug("Input overflow, samples were dropped")
        block = np.asarray(data)
        if block.ndim == 2 and block.shape[1] > 1:
            block = block.mean(axis=1)
        return block.reshape(-1).astype(np.int16, copy=False)

    # --------------------------------------------------------------
    def release(self) -> None:
        """Stop and close the stream.  Safe to call in any state."""
        with self._lock:
            stream = self._stream
            self._stream = None
            if self._state is SourceState.PREPARED:
                self._state = SourceState.RELEASED
        if stream is None:
            return
        try:
            stream.stop()
        except Exception as exc:
            logger.debug("Error stopping input stream: %s", exc)
        try:
            stream.close()
        except Exception as exc:
            logger.debug("Error closing input stream: %s", exc)
        logger.info("Released input device %r", self.device)

    def __enter__(self) -> "SoundDeviceSource":
        self.prepare()
        return self

    def __exit__(self, *_: object) -> None:
        self.release()


class ArraySource:
    """Replay prerecorded blocks as if they came from a device.

    Args:
        blocks: Sample blocks returned by successive captures.
        sample_rate: Sampling frequency the blocks were generated at.
        repeat: Start over after the last block instead of returning empty
            blocks.
        available: When ``False`` the source behaves like a device the user
            has not granted access to: ``prepare()`` raises and ``capture()``
            returns empty blocks.
    """

    def __init__(
        self,
        blocks: Iterable[np.ndarray],
        *,
        sample_rate: int = SAMPLE_RATE,
        repeat: bool = True,
        available: bool = True,
    ) -> None:
        if sample_rate <= 0:
            raise InvalidConfigurationError(f"sample_rate must be positive, got {sample_rate}")
        self.blocks = [np.asarray(b, dtype=np.int16).reshape(-1) for b in blocks]
        self.sample_rate = sample_rate
        self.repeat = repeat
        self.available = available
        self.prepare_calls = 0
        self.release_calls = 0
        self.captures = 0
        self._index = 0
        self._state = SourceState.UNPREPARED
        self._lock = threading.Lock()

    @property
    def state(self) -> SourceState:
        return self._state

    def prepare(self) -> None:
        with self._lock:
            self.prepare_calls += 1
            if not self.available:
                raise CaptureUnavailableError("Audio capture is not permitted")
            self._state = SourceState.PREPARED

    def capture(self) -> np.ndarray:
        with self._lock:
            self.captures += 1
            if self._state is not SourceState.PREPARED or not self.available:
                return empty_block()
            if not self.blocks:
                return empty_block()
            if self._index >= len(self.blocks):
                if not self.repeat:
                    return empty_block()
                self._index = 0
            block = self.blocks[self._index]
            self._index += 1
            return block

    def release(self) -> None:
        with self._lock:
            self.release_calls += 1
            if self._state is SourceState.PREPARED:
                self._state = SourceState.RELEASED


def sine_block(
    frequency: float,
    sample_rate: int = SAMPLE_RATE,
    length: int = BUFFER_SIZE,
    amplitude: float = 0.5,
) -> np.ndarray:
    """Return ``length`` int16 samples of a sine wave at ``frequency`` Hz.

    ``amplitude`` is a fraction of 16-bit full scale.
    """
    t = np.arange(length) / float(sample_rate)
    wave = amplitude * np.iinfo(np.int16).max * np.sin(2 * np.pi * frequency * t)
    return np.round(wave).astype(np.int16)


__all__ = [
    "AudioSource",
    "SourceState",
    "SoundDeviceSource",
    "ArraySource",
    "empty_block",
    "sine_block",
]
