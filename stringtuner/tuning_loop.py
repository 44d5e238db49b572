"""Background loop driving the tuner.

:class:`TuningLoop` repeatedly captures a block from an
:class:`~stringtuner.audio_source.AudioSource`, runs it through
:func:`~stringtuner.note_matcher.analyze_block` and publishes the result
on a :class:`~stringtuner.channel.TuningResultChannel`.  It is a two-state
machine (``IDLE`` and ``RUNNING``) controlled through :meth:`start`,
:meth:`stop` and :meth:`toggle`, which may be called from any thread.

At most one worker thread exists per loop.  Cancellation is cooperative:
the worker checks its stop event between cycles and an in-flight cycle is
allowed to finish.  Every cycle belongs to a *generation*; :meth:`stop`
advances the generation under the same lock that guards publication, so
once it returns nothing from the stopped worker can reach the channel,
even if the worker is still finishing its last capture.

Transient trouble (no signal, capture errors, a device that cannot be
opened yet) never ends the loop.  It only turns the published result into
"no note detected" until the source recovers.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Iterable, Optional

import numpy as np

from .audio_source import AudioSource, empty_block
from .channel import TuningResultChannel
from .constants import (
    CYCLE_INTERVAL,
    IN_TUNE_THRESHOLD_CENTS,
    MIN_LAG,
    STOP_TIMEOUT,
)
from .errors import CaptureUnavailableError, InvalidConfigurationError, TunerError
from .note_matcher import analyze_block
from .tuning import STANDARD_TUNING, ReferenceNote, ReferenceTuning, TuningResult

logger = logging.getLogger(__name__)


class LoopState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class TuningLoop:
    """Capture, analyse and publish tuning results at a steady cadence.

    Args:
        source: Audio source owned by the loop while it runs.
        tuning: Reference notes to match against.  Plain iterables of
            :class:`ReferenceNote` are wrapped in a :class:`ReferenceTuning`.
        channel: Channel receiving the results.  A new one is created when
            omitted and is available as :attr:`channel`.
        interval: Seconds to wait between cycles.
        min_lag: Smallest autocorrelation lag passed to the estimator.
        threshold: In-tune bound in cents.
        stop_timeout: Seconds :meth:`stop` waits for the worker to finish.

    Raises:
        InvalidConfigurationError: If the tuning is empty or a numeric
            setting is out of range.
    """

    def __init__(
        self,
        source: AudioSource,
        tuning: Iterable[ReferenceNote] = STANDARD_TUNING,
        channel: Optional[TuningResultChannel] = None,
        *,
        interval: float = CYCLE_INTERVAL,
        min_lag: int = MIN_LAG,
        threshold: float = IN_TUNE_THRESHOLD_CENTS,
        stop_timeout: float = STOP_TIMEOUT,
    ) -> None:
        if not isinstance(tuning, ReferenceTuning):
            tuning = ReferenceTuning(tuning)
        if getattr(source, "sample_rate", 0) <= 0:
            raise InvalidConfigurationError("Audio source must report a positive sample_rate")
        if interval < 0:
            raise InvalidConfigurationError(f"interval must be >= 0, got {interval}")
        if min_lag < 1:
            raise InvalidConfigurationError(f"min_lag must be >= 1, got {min_lag}")
        if threshold <= 0:
            raise InvalidConfigurationError(f"threshold must be positive, got {threshold}")
        if stop_timeout <= 0:
            raise InvalidConfigurationError(f"stop_timeout must be positive, got {stop_timeout}")

        self.source = source
        self.tuning = tuning
        self.channel = channel if channel is not None else TuningResultChannel()
        self.interval = interval
        self.min_lag = min_lag
        self.threshold = threshold
        self.stop_timeout = stop_timeout
        self.cycles = 0

        # Lock order is ``_control`` -> ``_source_lock`` -> ``_lock``.
        # ``_control`` serialises whole start/stop transitions (including the
        # join), ``_source_lock`` serialises prepare/release of the source and
        # ``_lock`` guards state, generation and the channel slot.  No lock is
        # held while subscribers run.
        self._control = threading.RLock()
        self._source_lock = threading.RLock()
        self._lock = threading.RLock()
        self._state = LoopState.IDLE
        self._generation = 0
        self._worker: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._prepared = False
        self._closed = False
        self._failures = 0

    # --------------------------------------------------------------
    @property
    def state(self) -> LoopState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is LoopState.RUNNING

    @property
    def closed(self) -> bool:
        return self._closed

    # --------------------------------------------------------------
    def start(self) -> None:
        """Enter ``RUNNING`` and launch the worker.  No-op when running."""
        with self._control:
            with self._lock:
                if self._closed:
                    raise TunerError("Cannot start a closed tuning loop")
                if self._state is LoopState.RUNNING:
                    return
                self._generation += 1
                generation = self._generation
                self._failures = 0
            self._ensure_prepared(generation)
            stop_event = threading.Event()
            worker = threading.Thread(
                target=self._run,
                args=(generation, stop_event),
                name=f"tuning-loop-{generation}",
                daemon=True,
            )
            with self._lock:
                self._state = LoopState.RUNNING
                self._stop_event = stop_event
                self._worker = worker
            worker.start()
            logger.info("Tuning loop started (interval %.3fs)", self.interval)

    def stop(self) -> None:
        """Return to ``IDLE`` and release the source.

        Blocks until the worker has finished its current cycle, at most
        ``stop_timeout`` seconds.  No result from the stopped worker is
        published after this returns.  When already idle only a source left
        prepared by :meth:`run_once` is released.
        """
        with self._control:
            with self._lock:
                running = self._state is LoopState.RUNNING
                if running:
                    self._state = LoopState.IDLE
                    self._generation += 1
                stop_event, self._stop_event = self._stop_event, None
                worker, self._worker = self._worker, None
            if not running:
                self._release_source()
                return
            if stop_event is not None:
                stop_event.set()
            if worker is not None and worker is not threading.current_thread():
                worker.join(self.stop_timeout)
                if worker.is_alive():
                    logger.warning(
                        "Tuning worker still busy after %.1fs; its results are discarded",
                        self.stop_timeout,
                    )
            self._release_source()
            logger.info("Tuning loop stopped after %d cycles", self.cycles)

    def toggle(self) -> LoopState:
        """Stop when running, start otherwise.  Returns the new state."""
        with self._control:
            if self.is_running:
                self.stop()
            else:
                self.start()
            return self.state

    def close(self) -> None:
        """Stop the loop for good and release the source."""
        with self._control:
            self.stop()
            self._closed = True

    def __enter__(self) -> "TuningLoop":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    # --------------------------------------------------------------
    def run_once(self) -> TuningResult:
        """Run a single synchronous cycle on the calling thread.

        Only allowed while ``IDLE``.  The source is prepared if needed and
        stays prepared until :meth:`stop` or :meth:`close`.

        Raises:
            TunerError: If the loop is running or closed.
        """
        with self._control:
            with self._lock:
                if self._closed:
                    raise TunerError("Cannot run a closed tuning loop")
                if self._state is LoopState.RUNNING:
                    raise TunerError("run_once() is not available while the loop is running")
                generation = self._generation
            result = self._cycle(generation)
            if result is None:
                raise TunerError("Tuning loop changed state during run_once()")
            return result

    # --------------------------------------------------------------
    def _run(self, generation: int, stop_event: threading.Event) -> None:
        logger.debug("Tuning worker %d running", generation)
        while not stop_event.is_set():
            if self._cycle(generation) is None:
                break
            if stop_event.wait(self.interval):
                break
        logger.debug("Tuning worker %d finished", generation)

    def _cycle(self, generation: int) -> Optional[TuningResult]:
        """Capture, analyse and publish once.

        Returns ``None`` without publishing when ``generation`` is stale.
        """
        block = self._capture(generation)
        result = analyze_block(
            block,
            self.source.sample_rate,
            self.tuning,
            min_lag=self.min_lag,
            threshold=self.threshold,
        )
        with self._lock:
            if generation != self._generation:
                return None
            self.cycles += 1
            cycle = self.cycles
            self.channel.update(result)
        self.channel.notify(result)
        logger.debug("Cycle %d: %s", cycle, result.describe())
        return result

    def _capture(self, generation: int) -> np.ndarray:
        if not self._ensure_prepared(generation):
            return empty_block()
        try:
            return self.source.capture()
        except Exception as exc:
            self._report_failure("Audio capture raised %r", exc)
            return empty_block()

    def _ensure_prepared(self, generation: int) -> bool:
        """Prepare the source unless done already.  Returns readiness."""
        with self._source_lock:
            with self._lock:
                if self._prepared:
                    return True
                if generation != self._generation:
                    return False
            try:
                self.source.prepare()
            except CaptureUnavailableError as exc:
                self._report_failure("Audio capture unavailable: %s", exc)
                return False
            with self._lock:
                self._prepared = True
                self._failures = 0
            return True

    def _release_source(self) -> None:
        with self._source_lock:
            with self._lock:
                if not self._prepared:
                    return
                self._prepared = False
            self.source.release()

    def _report_failure(self, message: str, *args: object) -> None:
        self._failures += 1
        level = logging.WARNING if self._failures == 1 else logging.DEBUG
        logger.log(level, message, *args)


__all__ = ["LoopState", "TuningLoop"]
