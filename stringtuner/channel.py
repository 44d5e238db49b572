"""Single-slot, last-write-wins publication of tuning results."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .tuning import TuningResult

logger = logging.getLogger(__name__)

Subscriber = Callable[[TuningResult], None]


class TuningResultChannel:
    """Always-current :class:`TuningResult` shared with observers.

    Each :meth:`publish` overwrites the previous value and bumps a sequence
    number; nothing is queued, so a slow reader only ever sees the newest
    result.  Subscribers are called synchronously on the publishing thread,
    in subscription order, after the slot has been updated.  A subscriber
    raising an exception is logged and skipped.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._latest: Optional[TuningResult] = None
        self._sequence = 0
        self._subscribers: list[Subscriber] = []

    @property
    def latest(self) -> Optional[TuningResult]:
        """Most recently published result, ``None`` before the first one."""
        with self._cond:
            return self._latest

    @property
    def sequence(self) -> int:
        """Number of results published so far."""
        with self._cond:
            return self._sequence

    def snapshot(self) -> tuple[int, Optional[TuningResult]]:
        """Return ``(sequence, latest)`` read atomically."""
        with self._cond:
            return self._sequence, self._latest

    def publish(self, result: TuningResult) -> int:
        """Replace the current value with ``result`` and notify subscribers.

        Equivalent to :meth:`update` followed by :meth:`notify`.

        Returns:
            The sequence number assigned to ``result``.
        """
        sequence = self.update(result)
        self.notify(result)
        return sequence

    def update(self, result: TuningResult) -> int:
        """Replace the current value and wake :meth:`wait_for` callers.

        Subscribers are not called; producers that must update the slot
        under their own lock call :meth:`notify` once that lock is released.
        """
        with self._cond:
            self._sequence += 1
            self._latest = result
            self._cond.notify_all()
            return self._sequence

    def notify(self, result: TuningResult) -> None:
        """Call every subscriber with ``result``."""
        with self._cond:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(result)
            except Exception:
                logger.exception("Tuning result subscriber %r failed", callback)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for future publications.

        Returns:
            A function that removes the subscription.  Calling it more than
            once has no effect.
        """
        with self._cond:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._cond:
                try:
                    self._subscribers.remove(callback)
                except ValueError:
                    pass

        return unsubscribe

    def wait_for(
        self, after: int, timeout: Optional[float] = None
    ) -> tuple[int, Optional[TuningResult]]:
        """Block until a result newer than sequence ``after`` is published.

        Args:
            after: Sequence number already seen by the caller.
            timeout: Seconds to wait, ``None`` to wait indefinitely.

        Returns:
            The current ``(sequence, latest)``; the sequence is unchanged when
            the wait timed out.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._sequence > after, timeout=timeout)
            return self._sequence, self._latest


__all__ = ["Subscriber", "TuningResultChannel"]
