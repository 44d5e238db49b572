"""Expose tuning results as Qt signals for a PySide6 front-end."""

from __future__ import annotations

from typing import Callable, Optional

from PySide6 import QtCore

from .channel import TuningResultChannel
from .tuning import TuningResult


class ResultSignalBridge(QtCore.QObject):
    """Re-emit channel publications as Qt signals.

    Signals are emitted from the tuning worker thread; Qt queues them onto
    the receiver's thread when the connection crosses threads.
    """

    # Every published result
    resultChanged = QtCore.Signal(object)
    # Matched note name and deviation in cents, only for results with a note
    noteChanged = QtCore.Signal(str, float)
    # Emitted when a result without a note follows one with a note
    noteLost = QtCore.Signal()

    def __init__(
        self,
        channel: TuningResultChannel,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.channel = channel
        self._had_note = False
        self._unsubscribe: Optional[Callable[[], None]] = channel.subscribe(
            self._on_result
        )

    def _on_result(self, result: TuningResult) -> None:
        self.resultChanged.emit(result)
        if result.note is not None:
            self.noteChanged.emit(result.note.name, result.cents_deviation)
            self._had_note = True
        elif self._had_note:
            self.noteLost.emit()
            self._had_note = False

    def detach(self) -> None:
        """Stop forwarding publications."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


__all__ = ["ResultSignalBridge"]
