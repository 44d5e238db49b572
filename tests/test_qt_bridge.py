"""Tests for :class:`stringtuner.qt_bridge.ResultSignalBridge`."""

from __future__ import annotations

import sys
import types


class _DummySignal:
    def __init__(self, *_, **__):
        self._subs: list[object] = []

    def connect(self, func):
        self._subs.append(func)

    def emit(self, *args, **kwargs):
        for func in self._subs:
            func(*args, **kwargs)


class _DummyQObject:
    def __init__(self, *_, **__):
        pass


qt_core = types.SimpleNamespace(QObject=_DummyQObject, Signal=_DummySignal)
sys.modules.setdefault("PySide6", types.SimpleNamespace(QtCore=qt_core))
sys.modules.setdefault("PySide6.QtCore", qt_core)

from stringtuner.channel import TuningResultChannel  # noqa: E402
from stringtuner.qt_bridge import ResultSignalBridge  # noqa: E402
from stringtuner.tuning import ReferenceNote, TuningResult  # noqa: E402


def test_bridge_forwards_results() -> None:
    channel = TuningResultChannel()
    bridge = ResultSignalBridge(channel)
    results: list[TuningResult] = []
    notes: list[tuple[str, float]] = []
    lost: list[bool] = []
    bridge.resultChanged.connect(results.append)
    bridge.noteChanged.connect(lambda name, cents: notes.append((name, cents)))
    bridge.noteLost.connect(lambda: lost.append(True))

    channel.publish(TuningResult.silent())
    channel.publish(TuningResult(ReferenceNote("A", 110.0), 3.0, True, 110.2))
    channel.publish(TuningResult.silent())

    assert len(results) == 3
    assert notes == [("A", 3.0)]
    assert lost == [True]


def test_detach_stops_forwarding() -> None:
    channel = TuningResultChannel()
    bridge = ResultSignalBridge(channel)
    results: list[TuningResult] = []
    bridge.resultChanged.connect(results.append)
    bridge.detach()
    bridge.detach()
    channel.publish(TuningResult.silent())
    assert results == []
