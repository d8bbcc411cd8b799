"""Shared fixtures for stripbound tests."""

import pytest

from stripbound.config import FeedbackFlag, GainMode, RemoteAddress
from stripbound.observer import StripObserver
from stripbound.sink import RecordingSink
from stripbound.strips import Route, Track

DEFAULT_FEEDBACK = FeedbackFlag.STRIP_BUTTONS | FeedbackFlag.STRIP_VARIABLES


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def address():
    return RemoteAddress(host="127.0.0.1", port=9000)


@pytest.fixture
def track():
    return Track("Kick")


@pytest.fixture
def route():
    return Route("Drum Bus")


@pytest.fixture
def make_observer(sink, address):
    """Factory for observers on the shared recording sink."""
    observers = []

    def _make(ssid=1, feedback=DEFAULT_FEEDBACK, gain_mode=GainMode.DB):
        observer = StripObserver(ssid, sink, address, feedback=feedback, gain_mode=gain_mode)
        observers.append(observer)
        return observer

    yield _make

    for observer in observers:
        observer.close()


@pytest.fixture
def bound_observer(make_observer, track, sink):
    """Observer bound to `track` with the initial burst already cleared."""
    observer = make_observer()
    observer.bind(track, force=True)
    sink.clear()
    return observer
