"""Tests for orientation event sources and subscriptions."""

from skyar.orientation import RawOrientationEvent
from skyar.sources import CallbackSource, EventSource


class CountingSource(EventSource):
    name = "counting"

    def __init__(self):
        super().__init__()
        self.started = 0
        self.stopped = 0

    def on_first_subscriber(self):
        self.started += 1

    def on_last_unsubscribed(self):
        self.stopped += 1


def test_emit_reaches_all_subscribers():
    source = CallbackSource()
    a, b = [], []
    source.subscribe(a.append)
    source.subscribe(b.append)

    source.push(heading=10.0, pitch=90.0, roll=0.0, absolute=True)

    expected = RawOrientationEvent(heading=10.0, pitch=90.0, roll=0.0, absolute=True)
    assert a == [expected]
    assert b == [expected]


def test_unsubscribe_stops_delivery_and_is_idempotent():
    source = CallbackSource()
    received = []
    unsubscribe = source.subscribe(received.append)

    unsubscribe()
    unsubscribe()
    source.push(heading=1.0, pitch=1.0, roll=1.0)

    assert received == []
    assert source.subscriber_count == 0


def test_lifecycle_hooks():
    source = CountingSource()
    first = source.subscribe(lambda e: None)
    second = source.subscribe(lambda e: None)
    assert source.started == 1

    first()
    assert source.stopped == 0
    second()
    assert source.stopped == 1

    source.subscribe(lambda e: None)
    assert source.started == 2


def test_failing_subscriber_does_not_block_others():
    source = CallbackSource()
    received = []

    def broken(event):
        raise RuntimeError("render thread gone")

    source.subscribe(broken)
    source.subscribe(received.append)
    source.push(compass_heading=45.0, pitch=90.0, roll=0.0)

    assert len(received) == 1
    assert received[0].compass_heading == 45.0
