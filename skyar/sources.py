"""
Orientation event sources.

A source delivers RawOrientationEvents to subscribers. subscribe() returns a
callable that removes the subscription, so owners can release everything
they acquired on teardown.
"""

import logging
import threading
from typing import Callable, List

from .orientation import RawOrientationEvent

logger = logging.getLogger(__name__)


EventCallback = Callable[[RawOrientationEvent], object]
Unsubscribe = Callable[[], None]


class EventSource:
    """Base class for orientation event sources."""

    name = "source"

    def __init__(self):
        self._lock = threading.Lock()
        self._callbacks: List[EventCallback] = []

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def subscribe(self, callback: EventCallback) -> Unsubscribe:
        """
        Register a callback for every event.

        Returns:
            Function that removes the callback (idempotent)
        """
        with self._lock:
            self._callbacks.append(callback)
            first = len(self._callbacks) == 1
        if first:
            self.on_first_subscriber()

        def unsubscribe():
            with self._lock:
                if callback not in self._callbacks:
                    return
                self._callbacks.remove(callback)
                last = not self._callbacks
            if last:
                self.on_last_unsubscribed()

        return unsubscribe

    def emit(self, event: RawOrientationEvent):
        """Deliver an event to all current subscribers."""
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"{self.name}: subscriber failed on event: {e}")

    def on_first_subscriber(self):
        """Hook: start producing events."""

    def on_last_unsubscribed(self):
        """Hook: stop producing events."""


class CallbackSource(EventSource):
    """In-process source driven by the host application (or tests)."""

    name = "callback"

    def push(self, heading=None, pitch=None, roll=None, absolute=None,
             compass_heading=None, counter_clockwise=False):
        self.emit(RawOrientationEvent(
            heading=heading,
            pitch=pitch,
            roll=roll,
            absolute=absolute,
            compass_heading=compass_heading,
            counter_clockwise=counter_clockwise,
        ))
