#!/usr/bin/env python3
"""
Device Orientation Estimator.

Turns a heterogeneous stream of raw orientation events into one stable
heading/pitch/roll estimate:

- Events are classified at the boundary into absolute (true-north referenced)
  and relative sources, and normalized to the clockwise-from-north convention.
- Once an absolute event has been accepted, relative events are ignored for
  the rest of the session.
- Heading, pitch and roll are exponentially smoothed; heading smoothing
  follows the shorter arc across 0/360.
- Platforms that need user consent report "unsupported" until permission is
  granted; callers then fall back to a manual orientation.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from .angles import (
    clamp, is_finite_angle, normalize360, smooth_heading, smooth_linear
)

logger = logging.getLogger(__name__)


# Facing north at the horizon
DEFAULT_HEADING = 0.0
DEFAULT_PITCH = 90.0

DEFAULT_SMOOTHING_FACTOR = 0.3


@dataclass(frozen=True)
class OrientationSample:
    """Canonical orientation, heading clockwise from true north."""
    heading: float      # Degrees [0, 360)
    pitch: float        # Degrees, 90 = camera axis on the horizon
    roll: float         # Degrees
    is_absolute: bool


@dataclass(frozen=True)
class RawOrientationEvent:
    """
    Orientation event as delivered by a platform.

    `compass_heading` is the platform's true-compass field; when present it
    overrides `heading` and makes the event absolute. `counter_clockwise`
    marks platforms that report `heading` counter-clockwise from north.
    """
    heading: Optional[float] = None
    pitch: Optional[float] = None
    roll: Optional[float] = None
    absolute: Optional[bool] = None
    compass_heading: Optional[float] = None
    counter_clockwise: bool = False


class HeadingSource(ABC):
    """Normalizes one family of platform events into OrientationSamples."""

    is_absolute: bool = False

    def normalize(self, event: RawOrientationEvent) -> Optional[OrientationSample]:
        """
        Convert a raw event, or return None if it is malformed.
        """
        heading = self._raw_heading(event)
        if not all(is_finite_angle(v) for v in (heading, event.pitch, event.roll)):
            return None

        return OrientationSample(
            heading=normalize360(heading),
            pitch=float(event.pitch),
            roll=float(event.roll),
            is_absolute=self.is_absolute,
        )

    @abstractmethod
    def _raw_heading(self, event: RawOrientationEvent) -> Optional[float]:
        """Pick the heading field and convert it to clockwise-from-north."""

    @staticmethod
    def _generic_heading(event: RawOrientationEvent) -> Optional[float]:
        if not is_finite_angle(event.heading):
            return None
        if event.counter_clockwise:
            return 360.0 - event.heading
        return event.heading


class AbsoluteCompass(HeadingSource):
    """True-north referenced heading (compass override or absolute flag)."""

    is_absolute = True

    def _raw_heading(self, event: RawOrientationEvent) -> Optional[float]:
        if event.compass_heading is not None:
            # Already clockwise from true north
            return event.compass_heading
        return self._generic_heading(event)


class RelativeGyro(HeadingSource):
    """Heading relative to an arbitrary start direction."""

    is_absolute = False

    def _raw_heading(self, event: RawOrientationEvent) -> Optional[float]:
        return self._generic_heading(event)


_ABSOLUTE = AbsoluteCompass()
_RELATIVE = RelativeGyro()


def classify_event(event: RawOrientationEvent) -> HeadingSource:
    """Select the source variant an event belongs to."""
    if event.compass_heading is not None or event.absolute is True:
        return _ABSOLUTE
    return _RELATIVE


def normalize_event(event: RawOrientationEvent) -> Optional[OrientationSample]:
    return classify_event(event).normalize(event)


class EstimatorState(Enum):
    """Source arbitration state. ABSOLUTE_ACTIVE is terminal."""
    UNINITIALIZED = "uninitialized"
    RELATIVE_ACTIVE = "relative_active"
    ABSOLUTE_ACTIVE = "absolute_active"


class PermissionState(Enum):
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    GRANTED = "granted"
    DENIED = "denied"


class OrientationEstimator:
    """
    Smoothed orientation estimate fed by raw platform events.

    Thread-safe: events may arrive from a reader thread while the render
    loop reads the current estimate.
    """

    def __init__(self, smoothing_factor: float = DEFAULT_SMOOTHING_FACTOR,
                 requires_permission: bool = False):
        """
        Args:
            smoothing_factor: Weight of each new sample (0-1]
            requires_permission: Start in PENDING and ignore events until
                permission is granted
        """
        if not 0.0 < smoothing_factor <= 1.0:
            raise ValueError(f"smoothing_factor must be in (0, 1], got {smoothing_factor}")

        self.smoothing_factor = smoothing_factor
        self._lock = threading.Lock()
        self._state = EstimatorState.UNINITIALIZED
        self._permission = (PermissionState.PENDING if requires_permission
                            else PermissionState.NOT_REQUIRED)
        self._current: Optional[OrientationSample] = None
        self._accepted = 0
        self._dropped = 0

    @property
    def state(self) -> EstimatorState:
        with self._lock:
            return self._state

    @property
    def permission(self) -> PermissionState:
        with self._lock:
            return self._permission

    @property
    def is_supported(self) -> bool:
        """False while permission is pending or after it was denied."""
        with self._lock:
            return self._permission in (PermissionState.NOT_REQUIRED,
                                        PermissionState.GRANTED)

    @property
    def is_absolute(self) -> bool:
        with self._lock:
            return self._state is EstimatorState.ABSOLUTE_ACTIVE

    @property
    def reading(self) -> Optional[OrientationSample]:
        """Current smoothed estimate, None before the first accepted event."""
        with self._lock:
            return self._current

    @property
    def stats(self) -> Tuple[int, int]:
        """(accepted, dropped) event counts."""
        with self._lock:
            return self._accepted, self._dropped

    def request_permission(self, requester: Callable[[], bool]) -> bool:
        """
        Ask the platform for sensor access.

        Failures are not fatal: an exception or a refusal leaves the
        estimator unsupported and the caller uses manual input.

        Args:
            requester: Callable returning True if access was granted

        Returns:
            True if permission is granted
        """
        with self._lock:
            if self._permission is PermissionState.NOT_REQUIRED:
                return True

        try:
            granted = bool(requester())
        except Exception as e:
            logger.warning(f"Orientation permission request failed: {e}")
            granted = False

        if granted:
            self.grant_permission()
        else:
            self.deny_permission()
        return granted

    def grant_permission(self):
        with self._lock:
            if self._permission is not PermissionState.NOT_REQUIRED:
                self._permission = PermissionState.GRANTED
        logger.info("Orientation sensor access granted")

    def deny_permission(self):
        with self._lock:
            if self._permission is not PermissionState.NOT_REQUIRED:
                self._permission = PermissionState.DENIED
        logger.warning("Orientation sensor access not granted, manual input required")

    def submit(self, event: RawOrientationEvent) -> bool:
        """
        Feed one raw event.

        Returns:
            True if the event updated the estimate
        """
        sample = normalize_event(event)

        with self._lock:
            if self._permission in (PermissionState.PENDING, PermissionState.DENIED):
                return False

            if sample is None:
                self._dropped += 1
                logger.debug(f"Dropped malformed orientation event: {event}")
                return False

            if sample.is_absolute:
                if self._state is not EstimatorState.ABSOLUTE_ACTIVE:
                    logger.info("Absolute heading source acquired")
                    self._state = EstimatorState.ABSOLUTE_ACTIVE
                    # Relative frame has an arbitrary zero; start over
                    self._current = None
            elif self._state is EstimatorState.ABSOLUTE_ACTIVE:
                self._dropped += 1
                return False
            else:
                self._state = EstimatorState.RELATIVE_ACTIVE

            self._current = self._smooth(self._current, sample)
            self._accepted += 1
            return True

    def _smooth(self, current: Optional[OrientationSample],
                sample: OrientationSample) -> OrientationSample:
        if current is None:
            return sample

        k = self.smoothing_factor
        return OrientationSample(
            heading=smooth_heading(current.heading, sample.heading, k),
            pitch=smooth_linear(current.pitch, sample.pitch, k),
            roll=smooth_linear(current.roll, sample.roll, k),
            is_absolute=sample.is_absolute,
        )

    def heading_pitch(self) -> Tuple[float, float]:
        """
        Heading and pitch for projection.

        Falls back to north at the horizon when unsupported or before any
        event has been accepted.
        """
        with self._lock:
            supported = self._permission in (PermissionState.NOT_REQUIRED,
                                              PermissionState.GRANTED)
            if not supported or self._current is None:
                return DEFAULT_HEADING, DEFAULT_PITCH
            return self._current.heading, self._current.pitch

    def reset(self):
        """Start a new session; permission state is kept."""
        with self._lock:
            self._state = EstimatorState.UNINITIALIZED
            self._current = None
            self._accepted = 0
            self._dropped = 0


class ManualOrientation:
    """
    Pointer-driven orientation for devices without usable sensors.

    Dragging right turns the view left; pitch is clamped away from the
    zenith and nadir to avoid flips.
    """

    PITCH_MIN = 10.0
    PITCH_MAX = 170.0

    def __init__(self, heading: float = DEFAULT_HEADING, pitch: float = DEFAULT_PITCH,
                 sensitivity: float = 0.2):
        self.sensitivity = sensitivity
        self._heading = normalize360(heading)
        self._pitch = clamp(pitch, self.PITCH_MIN, self.PITCH_MAX)

    @property
    def heading(self) -> float:
        return self._heading

    @property
    def pitch(self) -> float:
        return self._pitch

    def drag(self, dx: float, dy: float):
        """Update from a pointer delta in pixels."""
        self._heading = normalize360(self._heading - dx * self.sensitivity)
        self._pitch = clamp(self._pitch + dy * self.sensitivity,
                            self.PITCH_MIN, self.PITCH_MAX)

    def set(self, heading: float, pitch: float):
        self._heading = normalize360(heading)
        self._pitch = clamp(pitch, self.PITCH_MIN, self.PITCH_MAX)

    def heading_pitch(self) -> Tuple[float, float]:
        return self._heading, self._pitch
