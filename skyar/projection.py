#!/usr/bin/env python3
"""
Celestial-to-screen projection.

Maps a horizontal position (altitude, azimuth) and the current device
heading/pitch onto viewport pixels with a tangent (pinhole) model:

    delta_az  = normalize180(azimuth - heading)
    delta_alt = altitude - (pitch - 90)
    ndc       = tan(delta) / tan(hfov / 2)       per axis
    x         = (ndc_x + 1) * width / 2
    y         = (1 - ndc_y) * height / 2          # screen y grows downward

Anything 90 degrees or more off-axis (behind the viewer) is placed at a fixed
off-screen sentinel instead of wrapping back onto the screen.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .angles import normalize180, normalize360
from .orientation import DEFAULT_HEADING, DEFAULT_PITCH


DEFAULT_HFOV = 60.0
DEFAULT_MARGIN = 15.0

# Normalized coordinate for points behind the viewer or numerically
# degenerate: 2x the viewport dimension past the edge.
OFFSCREEN_NDC = 5.0


class CameraFacing(Enum):
    """Which physical camera feeds the preview."""
    ENVIRONMENT = "environment"
    USER = "user"


@dataclass(frozen=True)
class ScreenPoint:
    """Projected pixel position."""
    x: float
    y: float
    visible: bool = False

    def is_on_screen(self, width: float, height: float) -> bool:
        return 0 <= self.x <= width and 0 <= self.y <= height

    def as_int(self) -> Tuple[int, int]:
        return int(round(self.x)), int(round(self.y))


@dataclass(frozen=True)
class CameraParameters:
    """Viewport size and field of view used for projection."""
    width: int
    height: int
    hfov: float = DEFAULT_HFOV      # Horizontal FOV in degrees

    @property
    def cx(self) -> float:
        return self.width / 2

    @property
    def cy(self) -> float:
        return self.height / 2

    @property
    def tan_half_fov(self) -> float:
        return math.tan(math.radians(self.hfov / 2))


def look_altitude(pitch: float) -> float:
    """Altitude the camera axis points at; pitch 90 is the horizon."""
    return pitch - 90.0


def effective_heading(heading: float, facing: CameraFacing) -> float:
    """The front camera looks opposite the sensor-reported forward direction."""
    if facing is CameraFacing.USER:
        return normalize360(heading + 180.0)
    return heading


def resolve_orientation(heading: Optional[float],
                        pitch: Optional[float]) -> Tuple[float, float]:
    """Fill in missing sensor values with north at the horizon."""
    return (DEFAULT_HEADING if heading is None else heading,
            DEFAULT_PITCH if pitch is None else pitch)


class ProjectionEngine:
    """
    Tangent projection plus frustum test for a fixed horizontal FOV.

    The same tangent scale is used on both axes, so non-square viewports are
    stretched vertically, like a typical phone preview.
    """

    def __init__(self, hfov: float = DEFAULT_HFOV, margin: float = DEFAULT_MARGIN):
        """
        Args:
            hfov: Horizontal field of view in degrees (0-180 exclusive)
            margin: Extra degrees around the FOV still counted as in view
        """
        if not 0.0 < hfov < 180.0:
            raise ValueError(f"hfov must be in (0, 180), got {hfov}")

        self.hfov = hfov
        self.margin = margin
        self._tan_half_fov = math.tan(math.radians(hfov / 2))

    @property
    def view_limit(self) -> float:
        """Largest off-axis angle still considered in view."""
        return self.hfov / 2 + self.margin

    def angular_offsets(self, altitude: float, azimuth: float,
                        heading: Optional[float], pitch: Optional[float],
                        facing: CameraFacing = CameraFacing.ENVIRONMENT) -> Tuple[float, float]:
        """
        Offsets of a target from the camera axis.

        Returns:
            (delta_azimuth in (-180, 180], delta_altitude)
        """
        heading, pitch = resolve_orientation(heading, pitch)
        delta_az = normalize180(azimuth - effective_heading(heading, facing))
        delta_alt = altitude - look_altitude(pitch)
        return delta_az, delta_alt

    def is_in_view(self, altitude: float, azimuth: float,
                   heading: Optional[float], pitch: Optional[float],
                   facing: CameraFacing = CameraFacing.ENVIRONMENT) -> bool:
        """Frustum test with margin; used to cull before rendering."""
        delta_az, delta_alt = self.angular_offsets(altitude, azimuth, heading, pitch, facing)
        limit = self.view_limit
        return abs(delta_az) < limit and abs(delta_alt) < limit

    def project(self, altitude: float, azimuth: float,
                heading: Optional[float], pitch: Optional[float],
                width: float, height: float,
                facing: CameraFacing = CameraFacing.ENVIRONMENT) -> ScreenPoint:
        """
        Project a horizontal position to viewport pixels.

        Always returns finite coordinates. Targets behind the viewer land
        well outside [0, width] x [0, height].
        """
        delta_az, delta_alt = self.angular_offsets(altitude, azimuth, heading, pitch, facing)

        ndc_x = self._to_ndc(delta_az)
        ndc_y = self._to_ndc(delta_alt)

        # Preview from the front camera is mirrored
        if facing is CameraFacing.USER:
            ndc_x = -ndc_x

        limit = self.view_limit
        return ScreenPoint(
            x=(ndc_x + 1.0) * width / 2,
            y=(1.0 - ndc_y) * height / 2,
            visible=abs(delta_az) < limit and abs(delta_alt) < limit,
        )

    def project_camera(self, altitude: float, azimuth: float,
                       heading: Optional[float], pitch: Optional[float],
                       camera: CameraParameters,
                       facing: CameraFacing = CameraFacing.ENVIRONMENT) -> ScreenPoint:
        return self.project(altitude, azimuth, heading, pitch,
                            camera.width, camera.height, facing)

    def _to_ndc(self, delta: float) -> float:
        if not math.isfinite(delta):
            return OFFSCREEN_NDC
        if abs(delta) >= 90.0:
            return math.copysign(OFFSCREEN_NDC, delta)

        ndc = math.tan(math.radians(delta)) / self._tan_half_fov
        if not math.isfinite(ndc):
            return math.copysign(OFFSCREEN_NDC, delta)
        return max(-OFFSCREEN_NDC, min(OFFSCREEN_NDC, ndc))


_default_engine = ProjectionEngine()


def alt_az_to_screen(altitude: float, azimuth: float,
                     heading: Optional[float], pitch: Optional[float],
                     width: float, height: float,
                     facing: CameraFacing = CameraFacing.ENVIRONMENT) -> ScreenPoint:
    """Project with the default 60 degree engine."""
    return _default_engine.project(altitude, azimuth, heading, pitch, width, height, facing)


def is_in_view(altitude: float, azimuth: float,
               heading: Optional[float], pitch: Optional[float],
               facing: CameraFacing = CameraFacing.ENVIRONMENT) -> bool:
    """Frustum test with the default 60 degree engine and 15 degree margin."""
    return _default_engine.is_in_view(altitude, azimuth, heading, pitch, facing)
