"""
Sky AR
======

Overlays planets, stars and satellites on a live camera feed, registered to
the device's physical orientation.

Main components:
- orientation: Device orientation estimator (source arbitration + smoothing)
- projection: Celestial-to-screen projection and frustum test
- ephemeris: Sun, Moon, planet and star altitude/azimuth
- satellites: TLE-based satellite look angles
- events: Sky events calendar (meteor showers, eclipses, oppositions)
- scene: Scene composer (slow refresh, fast re-projection)
- session: Live session wiring sources, estimator and composer

Usage:
    from skyar import OrientationEstimator, RawOrientationEvent, alt_az_to_screen

    estimator = OrientationEstimator()
    estimator.submit(RawOrientationEvent(heading=90, pitch=90, roll=0, absolute=True))
    heading, pitch = estimator.heading_pitch()
    point = alt_az_to_screen(45.0, 90.0, heading, pitch, 1000, 1000)

Or run from command line:
    python -m skyar scene --lat 34.05 --lon -118.24 --heading 180 --pitch 120
"""

__version__ = "0.1.0"

from .angles import normalize180, normalize360, smooth_heading

from .orientation import (
    OrientationEstimator,
    OrientationSample,
    RawOrientationEvent,
    AbsoluteCompass,
    RelativeGyro,
    EstimatorState,
    PermissionState,
    ManualOrientation,
)

from .projection import (
    ProjectionEngine,
    CameraFacing,
    CameraParameters,
    ScreenPoint,
    alt_az_to_screen,
    is_in_view,
)

from .ephemeris import (
    CelestialCalculator,
    CelestialPosition,
    EquatorialPosition,
    ObserverLocation,
    position_of,
    create_calculator,
)

from .events import SkyEvent, SkyEventType, upcoming_events
from .scene import SceneComposer, SceneFrame, SceneOptions, compass_readout
from .session import ARSession, create_session
from .config import Config

__all__ = [
    # Angles
    "normalize180",
    "normalize360",
    "smooth_heading",
    # Orientation
    "OrientationEstimator",
    "OrientationSample",
    "RawOrientationEvent",
    "AbsoluteCompass",
    "RelativeGyro",
    "EstimatorState",
    "PermissionState",
    "ManualOrientation",
    # Projection
    "ProjectionEngine",
    "CameraFacing",
    "CameraParameters",
    "ScreenPoint",
    "alt_az_to_screen",
    "is_in_view",
    # Celestial positions
    "CelestialCalculator",
    "CelestialPosition",
    "EquatorialPosition",
    "ObserverLocation",
    "position_of",
    "create_calculator",
    # Sky events
    "SkyEvent",
    "SkyEventType",
    "upcoming_events",
    # Scene and session
    "SceneComposer",
    "SceneFrame",
    "SceneOptions",
    "compass_readout",
    "ARSession",
    "create_session",
    "Config",
    "__version__",
]
