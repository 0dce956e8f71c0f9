#!/usr/bin/env python3
"""
Scene Composer.

Runs two update rates:
- refresh(): slow astronomical recompute (about once per second), caching the
  horizontal position of every catalog entry
- compose(): fast re-projection of the cached positions with the latest
  device orientation, once per rendered frame

Objects whose provider fails are left out of the tick instead of breaking the
frame.
"""

import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .angles import is_finite_angle, normalize180, normalize360
from .catalog import (
    CARDINAL_DIRECTIONS, CONSTELLATIONS, MOON, PLANETS, SUN,
    CardinalDirection, Constellation, Planet
)
from .ephemeris import CelestialPosition, EquatorialPosition, ObserverLocation, position_of
from .projection import CameraFacing, ProjectionEngine, ScreenPoint, effective_heading
from .satellites import SatelliteTracker

logger = logging.getLogger(__name__)


PositionProvider = Callable[[Union[str, EquatorialPosition], datetime, float, float],
                            CelestialPosition]

# Bodies are shown slightly below the geometric horizon
MIN_ALTITUDE = -10.0


class ObjectKind(Enum):
    PLANET = "planet"
    CONSTELLATION = "constellation"
    SATELLITE = "satellite"


@dataclass(frozen=True)
class SkyObject:
    """One projected catalog entry."""
    id: str
    name: str
    kind: ObjectKind
    position: CelestialPosition
    screen: ScreenPoint

    @property
    def visible(self) -> bool:
        return self.screen.visible


@dataclass(frozen=True)
class ConstellationView:
    """Projected constellation: label anchor, stars and line segments."""
    constellation: Constellation
    center: SkyObject
    stars: Tuple[Optional[ScreenPoint], ...]
    segments: Tuple[Tuple[ScreenPoint, ScreenPoint], ...]


@dataclass(frozen=True)
class CardinalMarker:
    label: str
    screen: ScreenPoint


@dataclass
class SceneOptions:
    """Layer toggles and filters."""
    show_planets: bool = True
    show_sun_moon: bool = True
    show_constellations: bool = True
    show_satellites: bool = True
    min_altitude: float = MIN_ALTITUDE
    satellite_min_altitude: float = 0.0
    horizon_step: float = 10.0

    def __post_init__(self):
        if not self.horizon_step > 0:
            raise ValueError(f"horizon_step must be positive, got {self.horizon_step}")


@dataclass
class SceneFrame:
    """Everything the renderer needs for one frame."""
    timestamp: Optional[datetime]
    heading: float
    pitch: float
    facing: CameraFacing
    objects: List[SkyObject] = field(default_factory=list)
    constellations: List[ConstellationView] = field(default_factory=list)
    cardinals: List[CardinalMarker] = field(default_factory=list)
    horizon: List[ScreenPoint] = field(default_factory=list)

    @property
    def visible_objects(self) -> List[SkyObject]:
        return [obj for obj in self.objects if obj.visible]

    def find(self, object_id: str) -> Optional[SkyObject]:
        for obj in self.objects:
            if obj.id == object_id:
                return obj
        return None


@dataclass
class _ConstellationPositions:
    center: CelestialPosition
    stars: List[Optional[CelestialPosition]]


class SceneComposer:
    """
    Iterates the catalog, calls the position providers and projection engine.
    """

    def __init__(self, engine: Optional[ProjectionEngine] = None,
                 provider: PositionProvider = position_of,
                 satellites: Sequence[SatelliteTracker] = (),
                 planets: Sequence[Planet] = tuple(PLANETS),
                 constellations: Sequence[Constellation] = tuple(CONSTELLATIONS),
                 cardinals: Sequence[CardinalDirection] = tuple(CARDINAL_DIRECTIONS),
                 options: Optional[SceneOptions] = None):
        """
        Args:
            engine: Projection engine (default 60 degree FOV)
            provider: position_of-compatible callable
            satellites: Satellite trackers to include
            planets: Planet catalog
            constellations: Constellation catalog
            cardinals: Horizon direction markers
            options: Layer toggles and filters
        """
        self.engine = engine or ProjectionEngine()
        self.provider = provider
        self.satellites = list(satellites)
        self.planets = list(planets)
        self.constellations = list(constellations)
        self.cardinals = list(cardinals)
        self.options = options or SceneOptions()

        self._lock = threading.Lock()
        self._timestamp: Optional[datetime] = None
        self._bodies: Dict[str, Tuple[Planet, CelestialPosition]] = {}
        self._constellation_positions: Dict[str, _ConstellationPositions] = {}
        self._satellite_positions: Dict[str, Tuple[SatelliteTracker, CelestialPosition]] = {}

    @property
    def last_refresh(self) -> Optional[datetime]:
        with self._lock:
            return self._timestamp

    def _lookup(self, target: Union[str, EquatorialPosition], when: datetime,
                location: ObserverLocation) -> Optional[CelestialPosition]:
        try:
            pos = self.provider(target, when, location.latitude, location.longitude)
        except Exception as e:
            logger.warning(f"Position unavailable for {target}: {e}")
            return None

        if not (isinstance(pos, CelestialPosition)
                and is_finite_angle(pos.altitude) and is_finite_angle(pos.azimuth)):
            logger.warning(f"Position unavailable for {target}: unusable result {pos!r}")
            return None
        return pos

    def _bodies_to_refresh(self) -> List[Planet]:
        bodies = []
        if self.options.show_planets:
            bodies.extend(self.planets)
        if self.options.show_sun_moon:
            bodies.extend([SUN, MOON])
        return bodies

    def refresh(self, when: datetime, location: ObserverLocation) -> int:
        """
        Recompute and cache positions of every enabled catalog entry.

        Args:
            when: Observation time
            location: Observer location

        Returns:
            Number of positions cached
        """
        bodies: Dict[str, Tuple[Planet, CelestialPosition]] = {}
        for body in self._bodies_to_refresh():
            pos = self._lookup(body.id, when, location)
            if pos is not None:
                bodies[body.id] = (body, pos)

        constellations: Dict[str, _ConstellationPositions] = {}
        if self.options.show_constellations:
            for constellation in self.constellations:
                center = self._lookup(constellation.center, when, location)
                if center is None:
                    continue
                stars = [self._lookup(star.equatorial, when, location)
                         for star in constellation.stars]
                constellations[constellation.id] = _ConstellationPositions(center, stars)

        satellites: Dict[str, Tuple[SatelliteTracker, CelestialPosition]] = {}
        if self.options.show_satellites:
            for tracker in self.satellites:
                pos = tracker.position_at(when, location.latitude, location.longitude)
                if pos is not None:
                    satellites[tracker.satellite_id] = (tracker, pos)

        with self._lock:
            self._timestamp = when
            self._bodies = bodies
            self._constellation_positions = constellations
            self._satellite_positions = satellites

        count = len(bodies) + len(satellites) + sum(
            1 + sum(1 for s in c.stars if s is not None) for c in constellations.values())
        logger.debug(f"Refreshed {count} positions for {when.isoformat()}")
        return count

    def compose(self, heading: Optional[float], pitch: Optional[float],
                width: float, height: float,
                facing: CameraFacing = CameraFacing.ENVIRONMENT) -> SceneFrame:
        """
        Project the cached positions for the current orientation.

        Args:
            heading: Device heading (None falls back to North)
            pitch: Device pitch (None falls back to the horizon)
            width: Viewport width in pixels
            height: Viewport height in pixels
            facing: Active camera

        Returns:
            SceneFrame
        """
        with self._lock:
            timestamp = self._timestamp
            bodies = dict(self._bodies)
            constellations = dict(self._constellation_positions)
            satellites = dict(self._satellite_positions)

        heading = 0.0 if heading is None else heading
        pitch = 90.0 if pitch is None else pitch
        frame = SceneFrame(timestamp=timestamp, heading=heading, pitch=pitch, facing=facing)

        def project(pos: CelestialPosition) -> ScreenPoint:
            return self.engine.project(pos.altitude, pos.azimuth, heading, pitch,
                                       width, height, facing)

        min_alt = self.options.min_altitude

        for body, pos in bodies.values():
            if pos.altitude < min_alt:
                continue
            frame.objects.append(SkyObject(body.id, body.name, ObjectKind.PLANET,
                                           pos, project(pos)))

        for constellation in self.constellations:
            positions = constellations.get(constellation.id)
            if positions is None or positions.center.altitude < min_alt:
                continue

            center = SkyObject(constellation.id, constellation.name,
                               ObjectKind.CONSTELLATION, positions.center,
                               project(positions.center))
            stars = tuple(project(p) if p is not None else None for p in positions.stars)
            segments = tuple(
                (stars[a], stars[b]) for a, b in constellation.lines
                if stars[a] is not None and stars[b] is not None
                and stars[a].visible and stars[b].visible
            )
            frame.objects.append(center)
            frame.constellations.append(ConstellationView(constellation, center, stars, segments))

        sat_min_alt = max(min_alt, self.options.satellite_min_altitude)
        for sat_id, (tracker, pos) in satellites.items():
            if pos.altitude <= sat_min_alt:
                continue
            frame.objects.append(SkyObject(sat_id, tracker.name, ObjectKind.SATELLITE,
                                           pos, project(pos)))

        for direction in self.cardinals:
            frame.cardinals.append(CardinalMarker(
                direction.label, project(CelestialPosition(altitude=0.0, azimuth=direction.azimuth))))

        frame.horizon = self.horizon_line(heading, pitch, width, height, facing)
        return frame

    def horizon_line(self, heading: float, pitch: float, width: float, height: float,
                     facing: CameraFacing = CameraFacing.ENVIRONMENT) -> List[ScreenPoint]:
        """On-screen points of the altitude-0 circle, sampled every horizon_step degrees."""
        points = []
        steps = int(math.ceil(360.0 / self.options.horizon_step))
        for i in range(steps + 1):
            az = min(i * self.options.horizon_step, 360.0)
            point = self.engine.project(0.0, az, heading, pitch, width, height, facing)
            if point.is_on_screen(width, height):
                points.append(point)
        return points


def compass_readout(heading: Optional[float],
                    facing: CameraFacing = CameraFacing.ENVIRONMENT) -> Tuple[int, str]:
    """
    Heading readout for the compass tape.

    Returns:
        (rounded heading 0-359, cardinal label or "")
    """
    value = 0.0 if heading is None else heading
    value = int(round(normalize360(effective_heading(value, facing)))) % 360

    for label, angle in (("N", 0.0), ("E", 90.0), ("S", 180.0), ("W", 270.0)):
        if abs(normalize180(value - angle)) < 22.5:
            return value, label
    return value, ""
