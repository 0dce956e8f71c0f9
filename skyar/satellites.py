"""
Satellite Position Provider.

Propagates a two-line element set with skyfield (SGP4) and returns the
topocentric altitude/azimuth. Any failure yields None so the caller can skip
the satellite for this tick.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from skyfield.api import EarthSatellite, load, wgs84

from .ephemeris import CelestialPosition
from .angles import normalize360

logger = logging.getLogger(__name__)


# Fallback TLE for ISS (approximate, refresh from CelesTrak for real use)
ISS_NAME = "ISS (ZARYA)"
ISS_TLE = (
    "1 25544U 98067A   24029.56239144  .00015949  00000-0  28257-3 0  9993",
    "2 25544  51.6416 195.9404 0004554  48.0645  20.3168 15.49528654437299",
)

_timescale = None


def get_timescale():
    """Shared skyfield timescale (builtin leap-second data, no download)."""
    global _timescale
    if _timescale is None:
        _timescale = load.timescale()
    return _timescale


class SatelliteTracker:
    """Topocentric look angles for one satellite."""

    def __init__(self, name: str = ISS_NAME,
                 line1: str = ISS_TLE[0], line2: str = ISS_TLE[1]):
        self.name = name
        self.line1 = line1
        self.line2 = line2
        self._satellite: Optional[EarthSatellite] = None

    @property
    def satellite_id(self) -> str:
        return self.name.lower().split(" ")[0]

    def _get_satellite(self) -> EarthSatellite:
        if self._satellite is None:
            self._satellite = EarthSatellite(self.line1, self.line2, self.name, get_timescale())
        return self._satellite

    def position_at(self, when: datetime, latitude: float,
                    longitude: float) -> Optional[CelestialPosition]:
        """
        Altitude/azimuth of the satellite for an observer.

        Args:
            when: Observation time (naive values are UTC)
            latitude: Observer latitude (degrees North)
            longitude: Observer longitude (degrees East)

        Returns:
            CelestialPosition or None if the TLE or propagation failed
        """
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)

        try:
            satellite = self._get_satellite()
            t = get_timescale().from_datetime(when)
            observer = wgs84.latlon(latitude, longitude)
            alt, az, _ = (satellite - observer).at(t).altaz()
            altitude = float(alt.degrees)
            azimuth = float(az.degrees)
        except Exception as e:
            logger.warning(f"Satellite calculation failed for {self.name}: {e}")
            return None

        if not (math.isfinite(altitude) and math.isfinite(azimuth)):
            logger.warning(f"Satellite propagation returned no position for {self.name}")
            return None

        return CelestialPosition(altitude=altitude, azimuth=normalize360(azimuth))
