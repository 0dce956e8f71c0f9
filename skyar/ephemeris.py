#!/usr/bin/env python3
"""
Celestial Position Provider.

Horizontal (altitude/azimuth) positions for:
- Sun and Moon (low-precision series)
- Planets Mercury..Neptune (mean Keplerian elements, J2000 ecliptic)
- Fixed stars and arbitrary RA/Dec

Based on astronomical algorithms from:
- Jean Meeus "Astronomical Algorithms"
- E.M. Standish, "Keplerian Elements for Approximate Positions of the
  Major Planets" (JPL), valid 1800-2050 AD

Accuracy is at the arc-minute level, enough for an AR overlay.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Tuple, Union

import numpy as np

from .angles import normalize360


J2000 = 2451545.0
OBLIQUITY_J2000 = 23.43928  # degrees


@dataclass(frozen=True)
class CelestialPosition:
    """Position in horizontal coordinates."""
    altitude: float     # Degrees above horizon (-90 to +90)
    azimuth: float      # Degrees clockwise from North [0, 360)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.altitude) and math.isfinite(self.azimuth)

    @property
    def above_horizon(self) -> bool:
        return self.altitude > 0


@dataclass(frozen=True)
class EquatorialPosition:
    """Position in equatorial coordinates."""
    ra: float           # Right Ascension in degrees (0-360)
    dec: float          # Declination in degrees (-90 to +90)

    @classmethod
    def from_hours(cls, ra_hours: float, dec: float) -> "EquatorialPosition":
        return cls(ra=ra_hours * 15.0, dec=dec)

    @property
    def ra_hours(self) -> float:
        """RA in hours."""
        return self.ra / 15.0

    def to_unit_vector(self) -> np.ndarray:
        """Convert to 3D unit vector in celestial frame."""
        ra_rad = math.radians(self.ra)
        dec_rad = math.radians(self.dec)

        x = math.cos(dec_rad) * math.cos(ra_rad)
        y = math.cos(dec_rad) * math.sin(ra_rad)
        z = math.sin(dec_rad)

        return np.array([x, y, z])

    def separation(self, other: "EquatorialPosition") -> float:
        """Angular distance in degrees."""
        cos_sep = float(np.dot(self.to_unit_vector(), other.to_unit_vector()))
        return math.degrees(math.acos(max(-1.0, min(1.0, cos_sep))))


@dataclass(frozen=True)
class ObserverLocation:
    """Observer's location on Earth."""
    latitude: float     # Degrees North (positive) / South (negative)
    longitude: float    # Degrees East (positive) / West (negative)
    elevation: float = 0.0  # Meters above sea level


@dataclass(frozen=True)
class OrbitalElements:
    """Mean orbital elements at J2000 and their rates per Julian century."""
    a: Tuple[float, float]              # Semi-major axis (AU)
    e: Tuple[float, float]              # Eccentricity
    i: Tuple[float, float]              # Inclination (deg)
    mean_longitude: Tuple[float, float]  # (deg)
    perihelion: Tuple[float, float]     # Longitude of perihelion (deg)
    node: Tuple[float, float]           # Longitude of ascending node (deg)

    def at(self, T: float) -> Tuple[float, float, float, float, float, float]:
        return tuple(value + rate * T for value, rate in
                     (self.a, self.e, self.i, self.mean_longitude,
                      self.perihelion, self.node))


# Standish, Table 1 (1800 AD - 2050 AD)
PLANET_ELEMENTS: Dict[str, OrbitalElements] = {
    "mercury": OrbitalElements(
        a=(0.38709927, 0.00000037), e=(0.20563593, 0.00001906),
        i=(7.00497902, -0.00594749), mean_longitude=(252.25032350, 149472.67411175),
        perihelion=(77.45779628, 0.16047689), node=(48.33076593, -0.12534081)),
    "venus": OrbitalElements(
        a=(0.72333566, 0.00000390), e=(0.00677672, -0.00004107),
        i=(3.39467605, -0.00078890), mean_longitude=(181.97909950, 58517.81538729),
        perihelion=(131.60246718, 0.00268329), node=(76.67984255, -0.27769418)),
    "earth": OrbitalElements(
        a=(1.00000261, 0.00000562), e=(0.01671123, -0.00004392),
        i=(-0.00001531, -0.01294668), mean_longitude=(100.46457166, 35999.37244981),
        perihelion=(102.93768193, 0.32327364), node=(0.0, 0.0)),
    "mars": OrbitalElements(
        a=(1.52371034, 0.00001847), e=(0.09339410, 0.00007882),
        i=(1.84969142, -0.00813131), mean_longitude=(-4.55343205, 19140.30268499),
        perihelion=(-23.94362959, 0.44441088), node=(49.55953891, -0.29257343)),
    "jupiter": OrbitalElements(
        a=(5.20288700, -0.00011607), e=(0.04838624, -0.00013253),
        i=(1.30439695, -0.00183714), mean_longitude=(34.39644051, 3034.74612775),
        perihelion=(14.72847983, 0.21252668), node=(100.47390909, 0.20469106)),
    "saturn": OrbitalElements(
        a=(9.53667594, -0.00125060), e=(0.05386179, -0.00050991),
        i=(2.48599187, 0.00193609), mean_longitude=(49.95424423, 1222.49362201),
        perihelion=(92.59887831, -0.41897216), node=(113.66242448, -0.28867794)),
    "uranus": OrbitalElements(
        a=(19.18916464, -0.00196176), e=(0.04725744, -0.00004397),
        i=(0.77263783, -0.00242939), mean_longitude=(313.23810451, 428.48202785),
        perihelion=(170.95427630, 0.40805281), node=(74.01692503, 0.04240589)),
    "neptune": OrbitalElements(
        a=(30.06992276, 0.00026291), e=(0.00859048, 0.00005105),
        i=(1.77004347, 0.00035372), mean_longitude=(-55.12002969, 218.45945325),
        perihelion=(44.96476227, -0.32241464), node=(131.78422574, -0.00508664)),
}

PLANETS = ("mercury", "venus", "mars", "jupiter", "saturn", "uranus", "neptune")
BODIES = ("sun", "moon") + PLANETS


def solve_kepler(mean_anomaly: float, eccentricity: float,
                 tolerance: float = 1e-10, max_iter: int = 30) -> float:
    """
    Solve Kepler's equation M = E - e sin E by Newton iteration.

    Args:
        mean_anomaly: Mean anomaly in radians
        eccentricity: Orbital eccentricity (< 1)

    Returns:
        Eccentric anomaly in radians
    """
    E = mean_anomaly + eccentricity * math.sin(mean_anomaly)
    for _ in range(max_iter):
        dE = (E - eccentricity * math.sin(E) - mean_anomaly) / \
             (1 - eccentricity * math.cos(E))
        E -= dE
        if abs(dE) < tolerance:
            break
    return E


def _rotation_x(angle_rad: float) -> np.ndarray:
    c, s = math.cos(angle_rad), math.sin(angle_rad)
    return np.array([[1.0, 0.0, 0.0],
                     [0.0, c, -s],
                     [0.0, s, c]])


def _rotation_z(angle_rad: float) -> np.ndarray:
    c, s = math.cos(angle_rad), math.sin(angle_rad)
    return np.array([[c, -s, 0.0],
                     [s, c, 0.0],
                     [0.0, 0.0, 1.0]])


def heliocentric_ecliptic(elements: OrbitalElements, T: float) -> np.ndarray:
    """
    Heliocentric position in the J2000 ecliptic frame.

    Args:
        elements: Mean orbital elements
        T: Julian centuries since J2000.0

    Returns:
        [x, y, z] in AU
    """
    a, e, inc, L, varpi, node = elements.at(T)

    arg_peri = math.radians(varpi - node)
    M = math.radians(normalize360(L - varpi))
    if M > math.pi:
        M -= 2 * math.pi

    E = solve_kepler(M, e)
    orbital = np.array([
        a * (math.cos(E) - e),
        a * math.sqrt(1 - e * e) * math.sin(E),
        0.0,
    ])

    rotation = _rotation_z(math.radians(node)) @ _rotation_x(math.radians(inc)) \
        @ _rotation_z(arg_peri)
    return rotation @ orbital


def ecliptic_to_equatorial(vector: np.ndarray,
                           obliquity: float = OBLIQUITY_J2000) -> EquatorialPosition:
    """Convert an ecliptic-frame vector to RA/Dec."""
    x, y, z = _rotation_x(math.radians(obliquity)) @ vector
    ra = normalize360(math.degrees(math.atan2(y, x)))
    dec = math.degrees(math.atan2(z, math.hypot(x, y)))
    return EquatorialPosition(ra=ra, dec=dec)


class CelestialCalculator:
    """
    Calculator for celestial object positions.

    Implements astronomical algorithms for calculating positions
    of Sun, Moon, planets, and stars from any location on Earth.
    """

    def __init__(self, location: ObserverLocation):
        """
        Initialize calculator for observer location.

        Args:
            location: Observer's geographic location
        """
        self.location = location

    @staticmethod
    def julian_date(dt: datetime) -> float:
        """
        Calculate Julian Date from datetime.

        Args:
            dt: Datetime; naive values are taken as UTC

        Returns:
            Julian Date
        """
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            dt = dt.astimezone(timezone.utc)

        year = dt.year
        month = dt.month
        day = dt.day + dt.hour/24.0 + dt.minute/1440.0 + \
            (dt.second + dt.microsecond / 1e6)/86400.0

        if month <= 2:
            year -= 1
            month += 12

        A = int(year / 100)
        B = 2 - A + int(A / 4)

        jd = int(365.25 * (year + 4716)) + int(30.6001 * (month + 1)) + day + B - 1524.5

        return jd

    @classmethod
    def centuries_since_j2000(cls, dt: datetime) -> float:
        return (cls.julian_date(dt) - J2000) / 36525.0

    def local_sidereal_time(self, dt: datetime) -> float:
        """
        Calculate Local Sidereal Time.

        Args:
            dt: UTC datetime

        Returns:
            LST in degrees (0-360)
        """
        jd = self.julian_date(dt)

        # Julian centuries from J2000.0
        T = (jd - J2000) / 36525.0

        # Greenwich Mean Sidereal Time in degrees
        gmst = 280.46061837 + 360.98564736629 * (jd - J2000) + \
            0.000387933 * T**2 - T**3 / 38710000.0

        return normalize360(gmst + self.location.longitude)

    def equatorial_to_horizontal(self, eq: EquatorialPosition,
                                 dt: datetime) -> CelestialPosition:
        """
        Convert equatorial coordinates to horizontal (azimuth/altitude).

        Args:
            eq: Equatorial position (RA, Dec)
            dt: UTC datetime

        Returns:
            Horizontal position (azimuth, altitude)
        """
        lst = self.local_sidereal_time(dt)

        ha_rad = math.radians(lst - eq.ra)
        dec_rad = math.radians(eq.dec)
        lat_rad = math.radians(self.location.latitude)

        sin_alt = math.sin(dec_rad) * math.sin(lat_rad) + \
            math.cos(dec_rad) * math.cos(lat_rad) * math.cos(ha_rad)
        alt = math.degrees(math.asin(max(-1.0, min(1.0, sin_alt))))

        # atan2 form stays defined at the poles and the zenith
        az = math.degrees(math.atan2(
            -math.cos(dec_rad) * math.sin(ha_rad),
            math.sin(dec_rad) * math.cos(lat_rad) -
            math.cos(dec_rad) * math.sin(lat_rad) * math.cos(ha_rad)
        ))

        return CelestialPosition(altitude=alt, azimuth=normalize360(az))

    def sun_equatorial(self, dt: datetime) -> EquatorialPosition:
        """
        Calculate apparent Sun position.

        Args:
            dt: UTC datetime

        Returns:
            Equatorial position of the Sun
        """
        T = self.centuries_since_j2000(dt)

        # Mean longitude of the Sun
        L0 = normalize360(280.46646 + 36000.76983 * T + 0.0003032 * T**2)

        # Mean anomaly of the Sun
        M = 357.52911 + 35999.05029 * T - 0.0001537 * T**2
        M_rad = math.radians(normalize360(M))

        # Equation of center
        C = (1.914602 - 0.004817 * T - 0.000014 * T**2) * math.sin(M_rad) + \
            (0.019993 - 0.000101 * T) * math.sin(2 * M_rad) + \
            0.000289 * math.sin(3 * M_rad)

        sun_lon_rad = math.radians(L0 + C)

        # Obliquity of ecliptic
        epsilon_rad = math.radians(23.439291 - 0.0130042 * T)

        ra = math.degrees(math.atan2(
            math.cos(epsilon_rad) * math.sin(sun_lon_rad),
            math.cos(sun_lon_rad)
        ))
        dec = math.degrees(math.asin(
            math.sin(epsilon_rad) * math.sin(sun_lon_rad)
        ))

        return EquatorialPosition(ra=normalize360(ra), dec=dec)

    def moon_equatorial(self, dt: datetime) -> EquatorialPosition:
        """
        Calculate Moon position (main periodic terms only).

        Args:
            dt: UTC datetime

        Returns:
            Equatorial position of the Moon
        """
        T = self.centuries_since_j2000(dt)

        # Moon's mean longitude
        L = normalize360(218.3164477 + 481267.88123421 * T - 0.0015786 * T**2)

        # Moon's mean anomaly
        M_rad = math.radians(normalize360(134.9633964 + 477198.8675055 * T + 0.0087414 * T**2))

        # Moon's mean elongation
        D_rad = math.radians(normalize360(297.8501921 + 445267.1114034 * T - 0.0018819 * T**2))

        # Moon's argument of latitude
        F_rad = math.radians(normalize360(93.2720950 + 483202.0175233 * T - 0.0036539 * T**2))

        delta_lon = 6.289 * math.sin(M_rad) - 1.274 * math.sin(2*D_rad - M_rad) \
            + 0.658 * math.sin(2*D_rad) - 0.214 * math.sin(2*M_rad)
        beta = 5.128 * math.sin(F_rad)

        lambda_rad = math.radians(L + delta_lon)
        beta_rad = math.radians(beta)
        epsilon_rad = math.radians(23.439291 - 0.0130042 * T)

        ra = math.degrees(math.atan2(
            math.sin(lambda_rad) * math.cos(epsilon_rad) - math.tan(beta_rad) * math.sin(epsilon_rad),
            math.cos(lambda_rad)
        ))
        dec = math.degrees(math.asin(
            math.sin(beta_rad) * math.cos(epsilon_rad) +
            math.cos(beta_rad) * math.sin(epsilon_rad) * math.sin(lambda_rad)
        ))

        return EquatorialPosition(ra=normalize360(ra), dec=dec)

    def planet_equatorial(self, planet: str, dt: datetime) -> EquatorialPosition:
        """
        Calculate geocentric planet position from mean orbital elements.

        Args:
            planet: Planet id ("mercury" ... "neptune")
            dt: UTC datetime

        Returns:
            Equatorial position (J2000 frame)
        """
        T = self.centuries_since_j2000(dt)
        planet_vec = heliocentric_ecliptic(PLANET_ELEMENTS[planet], T)
        earth_vec = heliocentric_ecliptic(PLANET_ELEMENTS["earth"], T)
        return ecliptic_to_equatorial(planet_vec - earth_vec)

    def body_equatorial(self, body: str, dt: datetime) -> EquatorialPosition:
        """
        Equatorial position of a named body.

        Raises:
            KeyError: Unknown body id
        """
        body = body.lower()
        if body == "sun":
            return self.sun_equatorial(dt)
        if body == "moon":
            return self.moon_equatorial(dt)
        if body not in PLANETS:
            raise KeyError(f"Unknown body: {body}")
        return self.planet_equatorial(body, dt)

    def position_of(self, target: Union[str, EquatorialPosition],
                    dt: datetime) -> CelestialPosition:
        """
        Horizontal position of a body id or fixed RA/Dec.

        Args:
            target: Body id or EquatorialPosition
            dt: UTC datetime

        Returns:
            Horizontal position
        """
        if isinstance(target, EquatorialPosition):
            eq = target
        else:
            eq = self.body_equatorial(target, dt)
        return self.equatorial_to_horizontal(eq, dt)


def position_of(target: Union[str, EquatorialPosition], when: datetime,
                latitude: float, longitude: float) -> CelestialPosition:
    """
    Horizontal position of a body or RA/Dec for an observer.

    Pure function of its inputs.

    Args:
        target: Body id ("sun", "moon", "mars", ...) or EquatorialPosition
        when: Observation time (naive values are UTC)
        latitude: Observer latitude (degrees North)
        longitude: Observer longitude (degrees East)

    Returns:
        CelestialPosition with azimuth clockwise from North
    """
    calculator = CelestialCalculator(ObserverLocation(latitude=latitude, longitude=longitude))
    return calculator.position_of(target, when)


def create_calculator(latitude: float, longitude: float,
                      elevation: float = 0.0) -> CelestialCalculator:
    """
    Create a celestial calculator for a location.

    Args:
        latitude: Degrees North (positive) / South (negative)
        longitude: Degrees East (positive) / West (negative)
        elevation: Meters above sea level

    Returns:
        CelestialCalculator instance
    """
    location = ObserverLocation(
        latitude=latitude,
        longitude=longitude,
        elevation=elevation
    )
    return CelestialCalculator(location)
