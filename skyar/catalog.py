"""
Sky catalog: planets, constellations and horizon markers.

Star coordinates are J2000, RA in hours as commonly tabulated.
"""

from dataclasses import dataclass, field
from typing import List, Tuple, Union

from .ephemeris import EquatorialPosition


@dataclass(frozen=True)
class Planet:
    id: str
    name: str
    symbol: str
    visible_to_naked_eye: bool = True
    color: str = ""             # Marker colour, CSS hsl()
    size: float = 12.0          # Marker diameter in pixels
    distance: str = ""          # Typical distance from Earth, for display
    facts: Tuple[str, ...] = ()
    orbit_speed: float = 0.0    # Relative orbital speed


@dataclass(frozen=True)
class Star:
    ra_hours: float
    dec: float
    brightness: float           # 0-1, for marker size
    name: str = ""

    @property
    def equatorial(self) -> EquatorialPosition:
        return EquatorialPosition.from_hours(self.ra_hours, self.dec)


@dataclass(frozen=True)
class Constellation:
    id: str
    name: str
    latin_name: str
    ra_hours: float             # Label anchor
    dec: float
    stars: Tuple[Star, ...]
    lines: Tuple[Tuple[int, int], ...] = field(default_factory=tuple)
    mythology: str = ""

    @property
    def center(self) -> EquatorialPosition:
        return EquatorialPosition.from_hours(self.ra_hours, self.dec)


@dataclass(frozen=True)
class CardinalDirection:
    label: str
    azimuth: float


PLANETS: List[Planet] = [
    Planet("mercury", "Mercury", "☿", color="hsl(35, 30%, 60%)", size=12,
           distance="77 million km", orbit_speed=4.7,
           facts=("Smallest planet in our solar system",
                  "A day on Mercury lasts 59 Earth days")),
    Planet("venus", "Venus", "♀", color="hsl(45, 80%, 75%)", size=18,
           distance="38 million km", orbit_speed=3.5,
           facts=("Hottest planet in our solar system (465°C)",
                  "Rotates backwards compared to most planets")),
    Planet("mars", "Mars", "♂", color="hsl(15, 85%, 50%)", size=16,
           distance="225 million km", orbit_speed=2.4,
           facts=("Home to the largest volcano: Olympus Mons",
                  "Has two small moons: Phobos and Deimos")),
    Planet("jupiter", "Jupiter", "♃", color="hsl(25, 70%, 55%)", size=32,
           distance="628 million km", orbit_speed=1.3,
           facts=("Largest planet - could fit 1,300 Earths inside",
                  "The Great Red Spot is a storm lasting 400+ years")),
    Planet("saturn", "Saturn", "♄", color="hsl(45, 60%, 70%)", size=28,
           distance="1.2 billion km", orbit_speed=0.97,
           facts=("Famous for its stunning ring system",
                  "Could float in water (if you had a big enough bathtub)")),
    Planet("uranus", "Uranus", "♅", visible_to_naked_eye=False,
           color="hsl(180, 50%, 65%)", size=22, distance="2.7 billion km", orbit_speed=0.68,
           facts=("Rotates on its side like a rolling ball",
                  "Has 27 known moons named after Shakespeare characters")),
    Planet("neptune", "Neptune", "♆", visible_to_naked_eye=False,
           color="hsl(220, 70%, 55%)", size=20, distance="4.3 billion km", orbit_speed=0.54,
           facts=("Strongest winds in the solar system (2,100 km/h)",
                  "Takes 165 Earth years to orbit the Sun")),
]

SUN = Planet("sun", "Sun", "☉", color="hsl(50, 100%, 60%)", size=36,
             distance="150 million km")
MOON = Planet("moon", "Moon", "☾", color="hsl(0, 0%, 85%)", size=30,
              distance="384,400 km")


CONSTELLATIONS: List[Constellation] = [
    Constellation(
        id="orion",
        name="Orion",
        latin_name="Orion",
        mythology="The Hunter - In Greek mythology, Orion was a giant huntsman placed "
                  "among the stars by Zeus.",
        ra_hours=5.5,
        dec=5.0,
        stars=(
            Star(5.92, 7.41, 0.9, "Betelgeuse"),
            Star(5.42, 6.35, 0.7, "Bellatrix"),
            Star(5.61, -1.2, 0.6, "Alnilam"),
            Star(5.54, -1.9, 0.6, "Mintaka"),
            Star(5.68, -1.0, 0.6, "Alnitak"),
            Star(5.25, -8.2, 0.85, "Rigel"),
            Star(5.79, -9.6, 0.7, "Saiph"),
        ),
        lines=((0, 1), (0, 2), (1, 4), (2, 3), (3, 4), (2, 5), (4, 6)),
    ),
    Constellation(
        id="ursa-major",
        name="Big Dipper",
        latin_name="Ursa Major",
        mythology="The Great Bear - Zeus transformed the nymph Callisto into a bear to "
                  "protect her from Hera's jealousy.",
        ra_hours=11.0,
        dec=50.0,
        stars=(
            Star(11.06, 61.75, 0.8, "Dubhe"),
            Star(11.03, 56.38, 0.75, "Merak"),
            Star(11.89, 53.69, 0.7, "Phecda"),
            Star(12.25, 57.03, 0.7, "Megrez"),
            Star(12.9, 55.96, 0.65, "Alioth"),
            Star(13.4, 54.93, 0.7, "Mizar"),
            Star(13.79, 49.31, 0.6, "Alkaid"),
        ),
        lines=((0, 1), (1, 2), (2, 3), (3, 4), (4, 5), (5, 6)),
    ),
    Constellation(
        id="cassiopeia",
        name="Cassiopeia",
        latin_name="Cassiopeia",
        mythology="The Queen - A vain queen who boasted about her beauty. Poseidon placed "
                  "her in the sky.",
        ra_hours=1.0,
        dec=60.0,
        stars=(
            Star(0.15, 59.15, 0.7, "Caph"),
            Star(0.67, 56.54, 0.75, "Schedar"),
            Star(0.94, 60.72, 0.8, "Gamma Cas"),
            Star(1.43, 60.18, 0.7, "Ruchbah"),
            Star(1.9, 63.67, 0.65, "Segin"),
        ),
        lines=((0, 1), (1, 2), (2, 3), (3, 4)),
    ),
]


CARDINAL_DIRECTIONS: List[CardinalDirection] = [
    CardinalDirection("N", 0.0),
    CardinalDirection("NE", 45.0),
    CardinalDirection("E", 90.0),
    CardinalDirection("SE", 135.0),
    CardinalDirection("S", 180.0),
    CardinalDirection("SW", 225.0),
    CardinalDirection("W", 270.0),
    CardinalDirection("NW", 315.0),
]


def find_planet(planet_id: str) -> Planet:
    """
    Raises:
        KeyError: Unknown id
    """
    planet_id = planet_id.lower()
    for planet in PLANETS + [SUN, MOON]:
        if planet.id == planet_id:
            return planet
    raise KeyError(f"Unknown planet: {planet_id}")


def find_constellation(constellation_id: str) -> Constellation:
    """
    Raises:
        KeyError: Unknown id
    """
    constellation_id = constellation_id.lower()
    for constellation in CONSTELLATIONS:
        if constellation.id == constellation_id:
            return constellation
    raise KeyError(f"Unknown constellation: {constellation_id}")


def find_object(object_id: str) -> Union[Planet, Constellation]:
    """
    Planet, Sun, Moon or constellation by id.

    Raises:
        KeyError: Unknown id
    """
    try:
        return find_planet(object_id)
    except KeyError:
        pass
    try:
        return find_constellation(object_id)
    except KeyError:
        raise KeyError(f"Unknown object: {object_id.lower()}") from None
