"""
Configuration management for the sky overlay.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional
import yaml

from .satellites import ISS_NAME, ISS_TLE


@dataclass
class ObserverConfig:
    """Observer location fallback and persistence."""

    latitude: Optional[float] = None    # None: use last-known location
    longitude: Optional[float] = None
    elevation: float = 0.0
    location_file: Optional[str] = None  # Default ~/.skyar/location.json


@dataclass
class OrientationConfig:
    """Orientation estimator and manual fallback."""

    smoothing_factor: float = 0.3
    requires_permission: bool = False
    manual_sensitivity: float = 0.2  # Degrees per pixel of drag


@dataclass
class ProjectionConfig:
    """Projection and frustum culling."""

    hfov: float = 60.0
    margin: float = 15.0
    facing: Literal["environment", "user"] = "environment"


@dataclass
class SceneConfig:
    """Scene composition and refresh."""

    show_planets: bool = True
    show_sun_moon: bool = True
    show_constellations: bool = True
    show_satellites: bool = True
    min_altitude: float = -10.0
    refresh_interval_s: float = 1.0
    horizon_step_deg: float = 10.0
    time_offset_hours: float = 0.0


@dataclass
class SatelliteConfig:
    """Two-line element set of the tracked satellite."""

    name: str = ISS_NAME
    tle_line1: str = ISS_TLE[0]
    tle_line2: str = ISS_TLE[1]


@dataclass
class MavlinkConfig:
    """MAVLink orientation source."""

    port: str = "COM6"
    baudrate: int = 115200
    rate_hz: int = 50
    roll_offset: float = 0.0
    pitch_offset: float = 0.0
    yaw_offset: float = 0.0


@dataclass
class Config:
    """Main configuration container."""

    observer: ObserverConfig = field(default_factory=ObserverConfig)
    orientation: OrientationConfig = field(default_factory=OrientationConfig)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)
    scene: SceneConfig = field(default_factory=SceneConfig)
    satellite: SatelliteConfig = field(default_factory=SatelliteConfig)
    mavlink: MavlinkConfig = field(default_factory=MavlinkConfig)

    verbose: bool = False

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        if "observer" in data:
            config.observer = ObserverConfig(**data["observer"])
        if "orientation" in data:
            config.orientation = OrientationConfig(**data["orientation"])
        if "projection" in data:
            config.projection = ProjectionConfig(**data["projection"])
        if "scene" in data:
            config.scene = SceneConfig(**data["scene"])
        if "satellite" in data:
            config.satellite = SatelliteConfig(**data["satellite"])
        if "mavlink" in data:
            config.mavlink = MavlinkConfig(**data["mavlink"])

        config.verbose = data.get("verbose", False)

        return config

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""
        import dataclasses

        data = dataclasses.asdict(self)
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
