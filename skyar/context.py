"""
Time and location context for the overlay.

- TimeContext: current UTC time plus a planning offset in hours
- LocationStore: last-known observer location persisted as JSON
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from .ephemeris import ObserverLocation

logger = logging.getLogger(__name__)


# New York City
DEFAULT_LOCATION = ObserverLocation(latitude=40.7128, longitude=-74.0060)

DEFAULT_LOCATION_FILE = Path.home() / ".skyar" / "location.json"


class TimeContext:
    """UTC clock with a planning-mode offset."""

    def __init__(self, offset_hours: float = 0.0,
                 clock: Optional[Callable[[], datetime]] = None):
        self.time_offset = timedelta(hours=offset_hours)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def offset_hours(self) -> float:
        return self.time_offset.total_seconds() / 3600

    def set_time_offset(self, hours: float):
        """Set time offset for planning mode."""
        self.time_offset = timedelta(hours=hours)

    def shift(self, hours: float):
        self.time_offset += timedelta(hours=hours)

    def now(self) -> datetime:
        """Get current time with offset applied."""
        return self._clock() + self.time_offset


class LocationStore:
    """Last-known observer location in a small JSON file."""

    def __init__(self, path: Path = DEFAULT_LOCATION_FILE,
                 default: ObserverLocation = DEFAULT_LOCATION):
        self.path = Path(path)
        self.default = default

    def load(self) -> ObserverLocation:
        """
        Load the saved location.

        Returns:
            Saved location, or the default when missing or unreadable
        """
        if not self.path.exists():
            return self.default

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            return ObserverLocation(
                latitude=float(data["latitude"]),
                longitude=float(data["longitude"]),
                elevation=float(data.get("elevation", 0.0)),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable location file {self.path}: {e}")
            return self.default

    def save(self, location: ObserverLocation):
        """Persist a location, creating the parent directory if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump({
                "latitude": location.latitude,
                "longitude": location.longitude,
                "elevation": location.elevation,
            }, f, indent=2)
        logger.info(f"Saved location {location.latitude:.4f}, {location.longitude:.4f}")
