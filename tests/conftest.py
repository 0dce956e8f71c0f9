"""Shared fixtures for the skyar test suite."""

from datetime import datetime, timezone

import pytest

from skyar.ephemeris import CelestialPosition, EquatorialPosition, ObserverLocation


@pytest.fixture
def observer():
    return ObserverLocation(latitude=34.0522, longitude=-118.2437)


@pytest.fixture
def fixed_time():
    return datetime(2024, 1, 29, 13, 30, tzinfo=timezone.utc)


class TableProvider:
    """position_of stand-in: body ids from a table, RA/Dec from a default."""

    def __init__(self, bodies=None, default=CelestialPosition(altitude=30.0, azimuth=0.0)):
        self.bodies = dict(bodies or {})
        self.default = default
        self.calls = []

    def __call__(self, target, when, latitude, longitude):
        self.calls.append(target)
        if isinstance(target, EquatorialPosition):
            return self.default
        value = self.bodies[target]
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def table_provider():
    return TableProvider
