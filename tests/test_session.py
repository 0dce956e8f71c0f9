"""Tests for the live AR session: wiring, fallback and teardown."""

import threading
import time
from unittest.mock import MagicMock

import pytest

from skyar.config import Config
from skyar.context import DEFAULT_LOCATION, LocationStore, TimeContext
from skyar.ephemeris import CelestialPosition, ObserverLocation
from skyar.orientation import OrientationEstimator
from skyar.projection import CameraFacing
from skyar.scene import SceneComposer, SceneOptions
from skyar.session import ARSession, create_session, resolve_location
from skyar.sources import CallbackSource


def wait_for(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def composer(table_provider):
    provider = table_provider({
        "sun": CelestialPosition(altitude=20.0, azimuth=90.0),
        "moon": CelestialPosition(altitude=-30.0, azimuth=270.0),
    })
    return SceneComposer(provider=provider, planets=[], constellations=[])


@pytest.fixture
def session(composer, observer, fixed_time):
    return ARSession(
        composer,
        sources=[CallbackSource()],
        location=observer,
        time_context=TimeContext(clock=lambda: fixed_time),
        refresh_interval=60.0,
    )


def test_start_subscribes_and_refreshes(session, fixed_time):
    source = session.sources[0]
    with session:
        assert session.is_running
        assert source.subscriber_count == 1
        assert session.composer.last_refresh == fixed_time
    assert not session.is_running
    assert source.subscriber_count == 0


def test_failed_start_releases_sources(observer):
    composer = MagicMock(spec=SceneComposer)
    composer.refresh.side_effect = RuntimeError("clock unavailable")
    source = CallbackSource()
    session = ARSession(composer, sources=[source], location=observer)

    with pytest.raises(RuntimeError):
        with session:
            pass

    assert source.subscriber_count == 0
    assert not session.is_running


def test_unusable_positions_do_not_break_start(table_provider, observer):
    composer = SceneComposer(provider=table_provider({"sun": object(), "moon": object()}),
                             planets=[], constellations=[])
    source = CallbackSource()
    with ARSession(composer, sources=[source], location=observer) as session:
        assert source.subscriber_count == 1
        assert session.frame(100, 100).objects == []
    assert source.subscriber_count == 0


def test_start_and_stop_are_idempotent(session):
    session.start()
    session.start()
    assert session.sources[0].subscriber_count == 1
    session.stop()
    session.stop()
    assert session.sources[0].subscriber_count == 0


def test_events_drive_the_view(session):
    source = session.sources[0]
    with session:
        source.push(heading=90.0, pitch=90.0, roll=0.0, absolute=True)
        assert session.current_orientation() == (90.0, 90.0, False)

        frame = session.frame(1000, 1000)
        sun = frame.find("sun")
        assert sun.visible
        assert sun.screen.x == pytest.approx(500.0)


def test_events_after_stop_are_not_delivered(session):
    source = session.sources[0]
    with session:
        pass
    source.push(heading=90.0, pitch=90.0, roll=0.0, absolute=True)
    assert session.estimator.reading is None


def test_manual_fallback_without_sensor_events(session):
    with session:
        assert session.current_orientation() == (0.0, 90.0, True)
        assert session.drag(-50, 100)
        heading, pitch, manual = session.current_orientation()
        assert manual
        assert heading == pytest.approx(10.0)
        assert pitch == pytest.approx(110.0)


def test_drag_ignored_while_sensors_active(session):
    with session:
        session.sources[0].push(heading=45.0, pitch=80.0, roll=0.0, absolute=True)
        assert session.drag(100, 100) is False
        assert session.current_orientation() == (45.0, 80.0, False)


def test_denied_permission_falls_back_to_manual(composer, observer):
    session = ARSession(composer, estimator=OrientationEstimator(requires_permission=True),
                        sources=[CallbackSource()], location=observer)
    with session:
        session.request_permission(lambda: False).join(timeout=1.0)
        session.sources[0].push(heading=45.0, pitch=80.0, roll=0.0, absolute=True)
        assert session.current_orientation() == (0.0, 90.0, True)


def test_granted_permission_enables_sensors(composer, observer):
    session = ARSession(composer, estimator=OrientationEstimator(requires_permission=True),
                        sources=[CallbackSource()], location=observer)
    with session:
        session.request_permission(lambda: True).join(timeout=1.0)
        session.sources[0].push(heading=45.0, pitch=80.0, roll=0.0, absolute=True)
        assert session.current_orientation() == (45.0, 80.0, False)


def test_unresolved_permission_does_not_block_stop(composer, observer):
    release = threading.Event()
    session = ARSession(composer, estimator=OrientationEstimator(requires_permission=True),
                        sources=[CallbackSource()], location=observer)
    session.start()
    thread = session.request_permission(lambda: release.wait(10.0))

    started = time.time()
    session.stop()
    assert time.time() - started < 1.5
    assert thread.daemon
    assert session.current_orientation()[2] is True

    release.set()
    thread.join(timeout=1.0)


def test_refresh_timer(composer, observer):
    session = ARSession(composer, location=observer, refresh_interval=0.01)
    with session:
        first = session.composer.last_refresh
        assert wait_for(lambda: session.composer.last_refresh != first)


def test_set_location_refreshes(session):
    with session:
        calls = len(session.composer.provider.calls)
        session.set_location(ObserverLocation(latitude=1.0, longitude=2.0))
        assert session.location == ObserverLocation(latitude=1.0, longitude=2.0)
        assert len(session.composer.provider.calls) > calls


def test_toggle_facing(session):
    assert session.facing is CameraFacing.ENVIRONMENT
    assert session.toggle_facing() is CameraFacing.USER
    assert session.frame(100, 100).facing is CameraFacing.USER
    assert session.toggle_facing() is CameraFacing.ENVIRONMENT


def test_resolve_location(tmp_path):
    config = Config()
    store = LocationStore(tmp_path / "location.json")
    assert resolve_location(config, store) == DEFAULT_LOCATION

    store.save(ObserverLocation(latitude=48.85, longitude=2.35))
    assert resolve_location(config, store) == ObserverLocation(latitude=48.85, longitude=2.35)

    config.observer.latitude = 10.0
    config.observer.longitude = 20.0
    assert resolve_location(config, store) == ObserverLocation(latitude=10.0, longitude=20.0)


def test_create_session_from_config(tmp_path):
    config = Config()
    config.orientation.smoothing_factor = 0.5
    config.projection.hfov = 70.0
    config.projection.facing = "user"
    config.scene.show_satellites = False
    config.scene.time_offset_hours = 2.0
    source = CallbackSource()

    session = create_session(config, sources=[source],
                             store=LocationStore(tmp_path / "location.json"))

    assert isinstance(session, ARSession)
    assert session.estimator.smoothing_factor == 0.5
    assert session.composer.engine.hfov == 70.0
    assert session.composer.options == SceneOptions(show_satellites=False)
    assert session.facing is CameraFacing.USER
    assert session.time_context.offset_hours == 2.0
    assert session.location == DEFAULT_LOCATION
    assert session.sources == [source]
    assert not session.is_running
