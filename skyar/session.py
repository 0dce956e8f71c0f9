#!/usr/bin/env python3
"""
AR session: wires orientation sources, the estimator and the scene composer.

The session owns every resource it acquires (source subscriptions, refresh
timer thread) and releases them in stop(), so it is used as a context manager:

    with ARSession(composer, sources=[source]) as session:
        frame = session.frame(1280, 720)
"""

import logging
import threading
from typing import Callable, List, Optional, Sequence, Tuple

from .context import DEFAULT_LOCATION, LocationStore, TimeContext
from .ephemeris import ObserverLocation
from .orientation import ManualOrientation, OrientationEstimator
from .projection import CameraFacing, ProjectionEngine
from .satellites import SatelliteTracker
from .scene import SceneComposer, SceneFrame, SceneOptions
from .sources import EventSource, Unsubscribe

logger = logging.getLogger(__name__)


class ARSession:
    """
    Live overlay session.

    Astronomical positions are refreshed on a timer thread every
    `refresh_interval` seconds; frame() re-projects them with the latest
    orientation on every call.
    """

    def __init__(self, composer: SceneComposer,
                 estimator: Optional[OrientationEstimator] = None,
                 sources: Sequence[EventSource] = (),
                 location: ObserverLocation = DEFAULT_LOCATION,
                 time_context: Optional[TimeContext] = None,
                 manual: Optional[ManualOrientation] = None,
                 facing: CameraFacing = CameraFacing.ENVIRONMENT,
                 refresh_interval: float = 1.0):
        self.composer = composer
        self.estimator = estimator or OrientationEstimator()
        self.sources = list(sources)
        self.time_context = time_context or TimeContext()
        self.manual = manual or ManualOrientation()
        self.facing = facing
        self.refresh_interval = refresh_interval

        self._location = location
        self._location_lock = threading.Lock()
        self._unsubscribers: List[Unsubscribe] = []
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._running = False

    def __enter__(self) -> "ARSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def location(self) -> ObserverLocation:
        with self._location_lock:
            return self._location

    def set_location(self, location: ObserverLocation):
        """Change observer location and recompute positions immediately."""
        with self._location_lock:
            self._location = location
        self.refresh()

    def start(self):
        """Subscribe sources and start the refresh timer."""
        if self._running:
            return

        try:
            for source in self.sources:
                self._unsubscribers.append(source.subscribe(self.estimator.submit))
                logger.debug(f"Subscribed to orientation source '{source.name}'")

            self.refresh()
        except Exception:
            logger.error("AR session failed to start, releasing orientation sources")
            self._release_sources()
            raise

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._refresh_loop, name="skyar-refresh",
                                        daemon=True)
        self._thread.start()
        self._running = True
        logger.info(f"AR session started with {len(self.sources)} orientation source(s)")

    def stop(self):
        """Release subscriptions and the timer. Safe to call twice."""
        if not self._running:
            return

        self._release_sources()

        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=max(1.0, self.refresh_interval))
            self._thread = None

        self._running = False
        logger.info("AR session stopped")

    def _release_sources(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def refresh(self) -> int:
        """Recompute celestial positions for the current time and location."""
        return self.composer.refresh(self.time_context.now(), self.location)

    def _refresh_loop(self):
        while not self._stop_event.wait(self.refresh_interval):
            try:
                self.refresh()
            except Exception as e:
                logger.error(f"Position refresh failed: {e}")

    def request_permission(self, requester: Callable[[], bool]) -> threading.Thread:
        """
        Ask for sensor access without blocking.

        The request runs on a daemon thread that is never joined, so a
        request that never resolves cannot hold up stop().

        Returns:
            The thread running the request
        """
        thread = threading.Thread(target=self.estimator.request_permission,
                                  args=(requester,), name="skyar-permission", daemon=True)
        thread.start()
        return thread

    @property
    def uses_sensors(self) -> bool:
        """True when the estimator has a usable reading."""
        return self.estimator.is_supported and self.estimator.reading is not None

    def current_orientation(self) -> Tuple[float, float, bool]:
        """
        Heading and pitch for the next frame.

        Returns:
            (heading, pitch, is_manual)
        """
        if self.uses_sensors:
            heading, pitch = self.estimator.heading_pitch()
            return heading, pitch, False
        heading, pitch = self.manual.heading_pitch()
        return heading, pitch, True

    def drag(self, dx: float, dy: float) -> bool:
        """
        Pointer drag; ignored while sensors drive the view.

        Returns:
            True if the manual orientation changed
        """
        if self.uses_sensors:
            return False
        self.manual.drag(dx, dy)
        return True

    def toggle_facing(self) -> CameraFacing:
        self.facing = (CameraFacing.USER if self.facing is CameraFacing.ENVIRONMENT
                       else CameraFacing.ENVIRONMENT)
        return self.facing

    def frame(self, width: float, height: float) -> SceneFrame:
        """Compose one frame with the latest orientation."""
        heading, pitch, _ = self.current_orientation()
        return self.composer.compose(heading, pitch, width, height, self.facing)


def create_composer(config) -> SceneComposer:
    """
    Build a scene composer from a Config.

    Args:
        config: skyar.config.Config

    Returns:
        SceneComposer with the configured engine, layers and satellite
    """
    options = SceneOptions(
        show_planets=config.scene.show_planets,
        show_sun_moon=config.scene.show_sun_moon,
        show_constellations=config.scene.show_constellations,
        show_satellites=config.scene.show_satellites,
        min_altitude=config.scene.min_altitude,
        horizon_step=config.scene.horizon_step_deg,
    )
    satellites = [SatelliteTracker(config.satellite.name,
                                   config.satellite.tle_line1,
                                   config.satellite.tle_line2)]
    engine = ProjectionEngine(hfov=config.projection.hfov, margin=config.projection.margin)
    return SceneComposer(engine=engine, satellites=satellites, options=options)


def resolve_location(config, store=None) -> ObserverLocation:
    """Configured location if set, else the last-known one."""
    if config.observer.latitude is not None and config.observer.longitude is not None:
        return ObserverLocation(latitude=config.observer.latitude,
                                longitude=config.observer.longitude,
                                elevation=config.observer.elevation)
    if store is None:
        store = (LocationStore(config.observer.location_file)
                 if config.observer.location_file else LocationStore())
    return store.load()


def create_session(config, sources: Sequence[EventSource] = (),
                   store=None) -> ARSession:
    """
    Build an ARSession from a Config.

    Args:
        config: skyar.config.Config
        sources: Orientation event sources to subscribe
        store: LocationStore for the last-known location

    Returns:
        ARSession (not started)
    """
    estimator = OrientationEstimator(
        smoothing_factor=config.orientation.smoothing_factor,
        requires_permission=config.orientation.requires_permission,
    )
    return ARSession(
        composer=create_composer(config),
        estimator=estimator,
        sources=sources,
        location=resolve_location(config, store),
        time_context=TimeContext(offset_hours=config.scene.time_offset_hours),
        manual=ManualOrientation(sensitivity=config.orientation.manual_sensitivity),
        facing=CameraFacing(config.projection.facing),
        refresh_interval=config.scene.refresh_interval_s,
    )
