"""
Command-line interface for the sky overlay.
"""

import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional
import logging

import click

from .config import Config
from .context import LocationStore, TimeContext
from .ephemeris import ObserverLocation, position_of
from .catalog import CONSTELLATIONS, MOON, PLANETS, SUN, Planet, find_object, find_planet
from .events import SKY_EVENTS, upcoming_events
from .mavlink_source import MavlinkAttitudeSource, MountingOffsets
from .projection import CameraFacing, ProjectionEngine
from .satellites import SatelliteTracker
from .scene import compass_readout
from .session import create_composer, create_session, resolve_location


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


FACING_CHOICE = click.Choice([f.value for f in CameraFacing])


def _load_config(config: Optional[Path], verbose: bool) -> Config:
    cfg = Config.from_yaml(config) if config else Config()
    if verbose or cfg.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    return cfg


def _observer(cfg: Config, lat: Optional[float], lon: Optional[float]) -> ObserverLocation:
    if lat is not None and lon is not None:
        return ObserverLocation(latitude=lat, longitude=lon)
    return resolve_location(cfg)


def config_option(f):
    return click.option(
        "-c", "--config",
        type=click.Path(exists=True, path_type=Path),
        help="Configuration YAML file"
    )(f)


def location_options(f):
    f = click.option("--lon", type=float, default=None,
                     help="Observer longitude (degrees East, negative for West)")(f)
    f = click.option("--lat", type=float, default=None,
                     help="Observer latitude (degrees North)")(f)
    return f


def verbose_option(f):
    return click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")(f)


@click.group()
@click.version_option(version="0.1.0")
def main():
    """Sky AR - celestial overlay projection for a live camera feed."""
    pass


@main.command()
@config_option
@location_options
@click.option("--offset-hours", type=float, default=None,
              help="Time offset from now in hours (planning mode)")
@click.option("--body", type=str, default=None, help="Only this body (e.g. mars)")
@verbose_option
def positions(config: Optional[Path], lat: Optional[float], lon: Optional[float],
              offset_hours: Optional[float], body: Optional[str], verbose: bool):
    """
    Print altitude/azimuth of the catalog for the observer.
    """
    cfg = _load_config(config, verbose)
    location = _observer(cfg, lat, lon)
    clock = TimeContext(offset_hours if offset_hours is not None else cfg.scene.time_offset_hours)
    when = clock.now()

    click.echo(f"Time: {when.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    click.echo(f"Location: {location.latitude:.4f}, {location.longitude:.4f}")
    click.echo()

    if body:
        try:
            bodies = [find_planet(body)]
        except KeyError:
            click.echo(click.style(f"✗ Unknown body: {body}", fg="red"))
            sys.exit(1)
    else:
        bodies = [SUN, MOON] + PLANETS

    for planet in bodies:
        pos = position_of(planet.id, when, location.latitude, location.longitude)
        marker = "above" if pos.above_horizon else "below"
        click.echo(f"  {planet.name:<10} Alt {pos.altitude:7.2f}°  Az {pos.azimuth:7.2f}°  ({marker})")

    if body:
        return

    click.echo()
    for constellation in CONSTELLATIONS:
        pos = position_of(constellation.center, when, location.latitude, location.longitude)
        click.echo(f"  {constellation.name:<10} Alt {pos.altitude:7.2f}°  Az {pos.azimuth:7.2f}°")

    tracker = SatelliteTracker(cfg.satellite.name, cfg.satellite.tle_line1, cfg.satellite.tle_line2)
    sat = tracker.position_at(when, location.latitude, location.longitude)
    click.echo()
    if sat is None:
        click.echo(f"  {tracker.name}: unavailable")
    else:
        click.echo(f"  {tracker.name}: Alt {sat.altitude:7.2f}°  Az {sat.azimuth:7.2f}°")


@main.command()
@click.option("--alt", "altitude", type=float, required=True, help="Target altitude (degrees)")
@click.option("--az", "azimuth", type=float, required=True, help="Target azimuth (degrees)")
@click.option("--heading", type=float, default=None, help="Device heading (default 0)")
@click.option("--pitch", type=float, default=None, help="Device pitch (default 90 = horizon)")
@click.option("--width", type=int, default=1000, help="Viewport width")
@click.option("--height", type=int, default=1000, help="Viewport height")
@click.option("--facing", type=FACING_CHOICE, default="environment", help="Active camera")
@click.option("--hfov", type=float, default=60.0, help="Horizontal FOV (degrees)")
def project(altitude: float, azimuth: float, heading: Optional[float], pitch: Optional[float],
            width: int, height: int, facing: str, hfov: float):
    """
    Project one altitude/azimuth onto the screen.
    """
    engine = ProjectionEngine(hfov=hfov)
    point = engine.project(altitude, azimuth, heading, pitch, width, height, CameraFacing(facing))
    click.echo(f"x={point.x:.1f} y={point.y:.1f} visible={'yes' if point.visible else 'no'}")


@main.command()
@config_option
@location_options
@click.option("--heading", type=float, default=None, help="Device heading (default 0)")
@click.option("--pitch", type=float, default=None, help="Device pitch (default 90 = horizon)")
@click.option("--width", type=int, default=1280, help="Viewport width")
@click.option("--height", type=int, default=720, help="Viewport height")
@click.option("--facing", type=FACING_CHOICE, default=None, help="Active camera")
@click.option("--offset-hours", type=float, default=None, help="Time offset from now in hours")
@click.option("--all", "show_all", is_flag=True, help="Also list objects outside the view")
@verbose_option
def scene(config: Optional[Path], lat: Optional[float], lon: Optional[float],
          heading: Optional[float], pitch: Optional[float], width: int, height: int,
          facing: Optional[str], offset_hours: Optional[float], show_all: bool, verbose: bool):
    """
    Compose one frame for a given orientation and list what is on screen.
    """
    cfg = _load_config(config, verbose)
    location = _observer(cfg, lat, lon)
    clock = TimeContext(offset_hours if offset_hours is not None else cfg.scene.time_offset_hours)
    camera = CameraFacing(facing or cfg.projection.facing)

    composer = create_composer(cfg)
    composer.refresh(clock.now(), location)
    frame = composer.compose(heading, pitch, width, height, camera)

    value, label = compass_readout(frame.heading, camera)
    click.echo(f"Heading {value}° {label}  Pitch {frame.pitch:.1f}°  Look Alt {frame.pitch - 90:.1f}°")

    objects = frame.objects if show_all else frame.visible_objects
    if not objects:
        click.echo("Nothing in view")
        return

    for obj in objects:
        x, y = obj.screen.as_int()
        flag = "" if obj.visible else "  (out of view)"
        click.echo(f"  {obj.kind.value:<13} {obj.name:<12} "
                   f"Alt {obj.position.altitude:6.1f}° Az {obj.position.azimuth:6.1f}° "
                   f"-> ({x}, {y}){flag}")


@main.command()
@click.argument("object_id")
@config_option
@location_options
@click.option("--offset-hours", type=float, default=None, help="Time offset from now in hours")
@verbose_option
def info(object_id: str, config: Optional[Path], lat: Optional[float], lon: Optional[float],
         offset_hours: Optional[float], verbose: bool):
    """
    Describe a planet, the Sun, the Moon or a constellation.
    """
    try:
        obj = find_object(object_id)
    except KeyError:
        click.echo(click.style(f"✗ Unknown object: {object_id}", fg="red"))
        sys.exit(1)

    cfg = _load_config(config, verbose)
    location = _observer(cfg, lat, lon)
    clock = TimeContext(offset_hours if offset_hours is not None else cfg.scene.time_offset_hours)

    if isinstance(obj, Planet):
        click.echo(f"{obj.symbol} {obj.name}")
        if obj.distance:
            click.echo(f"  Distance: {obj.distance}")
        click.echo(f"  Naked eye: {'yes' if obj.visible_to_naked_eye else 'no'}")
        for fact in obj.facts:
            click.echo(f"  - {fact}")
        pos = position_of(obj.id, clock.now(), location.latitude, location.longitude)
    else:
        click.echo(f"{obj.name} ({obj.latin_name})")
        if obj.mythology:
            click.echo(f"  {obj.mythology}")
        names = ", ".join(star.name for star in obj.stars if star.name)
        if names:
            click.echo(f"  Stars: {names}")
        pos = position_of(obj.center, clock.now(), location.latitude, location.longitude)

    marker = "above" if pos.above_horizon else "below"
    click.echo(f"  Now: Alt {pos.altitude:.1f}° Az {pos.azimuth:.1f}° ({marker} the horizon)")


@main.command()
@click.option("--days", type=float, default=None, help="Only events within this many days")
@click.option("--limit", type=int, default=None, help="Maximum number of events")
@click.option("--offset-hours", type=float, default=0.0, help="Time offset from now in hours")
@click.option("--from", "start", type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M"]),
              default=None, help="Search from this UTC date instead of now")
@click.option("--all", "show_all", is_flag=True, help="List the whole calendar, past events too")
def events(days: Optional[float], limit: Optional[int], offset_hours: float,
           start: Optional[datetime], show_all: bool):
    """
    List upcoming sky events.
    """
    if show_all:
        selected = sorted(SKY_EVENTS, key=lambda event: event.date)
    else:
        now = start if start is not None else TimeContext(offset_hours).now()
        selected = upcoming_events(now, within_days=days, limit=limit)

    if not selected:
        click.echo("No upcoming sky events")
        return

    for event in selected:
        click.echo(f"{event.date.strftime('%Y-%m-%d %H:%M UTC')}  [{event.type.value}] {event.title}")
        click.echo(f"    {event.description}")


@main.command("set-location")
@click.argument("latitude", type=float)
@click.argument("longitude", type=float)
@click.option("--file", "location_file", type=click.Path(path_type=Path), default=None,
              help="Location file (default ~/.skyar/location.json)")
def set_location(latitude: float, longitude: float, location_file: Optional[Path]):
    """
    Save the last-known observer location.
    """
    if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
        click.echo(click.style("✗ Latitude must be in [-90, 90], longitude in [-180, 180]", fg="red"))
        sys.exit(1)

    store = LocationStore(location_file) if location_file else LocationStore()
    store.save(ObserverLocation(latitude=latitude, longitude=longitude))
    click.echo(f"Saved location to {store.path}")


@main.command("init-config")
@click.argument("output_path", type=click.Path(path_type=Path))
def init_config(output_path: Path):
    """
    Create a default configuration file.
    """
    cfg = Config()
    cfg.to_yaml(output_path)
    click.echo(f"Created configuration file: {output_path}")


@main.command()
@config_option
@click.option("--port", type=str, default=None, help="Flight controller serial port")
@click.option("--baud", type=int, default=None, help="Serial baud rate")
@click.option("--width", type=int, default=1280, help="Viewport width")
@click.option("--height", type=int, default=720, help="Viewport height")
@click.option("--duration", type=float, default=None, help="Stop after this many seconds")
@verbose_option
def live(config: Optional[Path], port: Optional[str], baud: Optional[int],
         width: int, height: int, duration: Optional[float], verbose: bool):
    """
    Follow a MAVLink flight controller and print the visible objects each second.
    """
    cfg = _load_config(config, verbose)

    source = MavlinkAttitudeSource(
        port=port or cfg.mavlink.port,
        baudrate=baud or cfg.mavlink.baudrate,
        rate_hz=cfg.mavlink.rate_hz,
        offsets=MountingOffsets(roll=cfg.mavlink.roll_offset,
                                pitch=cfg.mavlink.pitch_offset,
                                yaw=cfg.mavlink.yaw_offset),
    )
    if not source.connect():
        click.echo(click.style("✗ Flight controller not available", fg="red"))
        sys.exit(1)

    start = time.time()
    try:
        with create_session(cfg, sources=[source]) as session:
            click.echo("Press Ctrl+C to stop")
            while duration is None or time.time() - start < duration:
                heading, pitch, manual = session.current_orientation()
                frame = session.frame(width, height)
                names = ", ".join(obj.name for obj in frame.visible_objects) or "-"
                mode = "MANUAL" if manual else ("TRUE NORTH" if session.estimator.is_absolute
                                                else "RELATIVE")
                click.echo(f"[{mode}] Heading {heading:6.1f}° Pitch {pitch:6.1f}°  In view: {names}")
                time.sleep(1.0)
    except KeyboardInterrupt:
        click.echo("\nStopping...")
    finally:
        source.close()


if __name__ == "__main__":
    main()
