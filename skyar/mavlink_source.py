#!/usr/bin/env python3
"""
MAVLink orientation source.

Reads ATTITUDE messages from an ArduPilot flight controller (e.g. Orange
Cube) rigidly mounted to the camera and publishes them as absolute
RawOrientationEvents. The flight controller's EKF yaw is magnetometer
referenced, so these events take the absolute-heading lock.

Axis mapping (camera looks along the vehicle's forward axis):
    heading = yaw (deg, wrapped to 0..360) + yaw offset
    pitch   = MAVLink pitch (0 = level) + 90 + pitch offset
    roll    = MAVLink roll + roll offset
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Optional

from pymavlink import mavutil

from .angles import normalize360
from .orientation import RawOrientationEvent
from .sources import EventSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MountingOffsets:
    """Camera-IMU misalignment in degrees."""
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0


def attitude_to_event(msg, offsets: MountingOffsets = MountingOffsets()) -> RawOrientationEvent:
    """
    Convert a MAVLink ATTITUDE message (radians) to a raw orientation event.
    """
    yaw = math.degrees(msg.yaw) + offsets.yaw
    return RawOrientationEvent(
        heading=normalize360(yaw),
        pitch=math.degrees(msg.pitch) + 90.0 + offsets.pitch,
        roll=math.degrees(msg.roll) + offsets.roll,
        absolute=True,
    )


class MavlinkAttitudeSource(EventSource):
    """
    Orange Cube attitude reader via MAVLink.

    The background read loop runs only while there are subscribers.
    """

    name = "mavlink"

    def __init__(self, port: str = "COM6", baudrate: int = 115200,
                 rate_hz: int = 50, offsets: MountingOffsets = MountingOffsets()):
        """
        Args:
            port: Serial port (e.g., "COM6" on Windows, "/dev/ttyACM0" on Linux)
            baudrate: Baud rate (typically 115200)
            rate_hz: Requested ATTITUDE stream rate
            offsets: Mounting offsets applied to every event
        """
        super().__init__()
        self.port = port
        self.baudrate = baudrate
        self.rate_hz = rate_hz
        self.offsets = offsets
        self._connection = None
        self._running = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_update = 0.0

    @property
    def is_receiving(self) -> bool:
        """True if an ATTITUDE message arrived within the last second."""
        return (time.time() - self._last_update) < 1.0

    def connect(self, heartbeat_timeout: float = 10.0) -> bool:
        """
        Connect to the flight controller and request the attitude stream.

        Returns:
            True if connected successfully
        """
        connection_string = f"{self.port} @ {self.baudrate}"

        try:
            logger.info(f"Connecting to flight controller: {connection_string}")
            self._connection = mavutil.mavlink_connection(self.port, baud=self.baudrate)

            msg = self._connection.wait_heartbeat(timeout=heartbeat_timeout)
            if msg is None:
                logger.warning("No heartbeat received")
                self._connection.close()
                self._connection = None
                return False
            logger.info(f"Heartbeat received from system {self._connection.target_system}")

            self._connection.mav.request_data_stream_send(
                self._connection.target_system,
                self._connection.target_component,
                mavutil.mavlink.MAV_DATA_STREAM_EXTRA1,  # Attitude
                self.rate_hz,
                1    # Start
            )
            return True

        except Exception as e:
            logger.error(f"Failed to connect to {connection_string}: {e}")
            self._connection = None
            return False

    def on_first_subscriber(self):
        if self._connection is None:
            logger.warning("MAVLink source subscribed before connect(); no events will be produced")
            return
        self._running.set()
        self._thread = threading.Thread(target=self._read_loop, name="mavlink-attitude",
                                        daemon=True)
        self._thread.start()

    def on_last_unsubscribed(self):
        self._running.clear()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None

    def close(self):
        """Stop reading and release the serial link."""
        self.on_last_unsubscribed()
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def _read_loop(self):
        """Background thread for reading MAVLink messages."""
        while self._running.is_set() and self._connection is not None:
            try:
                msg = self._connection.recv_match(type="ATTITUDE", blocking=True, timeout=0.1)
            except Exception as e:
                if self._running.is_set():
                    logger.error(f"MAVLink read error: {e}")
                time.sleep(0.1)
                continue

            if msg is None:
                continue

            self._last_update = time.time()
            self.emit(attitude_to_event(msg, self.offsets))
