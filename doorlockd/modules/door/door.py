"""
Door state machine and actuator adapters.

Mutators are fire-and-forget from the caller's point of view: they never
raise, and calling lock() or unlock() twice is safe. The actuator call is
always executed, even when the door is already in the requested state.
"""

import logging
import threading
from enum import Enum
from typing import List, Optional, Protocol

import serial

logger = logging.getLogger(__name__)


class DoorState(Enum):
    """Physical lock state."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"


class Door(Protocol):
    """Protocol for door actuators."""

    def state(self) -> DoorState:
        ...

    def lock(self) -> None:
        ...

    def unlock(self) -> None:
        ...


class SimulatedDoor:
    """In-memory door used for development and tests."""

    def __init__(self, initial_state: DoorState = DoorState.LOCKED):
        self._state = initial_state
        self.calls: List[str] = []

    def state(self) -> DoorState:
        return self._state

    def lock(self) -> None:
        self.calls.append("lock")
        self._state = DoorState.LOCKED
        logger.info("Simulated door locked")

    def unlock(self) -> None:
        self.calls.append("unlock")
        self._state = DoorState.UNLOCKED
        logger.info("Simulated door unlocked")


class SerialDoor:
    """
    Door actuator attached to a serial device.

    Each action is a single command byte written to the device. State is
    tracked locally since the actuator does not report it back.
    """

    def __init__(
        self,
        device: str,
        baudrate: int = 9600,
        lock_command: bytes = b"l",
        unlock_command: bytes = b"u",
        initial_state: DoorState = DoorState.LOCKED,
        port: Optional[serial.Serial] = None,
    ):
        """
        Initialize serial door.

        Args:
            device: Serial device path (e.g. /dev/ttyAMA0)
            baudrate: Line speed
            lock_command: Bytes sent to lock
            unlock_command: Bytes sent to unlock
            initial_state: Assumed state at startup
            port: Already opened port, mainly for testing
        """
        self.device = device
        self.lock_command = lock_command
        self.unlock_command = unlock_command
        self._state = initial_state
        self._port_lock = threading.Lock()
        self._port = port or serial.Serial(device, baudrate=baudrate, timeout=1)
        logger.info(f"Opened door actuator on {device} at {baudrate} baud")

    def state(self) -> DoorState:
        return self._state

    def lock(self) -> None:
        self._send(self.lock_command)
        self._state = DoorState.LOCKED

    def unlock(self) -> None:
        self._send(self.unlock_command)
        self._state = DoorState.UNLOCKED

    def close(self) -> None:
        """Close the serial port."""
        with self._port_lock:
            if self._port.is_open:
                self._port.close()

    def _send(self, command: bytes) -> None:
        with self._port_lock:
            try:
                self._port.write(command)
                self._port.flush()
            except serial.SerialException as e:
                logger.error(f"Failed to send {command!r} to {self.device}: {e}")


def create_door(config) -> Door:
    """
    Build the door actuator from configuration.

    Args:
        config: DoorConfig

    Returns:
        SerialDoor if a serial device is configured, SimulatedDoor otherwise
    """
    if config.serial_device:
        return SerialDoor(
            config.serial_device,
            baudrate=config.baudrate,
            lock_command=config.lock_command.encode(),
            unlock_command=config.unlock_command.encode(),
        )

    logger.warning("No serial device configured, using simulated door")
    return SimulatedDoor()
