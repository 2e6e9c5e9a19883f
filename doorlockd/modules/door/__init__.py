"""
Door Module - Black Box Interface

Purpose: Hold the physical lock state and drive the actuator
Interface: state(), lock(), unlock(), create_door()
Hidden: Serial protocol, device handling

Any actuator can be plugged in as long as it implements the Door protocol.
"""

from .door import Door, DoorState, SerialDoor, SimulatedDoor, create_door

__all__ = ["Door", "DoorState", "SerialDoor", "SimulatedDoor", "create_door"]
