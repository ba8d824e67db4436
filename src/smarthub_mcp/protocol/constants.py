"""Protocol constants: device types, commands and reserved addresses."""

from __future__ import annotations

from enum import IntEnum

ADDRESS_BITS = 14
MAX_ADDRESS = (1 << ADDRESS_BITS) - 1
BROADCAST_ADDRESS = 0x3FFF
RESERVED_ADDRESS = 0x0000


class DeviceType(IntEnum):
    """Device type codes carried in every payload."""

    SMARTHUB = 0x01
    ENVSENSOR = 0x02
    SWITCH = 0x03
    LAMP = 0x04
    SOCKET = 0x05
    CLOCK = 0x06


class Command(IntEnum):
    """Command codes carried in every payload."""

    WHOISHERE = 0x01
    IAMHERE = 0x02
    GETSTATUS = 0x03
    STATUS = 0x04
    SETSTATUS = 0x05
    TICK = 0x06


# Devices whose discovery payload names the devices they control
MASTER_TYPES = frozenset({DeviceType.SWITCH, DeviceType.ENVSENSOR})

# Devices the hub never polls with GETSTATUS
UNPOLLED_TYPES = frozenset({DeviceType.SMARTHUB, DeviceType.CLOCK})


def coerce_device_type(value: int) -> DeviceType | int:
    """Return the matching :class:`DeviceType`, or ``value`` if unknown."""
    try:
        return DeviceType(value)
    except ValueError:
        return value


def coerce_command(value: int) -> Command | int:
    """Return the matching :class:`Command`, or ``value`` if unknown."""
    try:
        return Command(value)
    except ValueError:
        return value
