"""High-level builders for the payloads a hub sends.

Every builder returns a :class:`~.payload.Payload`; frame it with
:func:`~.framing.frame` before sending.
"""

from __future__ import annotations

from .constants import (
    BROADCAST_ADDRESS,
    MAX_ADDRESS,
    RESERVED_ADDRESS,
    Command,
    DeviceType,
)
from .parser import ByteBody, CommandBody, EmptyBody, FlagBody, NameBody, TickBody
from .payload import Payload


def _check_unicast(dst: int) -> None:
    if dst in (RESERVED_ADDRESS, BROADCAST_ADDRESS) or not 0 < dst <= MAX_ADDRESS:
        raise ValueError(f"Destination must be a device address, got {dst:#x}")


def _check_serial(serial: int) -> None:
    if serial < 1:
        raise ValueError(f"Serial numbers start at 1, got {serial}")


def build_command(
    src: int,
    dst: int,
    serial: int,
    device_type: DeviceType,
    command: Command,
    body: CommandBody,
) -> Payload:
    """Build a payload for any ``(device type, command)`` pair."""
    _check_serial(serial)
    return Payload(
        src=src,
        dst=dst,
        serial=serial,
        device_type=device_type,
        command=command,
        body=body,
    )


def build_whoishere(src: int, serial: int, name: str) -> Payload:
    """Build the hub's broadcast discovery request."""
    return build_command(
        src, BROADCAST_ADDRESS, serial, DeviceType.SMARTHUB, Command.WHOISHERE,
        NameBody(name),
    )


def build_iamhere(src: int, serial: int, name: str) -> Payload:
    """Build the hub's broadcast reply to another device's WHOISHERE."""
    return build_command(
        src, BROADCAST_ADDRESS, serial, DeviceType.SMARTHUB, Command.IAMHERE,
        NameBody(name),
    )


def build_getstatus(
    src: int, dst: int, serial: int, device_type: DeviceType
) -> Payload:
    """Build a status poll for one device.

    Args:
        device_type: Type of the polled device; it selects the body shape
            the device will answer with.
    """
    _check_unicast(dst)
    if device_type in (DeviceType.SMARTHUB, DeviceType.CLOCK):
        raise ValueError(f"{device_type.name} devices are not polled")
    return build_command(src, dst, serial, device_type, Command.GETSTATUS, EmptyBody())


def build_setstatus(
    src: int, dst: int, serial: int, device_type: DeviceType, value: int
) -> Payload:
    """Build a SETSTATUS for a Lamp, a Socket or another hub.

    Args:
        value: 0 or 1 for Lamps and Sockets, any byte for a SmartHub.
    """
    _check_unicast(dst)
    if device_type in (DeviceType.LAMP, DeviceType.SOCKET):
        if value not in (0, 1):
            raise ValueError(f"Lamp/Socket status must be 0 or 1, got {value}")
        body: CommandBody = FlagBody(value)
    elif device_type == DeviceType.SMARTHUB:
        if not 0 <= value <= 255:
            raise ValueError(f"Status byte must be 0-255, got {value}")
        body = ByteBody(value)
    else:
        raise ValueError(f"{DeviceType(device_type).name} devices accept no SETSTATUS")
    return build_command(src, dst, serial, device_type, Command.SETSTATUS, body)


def build_tick(src: int, serial: int, timestamp: int) -> Payload:
    """Build a Clock's broadcast TICK."""
    return build_command(
        src, BROADCAST_ADDRESS, serial, DeviceType.CLOCK, Command.TICK,
        TickBody(timestamp),
    )
