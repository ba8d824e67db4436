"""Shared test helpers: a scripted transport and device-side packet builders."""

from __future__ import annotations

from smarthub_mcp.errors import TransportClosed
from smarthub_mcp.protocol.commands import build_command, build_tick
from smarthub_mcp.protocol.constants import BROADCAST_ADDRESS, Command, DeviceType
from smarthub_mcp.protocol.framing import Packet, frame, frame_all, split_stream, unframe
from smarthub_mcp.protocol.parser import (
    FlagBody,
    NameBody,
    SensorValuesBody,
    SwitchPropsBody,
)
from smarthub_mcp.protocol.payload import Payload

HUB = 0x0001
SW1 = 0x0002
LAMP1 = 0x0003
SOCKET1 = 0x0004
SENSOR1 = 0x0005
CLOCK = 0x0333


class ScriptedTransport:
    """Replays scripted batches and records every request the hub sent.

    Each scripted batch is a list of payloads, raw bytes, or an exception
    to raise. Once the script runs out the transport reports a clean close.
    """

    def __init__(self, batches):
        self.batches = list(batches)
        self.sent: list[bytes] = []

    def exchange(self, data: bytes) -> bytes:
        self.sent.append(data)
        if not self.batches:
            raise TransportClosed("script exhausted")
        batch = self.batches.pop(0)
        if isinstance(batch, Exception):
            raise batch
        if isinstance(batch, bytes):
            return batch
        return frame_all(batch)

    def sent_payloads(self, index: int) -> list[Payload]:
        return [unframe(raw).payload for raw in split_stream(self.sent[index])]


def packet(payload: Payload) -> Packet:
    """Frame and parse a payload, as if it had arrived over the wire."""
    return unframe(frame(payload))


def tick(timestamp: int, serial: int = 1) -> Payload:
    return build_tick(CLOCK, serial, timestamp)


def discovery(
    src: int,
    device_type: DeviceType,
    name: str,
    serial: int = 1,
    command: Command = Command.IAMHERE,
) -> Payload:
    """IAMHERE (or WHOISHERE) of a device without properties."""
    return build_command(src, BROADCAST_ADDRESS, serial, device_type, command, NameBody(name))


def switch_discovery(
    src: int,
    name: str,
    slaves: list[str],
    serial: int = 1,
    command: Command = Command.IAMHERE,
) -> Payload:
    return build_command(
        src, BROADCAST_ADDRESS, serial, DeviceType.SWITCH, command,
        SwitchPropsBody(name, tuple(slaves)),
    )


def status(src: int, device_type: DeviceType, value: int, serial: int = 2) -> Payload:
    return build_command(src, HUB, serial, device_type, Command.STATUS, FlagBody(value))


def sensor_status(src: int, values: tuple[int, ...], serial: int = 2) -> Payload:
    return build_command(
        src, HUB, serial, DeviceType.ENVSENSOR, Command.STATUS, SensorValuesBody(values)
    )
