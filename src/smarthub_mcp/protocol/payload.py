"""Payload: addressing header plus a typed command body.

Layout::

    +---------+---------+---------+-------------+---------+----------+
    |   src   |   dst   | serial  | device type | command |   body   |
    | varuint | varuint | varuint |   1 byte    | 1 byte  | variable |
    +---------+---------+---------+-------------+---------+----------+

- src / dst: 14-bit addresses, so 1 or 2 encoded bytes; 0x3FFF is broadcast
- serial: per-sender packet counter starting at 1
- body: shape chosen by ``(device type, command)``, see :mod:`.parser`
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import MalformedPayload
from .constants import (
    BROADCAST_ADDRESS,
    MAX_ADDRESS,
    Command,
    DeviceType,
    coerce_command,
    coerce_device_type,
)
from .parser import CommandBody, OpaqueBody, decode_body, encode_body
from .varuint import decode_varuint, encode_varuint

MAX_ADDRESS_SIZE = 2


@dataclass(frozen=True)
class Payload:
    """One addressed protocol message."""

    src: int
    dst: int
    serial: int
    device_type: DeviceType | int
    command: Command | int
    body: CommandBody

    @property
    def is_broadcast(self) -> bool:
        return self.dst == BROADCAST_ADDRESS

    @property
    def is_opaque(self) -> bool:
        return isinstance(self.body, OpaqueBody)

    def to_bytes(self) -> bytes:
        return encode_payload(self)

    @classmethod
    def from_bytes(cls, data: bytes) -> Payload:
        return decode_payload(data)

    def __repr__(self) -> str:
        dev = getattr(self.device_type, "name", self.device_type)
        cmd = getattr(self.command, "name", self.command)
        return (
            f"Payload(src=0x{self.src:04X}, dst=0x{self.dst:04X}, "
            f"serial={self.serial}, {dev}/{cmd}, body={self.body!r})"
        )


def _check_address(address: int, field: str) -> None:
    if not 0 <= address <= MAX_ADDRESS:
        raise ValueError(f"{field} must be a 14-bit address, got {address:#x}")


def encode_payload(payload: Payload) -> bytes:
    """Serialize a payload to its wire bytes.

    Raises:
        ValueError: If an address is out of range or the body does not
            match the ``(device type, command)`` pair.
    """
    _check_address(payload.src, "src")
    _check_address(payload.dst, "dst")
    if not 0 <= payload.device_type <= 255 or not 0 <= payload.command <= 255:
        raise ValueError("Device type and command must be single bytes")

    return (
        encode_varuint(payload.src)
        + encode_varuint(payload.dst)
        + encode_varuint(payload.serial)
        + bytes([payload.device_type, payload.command])
        + encode_body(payload.device_type, payload.command, payload.body)
    )


def _read_address(data: bytes, offset: int, field: str) -> tuple[int, int]:
    value, consumed = decode_varuint(data, offset)
    if consumed > MAX_ADDRESS_SIZE or value > MAX_ADDRESS:
        raise MalformedPayload(f"{field} {value:#x} is not a 14-bit address")
    return value, consumed


def decode_payload(data: bytes) -> Payload:
    """Parse wire bytes into a :class:`Payload`.

    Raises:
        MalformedVaruint: If a header varuint is malformed.
        MalformedPayload: If the header is truncated or the body does not
            fit its shape.
    """
    offset = 0
    src, consumed = _read_address(data, offset, "src")
    offset += consumed
    dst, consumed = _read_address(data, offset, "dst")
    offset += consumed
    serial, consumed = decode_varuint(data, offset)
    offset += consumed

    if len(data) < offset + 2:
        raise MalformedPayload(
            f"Payload of {len(data)} bytes ends before device type and command"
        )
    device_type = coerce_device_type(data[offset])
    command = coerce_command(data[offset + 1])
    body = decode_body(device_type, command, data[offset + 2 :])

    return Payload(
        src=src,
        dst=dst,
        serial=serial,
        device_type=device_type,
        command=command,
        body=body,
    )
