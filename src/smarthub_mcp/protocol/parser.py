"""Command body codecs.

The shape of a payload body depends on ``(device type, command)``. Each
shape is a small frozen dataclass with ``to_bytes()`` and ``read()``;
:data:`BODY_TYPES` maps every known pair to its shape. Pairs that are not
in the table decode to :class:`OpaqueBody`.

Primitive encodings::

    string    = length:u8 | ascii[length]        (bytes 32..126 only)
    array<T>  = count:u8  | T[count]
    varuint   = see :mod:`.varuint`
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..errors import MalformedPayload, UnknownDeviceTypeOrCommand
from .constants import Command, DeviceType
from .varuint import decode_varuint, encode_varuint

MAX_SENSOR_VALUES = 4


class BodyReader:
    """Cursor over the bytes of one payload body."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def byte(self) -> int:
        if self.remaining < 1:
            raise MalformedPayload(f"Body truncated at offset {self._pos}")
        value = self._data[self._pos]
        self._pos += 1
        return value

    def varuint(self) -> int:
        value, consumed = decode_varuint(self._data, self._pos)
        self._pos += consumed
        return value

    def string(self) -> str:
        length = self.byte()
        if length > self.remaining:
            raise MalformedPayload(
                f"String of {length} bytes exceeds the {self.remaining} "
                f"bytes left in the body"
            )
        raw = self._data[self._pos : self._pos + length]
        self._pos += length
        if any(b < 32 or b > 126 for b in raw):
            raise MalformedPayload(f"Non-printable byte in string {raw!r}")
        return raw.decode("ascii")

    def rest(self) -> bytes:
        raw = self._data[self._pos :]
        self._pos = len(self._data)
        return raw


def encode_string(value: str) -> bytes:
    """Encode a protocol string (length byte + printable ASCII)."""
    try:
        raw = value.encode("ascii")
    except UnicodeEncodeError as e:
        raise ValueError(f"String must be printable ASCII, got {value!r}") from e
    if len(raw) > 255:
        raise ValueError(f"String must be at most 255 bytes, got {len(raw)}")
    if any(b < 32 or b > 126 for b in raw):
        raise ValueError(f"String must be printable ASCII, got {value!r}")
    return bytes([len(raw)]) + raw


def _encode_count(count: int, what: str) -> bytes:
    if count > 255:
        raise ValueError(f"At most 255 {what} fit in an array, got {count}")
    return bytes([count])


@dataclass(frozen=True)
class EmptyBody:
    """Body of GETSTATUS."""

    def to_bytes(self) -> bytes:
        return b""

    @classmethod
    def read(cls, reader: BodyReader) -> EmptyBody:
        return cls()


@dataclass(frozen=True)
class NameBody:
    """Discovery body of devices without properties: just the name."""

    name: str

    def to_bytes(self) -> bytes:
        return encode_string(self.name)

    @classmethod
    def read(cls, reader: BodyReader) -> NameBody:
        return cls(name=reader.string())


@dataclass(frozen=True)
class Trigger:
    """One EnvSensor trigger: ``op`` flags, threshold and target name."""

    op: int
    value: int
    name: str

    def to_bytes(self) -> bytes:
        if not 0 <= self.op <= 255:
            raise ValueError(f"Trigger op must be 0-255, got {self.op}")
        return bytes([self.op]) + encode_varuint(self.value) + encode_string(self.name)

    @classmethod
    def read(cls, reader: BodyReader) -> Trigger:
        op = reader.byte()
        value = reader.varuint()
        return cls(op=op, value=value, name=reader.string())


@dataclass(frozen=True)
class EnvSensorPropsBody:
    """Discovery body of an EnvSensor.

    ``sensors`` is the capability bitmask (temperature, humidity, light,
    air pollution from the low bit up).
    """

    name: str
    sensors: int
    triggers: tuple[Trigger, ...] = ()

    @property
    def slave_names(self) -> list[str]:
        names: list[str] = []
        for trigger in self.triggers:
            if trigger.name not in names:
                names.append(trigger.name)
        return names

    def to_bytes(self) -> bytes:
        if not 0 <= self.sensors <= 255:
            raise ValueError(f"Sensor mask must be 0-255, got {self.sensors}")
        out = encode_string(self.name) + bytes([self.sensors])
        out += _encode_count(len(self.triggers), "triggers")
        for trigger in self.triggers:
            out += trigger.to_bytes()
        return out

    @classmethod
    def read(cls, reader: BodyReader) -> EnvSensorPropsBody:
        name = reader.string()
        sensors = reader.byte()
        count = reader.byte()
        triggers = tuple(Trigger.read(reader) for _ in range(count))
        return cls(name=name, sensors=sensors, triggers=triggers)


@dataclass(frozen=True)
class SwitchPropsBody:
    """Discovery body of a Switch: its name and the names it controls."""

    name: str
    slaves: tuple[str, ...] = ()

    @property
    def slave_names(self) -> list[str]:
        return list(self.slaves)

    def to_bytes(self) -> bytes:
        out = encode_string(self.name) + _encode_count(len(self.slaves), "slaves")
        for slave in self.slaves:
            out += encode_string(slave)
        return out

    @classmethod
    def read(cls, reader: BodyReader) -> SwitchPropsBody:
        name = reader.string()
        count = reader.byte()
        slaves = tuple(reader.string() for _ in range(count))
        return cls(name=name, slaves=slaves)


@dataclass(frozen=True)
class SensorValuesBody:
    """STATUS body of an EnvSensor: one reading per enabled sensor."""

    values: tuple[int, ...] = ()

    def to_bytes(self) -> bytes:
        if len(self.values) > MAX_SENSOR_VALUES:
            raise ValueError(
                f"At most {MAX_SENSOR_VALUES} sensor values, got {len(self.values)}"
            )
        out = bytes([len(self.values)])
        for value in self.values:
            out += encode_varuint(value)
        return out

    @classmethod
    def read(cls, reader: BodyReader) -> SensorValuesBody:
        count = reader.byte()
        if count > MAX_SENSOR_VALUES:
            raise MalformedPayload(
                f"At most {MAX_SENSOR_VALUES} sensor values, got {count}"
            )
        return cls(values=tuple(reader.varuint() for _ in range(count)))


@dataclass(frozen=True)
class FlagBody:
    """On/off byte used by STATUS and SETSTATUS."""

    value: int

    @property
    def on(self) -> bool:
        return self.value == 1

    def to_bytes(self) -> bytes:
        if self.value not in (0, 1):
            raise ValueError(f"Status flag must be 0 or 1, got {self.value}")
        return bytes([self.value])

    @classmethod
    def read(cls, reader: BodyReader) -> FlagBody:
        value = reader.byte()
        if value not in (0, 1):
            raise MalformedPayload(f"Status flag must be 0 or 1, got {value}")
        return cls(value=value)


@dataclass(frozen=True)
class ByteBody:
    """A single raw byte (SETSTATUS addressed to a hub)."""

    value: int

    def to_bytes(self) -> bytes:
        if not 0 <= self.value <= 255:
            raise ValueError(f"Byte must be 0-255, got {self.value}")
        return bytes([self.value])

    @classmethod
    def read(cls, reader: BodyReader) -> ByteBody:
        return cls(value=reader.byte())


@dataclass(frozen=True)
class TickBody:
    """TICK body of a Clock: the current virtual timestamp."""

    timestamp: int

    def to_bytes(self) -> bytes:
        return encode_varuint(self.timestamp)

    @classmethod
    def read(cls, reader: BodyReader) -> TickBody:
        return cls(timestamp=reader.varuint())


@dataclass(frozen=True)
class OpaqueBody:
    """Raw bytes of a body whose ``(device type, command)`` is not known."""

    raw: bytes = b""
    reason: type[Exception] = UnknownDeviceTypeOrCommand

    def to_bytes(self) -> bytes:
        return self.raw

    def __repr__(self) -> str:
        return f"OpaqueBody(raw={self.raw.hex(' ') if self.raw else '(empty)'})"


CommandBody = Union[
    EmptyBody,
    NameBody,
    EnvSensorPropsBody,
    SwitchPropsBody,
    SensorValuesBody,
    FlagBody,
    ByteBody,
    TickBody,
    OpaqueBody,
]

BODY_TYPES: dict[tuple[DeviceType, Command], type] = {
    (DeviceType.SMARTHUB, Command.WHOISHERE): NameBody,
    (DeviceType.SMARTHUB, Command.IAMHERE): NameBody,
    (DeviceType.SMARTHUB, Command.GETSTATUS): EmptyBody,
    (DeviceType.SMARTHUB, Command.SETSTATUS): ByteBody,
    (DeviceType.ENVSENSOR, Command.WHOISHERE): EnvSensorPropsBody,
    (DeviceType.ENVSENSOR, Command.IAMHERE): EnvSensorPropsBody,
    (DeviceType.ENVSENSOR, Command.GETSTATUS): EmptyBody,
    (DeviceType.ENVSENSOR, Command.STATUS): SensorValuesBody,
    (DeviceType.SWITCH, Command.WHOISHERE): SwitchPropsBody,
    (DeviceType.SWITCH, Command.IAMHERE): SwitchPropsBody,
    (DeviceType.SWITCH, Command.GETSTATUS): EmptyBody,
    (DeviceType.SWITCH, Command.STATUS): FlagBody,
    (DeviceType.LAMP, Command.WHOISHERE): NameBody,
    (DeviceType.LAMP, Command.IAMHERE): NameBody,
    (DeviceType.LAMP, Command.GETSTATUS): EmptyBody,
    (DeviceType.LAMP, Command.STATUS): FlagBody,
    (DeviceType.LAMP, Command.SETSTATUS): FlagBody,
    (DeviceType.SOCKET, Command.WHOISHERE): NameBody,
    (DeviceType.SOCKET, Command.IAMHERE): NameBody,
    (DeviceType.SOCKET, Command.GETSTATUS): EmptyBody,
    (DeviceType.SOCKET, Command.STATUS): FlagBody,
    (DeviceType.SOCKET, Command.SETSTATUS): FlagBody,
    (DeviceType.CLOCK, Command.WHOISHERE): NameBody,
    (DeviceType.CLOCK, Command.IAMHERE): NameBody,
    (DeviceType.CLOCK, Command.TICK): TickBody,
}


def body_type_for(device_type: int, command: int) -> type | None:
    """Return the body class for a pair, or ``None`` if the pair is unknown."""
    return BODY_TYPES.get((device_type, command))


def decode_body(device_type: int, command: int, data: bytes) -> CommandBody:
    """Decode a command body according to :data:`BODY_TYPES`.

    Unknown pairs yield :class:`OpaqueBody` instead of raising.

    Raises:
        MalformedPayload: If the bytes do not exactly fill the expected shape.
        MalformedVaruint: If a varuint field inside the body is malformed.
    """
    body_cls = body_type_for(device_type, command)
    if body_cls is None:
        return OpaqueBody(raw=bytes(data))

    reader = BodyReader(data)
    body = body_cls.read(reader)
    if reader.remaining:
        raise MalformedPayload(
            f"{reader.remaining} trailing bytes after {body_cls.__name__}"
        )
    return body


def encode_body(device_type: int, command: int, body: CommandBody) -> bytes:
    """Encode ``body`` after checking it is the right shape for the pair."""
    body_cls = body_type_for(device_type, command)
    expected = OpaqueBody if body_cls is None else body_cls
    if not isinstance(body, expected):
        raise ValueError(
            f"{type(body).__name__} is not a valid body for "
            f"device type {device_type!r} / command {command!r}; "
            f"expected {expected.__name__}"
        )
    return body.to_bytes()
