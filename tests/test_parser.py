"""Tests for command body shapes and the (device type, command) dispatch table."""

import pytest

from smarthub_mcp.errors import MalformedPayload, MalformedVaruint, UnknownDeviceTypeOrCommand
from smarthub_mcp.protocol.constants import Command, DeviceType
from smarthub_mcp.protocol.parser import (
    BODY_TYPES,
    ByteBody,
    EmptyBody,
    EnvSensorPropsBody,
    FlagBody,
    NameBody,
    OpaqueBody,
    SensorValuesBody,
    SwitchPropsBody,
    TickBody,
    Trigger,
    decode_body,
    encode_body,
    encode_string,
)


def test_string_encoding():
    """Strings are a length byte followed by ASCII."""
    assert encode_string("HUB01") == b"\x05HUB01"
    assert encode_string("") == b"\x00"


def test_string_rejects_non_printable():
    with pytest.raises(ValueError):
        encode_string("tab\there")
    with pytest.raises(ValueError):
        encode_string("x" * 256)


def test_string_rejects_non_ascii():
    """Non-ASCII names are refused, not replaced with '?'."""
    with pytest.raises(ValueError, match="printable ASCII"):
        encode_string("HÜB")
    with pytest.raises(ValueError):
        NameBody("HÜB").to_bytes()


def test_name_body():
    body = decode_body(DeviceType.LAMP, Command.IAMHERE, b"\x05LAMP1")
    assert body == NameBody("LAMP1")


def test_switch_props_body():
    """Switch discovery: name, slave count, slave names."""
    data = b"\x03SW1\x02\x05LAMP1\x07SOCKET1"
    body = decode_body(DeviceType.SWITCH, Command.WHOISHERE, data)
    assert body == SwitchPropsBody("SW1", ("LAMP1", "SOCKET1"))
    assert body.slave_names == ["LAMP1", "SOCKET1"]
    assert body.to_bytes() == data


def test_switch_without_slaves():
    body = decode_body(DeviceType.SWITCH, Command.IAMHERE, b"\x03SW1\x00")
    assert body == SwitchPropsBody("SW1", ())


def test_switch_slave_list_longer_than_body():
    """A declared slave count the body cannot satisfy is malformed."""
    with pytest.raises(MalformedPayload):
        decode_body(DeviceType.SWITCH, Command.IAMHERE, b"\x03SW1\x02\x05LAMP1")


def test_switch_slave_name_longer_than_body():
    with pytest.raises(MalformedPayload):
        decode_body(DeviceType.SWITCH, Command.IAMHERE, b"\x03SW1\x01\x09LAMP1")


def test_envsensor_props_body():
    """EnvSensor discovery: name, sensor mask, trigger array."""
    body = EnvSensorPropsBody(
        "SENSOR01",
        0x0F,
        (Trigger(0x0C, 100, "OTHER1"), Trigger(0x0F, 1200, "OTHER2")),
    )
    data = body.to_bytes()
    assert data == (
        b"\x08SENSOR01\x0f\x02"
        b"\x0c\x64\x06OTHER1"
        b"\x0f\xb0\x09\x06OTHER2"
    )
    assert decode_body(DeviceType.ENVSENSOR, Command.IAMHERE, data) == body


def test_envsensor_slave_names_are_unique_trigger_targets():
    body = EnvSensorPropsBody(
        "S", 1, (Trigger(0, 1, "LAMP1"), Trigger(1, 2, "LAMP1"), Trigger(2, 3, "SOCKET1"))
    )
    assert body.slave_names == ["LAMP1", "SOCKET1"]


def test_envsensor_truncated_trigger():
    with pytest.raises((MalformedPayload, MalformedVaruint)):
        decode_body(DeviceType.ENVSENSOR, Command.IAMHERE, b"\x01S\x0f\x01\x0c\x80")


def test_sensor_values_body():
    """EnvSensor STATUS: value count then varuints."""
    data = b"\x03\x14\xac\x02\x00"
    body = decode_body(DeviceType.ENVSENSOR, Command.STATUS, data)
    assert body == SensorValuesBody((20, 300, 0))
    assert body.to_bytes() == data


def test_sensor_values_limit():
    with pytest.raises(MalformedPayload):
        decode_body(DeviceType.ENVSENSOR, Command.STATUS, b"\x05\x01\x02\x03\x04\x05")
    with pytest.raises(ValueError):
        SensorValuesBody((1, 2, 3, 4, 5)).to_bytes()


def test_flag_body():
    assert decode_body(DeviceType.SWITCH, Command.STATUS, b"\x01") == FlagBody(1)
    assert decode_body(DeviceType.LAMP, Command.SETSTATUS, b"\x00") == FlagBody(0)
    assert FlagBody(1).on
    assert not FlagBody(0).on


def test_flag_body_rejects_other_values():
    with pytest.raises(MalformedPayload):
        decode_body(DeviceType.SOCKET, Command.STATUS, b"\x02")


def test_flag_body_missing_byte():
    with pytest.raises(MalformedPayload):
        decode_body(DeviceType.LAMP, Command.STATUS, b"")


def test_hub_bodies():
    assert decode_body(DeviceType.SMARTHUB, Command.GETSTATUS, b"") == EmptyBody()
    assert decode_body(DeviceType.SMARTHUB, Command.SETSTATUS, b"\xfe") == ByteBody(0xFE)


def test_tick_body():
    body = decode_body(DeviceType.CLOCK, Command.TICK, bytes.fromhex("88d0abfa9331"))
    assert body == TickBody(1688984021000)


def test_trailing_bytes_rejected():
    """Every known shape must consume the whole body."""
    with pytest.raises(MalformedPayload):
        decode_body(DeviceType.SMARTHUB, Command.GETSTATUS, b"\x00")
    with pytest.raises(MalformedPayload):
        decode_body(DeviceType.LAMP, Command.IAMHERE, b"\x01L\x00")


def test_unknown_pair_is_opaque():
    """Unknown combinations degrade to raw bytes instead of raising."""
    body = decode_body(DeviceType.CLOCK, Command.STATUS, b"\x01\x02")
    assert body == OpaqueBody(b"\x01\x02")
    assert body.reason is UnknownDeviceTypeOrCommand
    assert decode_body(0x09, 0x01, b"\xff") == OpaqueBody(b"\xff")
    assert decode_body(DeviceType.LAMP, 0x42, b"") == OpaqueBody(b"")


def test_table_covers_every_polled_device():
    """The hub polls every type except SmartHub and Clock with an empty body."""
    for device_type in (DeviceType.ENVSENSOR, DeviceType.SWITCH, DeviceType.LAMP, DeviceType.SOCKET):
        assert BODY_TYPES[(device_type, Command.GETSTATUS)] is EmptyBody


def test_encode_body_checks_shape():
    assert encode_body(DeviceType.LAMP, Command.SETSTATUS, FlagBody(1)) == b"\x01"
    with pytest.raises(ValueError):
        encode_body(DeviceType.LAMP, Command.SETSTATUS, ByteBody(1))
    with pytest.raises(ValueError):
        encode_body(DeviceType.LAMP, Command.STATUS, OpaqueBody(b"\x01"))
    assert encode_body(0x09, 0x09, OpaqueBody(b"\x01")) == b"\x01"


def test_opaque_repr():
    assert "01 02" in repr(OpaqueBody(b"\x01\x02"))
