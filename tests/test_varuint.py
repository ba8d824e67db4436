"""Tests for the varuint (ULEB128) codec."""

import pytest

from smarthub_mcp.errors import MalformedVaruint
from smarthub_mcp.protocol.varuint import decode_varuint, encode_varuint


@pytest.mark.parametrize("value", [0, 1, 127, 128, 300, 16383, 2**63 - 1, 2**64 - 1])
def test_roundtrip(value):
    """Boundary values survive encode/decode and consume every byte."""
    encoded = encode_varuint(value)
    assert decode_varuint(encoded) == (value, len(encoded))


def test_zero_is_single_byte():
    assert encode_varuint(0) == b"\x00"


def test_known_encodings():
    assert encode_varuint(127) == b"\x7f"
    assert encode_varuint(128) == b"\x80\x01"
    assert encode_varuint(300) == b"\xac\x02"
    assert encode_varuint(0x3FFF) == b"\xff\x7f"


def test_max_value_uses_ten_bytes():
    encoded = encode_varuint(2**64 - 1)
    assert len(encoded) == 10
    assert encoded[-1] == 0x01


def test_decode_at_offset():
    """Decoding starts at the offset and stops after the terminating byte."""
    data = b"\x05\xac\x02\x07"
    assert decode_varuint(data, 1) == (300, 2)


def test_decode_real_timestamp():
    """Timestamp from a real TICK packet."""
    assert decode_varuint(bytes.fromhex("88d0abfa9331")) == (1688984021000, 6)


def test_encode_rejects_out_of_range():
    with pytest.raises(ValueError):
        encode_varuint(-1)
    with pytest.raises(ValueError):
        encode_varuint(2**64)


def test_decode_truncated():
    """Input ending on a continuation byte is malformed."""
    with pytest.raises(MalformedVaruint):
        decode_varuint(b"\x80\x80")
    with pytest.raises(MalformedVaruint):
        decode_varuint(b"")


def test_decode_too_many_continuation_bytes():
    """Ten continuation bytes exceed any 64-bit value."""
    with pytest.raises(MalformedVaruint):
        decode_varuint(b"\xff" * 10 + b"\x01")


def test_decode_overflow_in_last_group():
    """The tenth group may only carry the 64th bit."""
    with pytest.raises(MalformedVaruint):
        decode_varuint(b"\xff" * 9 + b"\x02")


def test_decode_non_minimal():
    """A trailing zero group is not a canonical encoding."""
    with pytest.raises(MalformedVaruint):
        decode_varuint(b"\x80\x00")
