"""Unsigned LEB128 integers ("varuint").

Each byte carries 7 data bits, least significant group first; the high bit
is set on every byte except the last. A 64-bit value needs at most 10
bytes.
"""

from __future__ import annotations

from ..errors import MalformedVaruint

MASK_DATA = 0x7F
MASK_CONTINUE = 0x80
MAX_VALUE = (1 << 64) - 1
MAX_ENCODED_SIZE = 10


def encode_varuint(value: int) -> bytes:
    """Encode ``value`` in its minimal varuint form.

    Raises:
        ValueError: If ``value`` is negative or does not fit in 64 bits.
    """
    if not 0 <= value <= MAX_VALUE:
        raise ValueError(f"Varuint must be 0..2**64-1, got {value}")

    out = bytearray()
    while True:
        byte = value & MASK_DATA
        value >>= 7
        if value:
            out.append(byte | MASK_CONTINUE)
        else:
            out.append(byte)
            return bytes(out)


def decode_varuint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a varuint starting at ``data[offset]``.

    Returns:
        ``(value, consumed)`` where ``consumed`` counts the terminating byte.

    Raises:
        MalformedVaruint: On truncated input, more than 9 continuation bytes,
            a value above 64 bits, or a non-minimal encoding.
    """
    value = 0
    shift = 0
    index = offset
    while True:
        if index >= len(data):
            raise MalformedVaruint(
                f"Varuint at offset {offset} truncated after {index - offset} bytes"
            )
        byte = data[index]
        index += 1
        value |= (byte & MASK_DATA) << shift

        if not byte & MASK_CONTINUE:
            consumed = index - offset
            if byte == 0 and consumed > 1:
                raise MalformedVaruint(f"Non-minimal varuint at offset {offset}")
            if value > MAX_VALUE:
                raise MalformedVaruint(
                    f"Varuint at offset {offset} exceeds 64 bits"
                )
            return value, consumed

        shift += 7
        if index - offset >= MAX_ENCODED_SIZE:
            raise MalformedVaruint(
                f"Varuint at offset {offset} has more than "
                f"{MAX_ENCODED_SIZE - 1} continuation bytes"
            )
