"""Packet framing and stream splitting.

Packet layout::

    +--------+---------------------+--------+
    | Length |       Payload       | CRC-8  |
    | 1 byte |   ``Length`` bytes  | 1 byte |
    +--------+---------------------+--------+

- Length: byte count of the encoded payload (so at most 255)
- CRC-8: checksum of the encoded payload bytes, see :mod:`..utils.crc`

Batches on the wire are packets concatenated back to back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import (
    ChecksumMismatch,
    CodecError,
    MalformedPayload,
    PayloadTooLarge,
    TruncatedStream,
)
from ..utils.crc import crc8
from .payload import Payload, decode_payload, encode_payload

logger = logging.getLogger(__name__)

MAX_PAYLOAD_SIZE = 255
FRAME_OVERHEAD = 2  # length byte + checksum byte


@dataclass(frozen=True)
class Packet:
    """A parsed protocol packet."""

    length: int
    payload: Payload
    checksum: int

    @classmethod
    def from_payload(cls, payload: Payload) -> Packet:
        encoded = encode_payload(payload)
        return cls(length=len(encoded), payload=payload, checksum=crc8(encoded))

    def to_bytes(self) -> bytes:
        return frame(self.payload)


def frame(payload: Payload) -> bytes:
    """Encode a payload and wrap it with its length and checksum.

    Raises:
        PayloadTooLarge: If the encoded payload exceeds 255 bytes.
    """
    encoded = encode_payload(payload)
    if len(encoded) > MAX_PAYLOAD_SIZE:
        raise PayloadTooLarge(
            f"Encoded payload is {len(encoded)} bytes, "
            f"the length field holds at most {MAX_PAYLOAD_SIZE}"
        )
    return bytes([len(encoded)]) + encoded + bytes([crc8(encoded)])


def frame_all(payloads: list[Payload]) -> bytes:
    """Frame several payloads into one back-to-back batch."""
    return b"".join(frame(payload) for payload in payloads)


def unframe(data: bytes) -> Packet:
    """Parse exactly one framed packet.

    The checksum is verified before the payload is decoded, so a corrupted
    packet always fails with :class:`ChecksumMismatch`.

    Raises:
        TruncatedStream: If ``data`` is shorter than its declared length.
        MalformedPayload: If bytes follow the checksum, or the payload
            cannot be decoded.
        ChecksumMismatch: If the checksum does not match.
    """
    if not data:
        raise TruncatedStream("Packet has no length byte")

    length = data[0]
    size = length + FRAME_OVERHEAD
    if len(data) < size:
        raise TruncatedStream(
            f"Packet declares {length} payload bytes but only "
            f"{len(data) - FRAME_OVERHEAD} are present"
        )
    if len(data) > size:
        raise MalformedPayload(
            f"{len(data) - size} unexpected bytes after the packet checksum"
        )

    encoded = data[1 : 1 + length]
    checksum = data[1 + length]
    actual = crc8(encoded)
    if actual != checksum:
        raise ChecksumMismatch(expected=checksum, actual=actual)

    return Packet(length=length, payload=decode_payload(encoded), checksum=checksum)


def split_stream(data: bytes) -> list[bytes]:
    """Split a batch of back-to-back packets into one slice per packet.

    Only the length bytes are read; payloads are not validated here.

    Raises:
        TruncatedStream: If the batch ends inside a packet. The exception's
            ``packets`` holds the complete slices found before the break.
    """
    packets: list[bytes] = []
    offset = 0
    while offset < len(data):
        size = data[offset] + FRAME_OVERHEAD
        if offset + size > len(data):
            raise TruncatedStream(
                f"Stream ends {offset + size - len(data)} bytes short of the "
                f"packet at offset {offset}",
                packets,
            )
        packets.append(bytes(data[offset : offset + size]))
        offset += size
    return packets


def decode_stream(data: bytes) -> list[Packet]:
    """Decode a received batch, dropping packets that fail to decode.

    A bad packet does not affect its neighbours: only the length byte is
    needed to find the next one.

    Raises:
        TruncatedStream: If ``data`` is empty (not even a length byte).
    """
    if not data:
        raise TruncatedStream("Received batch has no length byte")

    try:
        slices = split_stream(data)
    except TruncatedStream as e:
        logger.warning("Dropping truncated tail of batch: %s", e)
        slices = e.packets

    packets: list[Packet] = []
    for raw in slices:
        try:
            packets.append(unframe(raw))
        except CodecError as e:
            logger.warning("Dropping packet %s: %s", raw.hex(" "), e)
    return packets
