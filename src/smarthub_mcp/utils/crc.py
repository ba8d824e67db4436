"""CRC-8 over the encoded payload of a packet.

Polynomial 0x1D, MSB first, zero initial value and no final XOR. The
table is generated once at import time.
"""

from __future__ import annotations

CRC8_POLYNOMIAL = 0x1D


def _make_table(polynomial: int) -> list[int]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            if crc & 0x80:
                crc = ((crc << 1) ^ polynomial) & 0xFF
            else:
                crc = (crc << 1) & 0xFF
        table.append(crc)
    return table


CRC8_TABLE = _make_table(CRC8_POLYNOMIAL)


def crc8(data: bytes) -> int:
    """Compute the 8-bit checksum of ``data``.

    Returns:
        An integer in ``0..255``.
    """
    crc = 0
    for byte in data:
        crc = CRC8_TABLE[crc ^ byte]
    return crc
