"""Response collection bounded by the network's virtual clock.

The protocol carries no wall-clock time. Clock devices broadcast TICK
packets with a monotonically increasing timestamp, and the hub waits for
replies until :data:`COLLECTION_WINDOW` units of that time have passed
since the first TICK after its request.
"""

from __future__ import annotations

import logging

from ..protocol.constants import Command
from ..protocol.framing import Packet, decode_stream
from ..protocol.parser import TickBody

logger = logging.getLogger(__name__)

COLLECTION_WINDOW = 300


class VirtualClock:
    """Latest timestamp seen in a TICK; never moves backwards."""

    def __init__(self, now: int | None = None) -> None:
        self.now = now

    def observe(self, timestamp: int) -> None:
        if self.now is None or timestamp > self.now:
            self.now = timestamp

    def __repr__(self) -> str:
        return f"VirtualClock(now={self.now})"


def tick_timestamp(packet: Packet) -> int | None:
    """Return the timestamp of a TICK packet, or ``None`` for anything else."""
    payload = packet.payload
    if payload.command == Command.TICK and isinstance(payload.body, TickBody):
        return payload.body.timestamp
    return None


def collect_responses(
    transport,
    request: bytes,
    clock: VirtualClock,
    window: int = COLLECTION_WINDOW,
) -> list[Packet]:
    """Send ``request`` and gather every non-TICK packet within the window.

    Args:
        transport: Object with ``exchange(data: bytes) -> bytes``.
        request: Framed packets to send first; later polls send nothing.
        clock: Advanced by every TICK received.
        window: Virtual time units to keep collecting after the first TICK.

    Returns:
        Received packets in arrival order, TICKs excluded.

    Raises:
        TransportError: If the transport fails or closes mid-window.
        TruncatedStream: If the transport returns an empty batch.
    """
    responses: list[Packet] = []
    start: int | None = None
    data = request

    while True:
        for packet in decode_stream(transport.exchange(data)):
            timestamp = tick_timestamp(packet)
            if timestamp is None:
                responses.append(packet)
                continue
            clock.observe(timestamp)
            if start is None:
                start = timestamp
        data = b""

        if start is not None and clock.now - start >= window:
            logger.debug(
                "Window %d..%d closed with %d responses", start, clock.now, len(responses)
            )
            return responses
