"""SmartHub: drives discovery, status seeding and monitoring over a transport.

Usage::

    hub = SmartHub(HTTPConnection(url), address=0x0EF0)
    hub.run()   # returns when the transport has no more data

The transport is any object with ``exchange(data: bytes) -> bytes``: it
sends a batch of framed packets (possibly empty) and returns the next
received batch. It raises :class:`~smarthub_mcp.errors.TransportClosed`
when the run is over and :class:`~smarthub_mcp.errors.TransportError` on
failure.
"""

from __future__ import annotations

import logging

from ..errors import TransportClosed
from ..models.device import Device
from ..protocol.commands import build_getstatus, build_whoishere
from ..protocol.constants import UNPOLLED_TYPES, Command
from ..protocol.framing import Packet, decode_stream, frame, frame_all
from ..protocol.payload import Payload
from .collector import COLLECTION_WINDOW, VirtualClock, collect_responses, tick_timestamp
from .protocol import handle_packet, process_batch, seed_status
from .state import DEFAULT_HUB_NAME, HubState

logger = logging.getLogger(__name__)


class SmartHub:
    """One hub run against one transport."""

    def __init__(
        self,
        transport,
        address: int,
        name: str = DEFAULT_HUB_NAME,
        window: int = COLLECTION_WINDOW,
    ) -> None:
        self._transport = transport
        self._window = window
        self.state = HubState.create(address, name)
        self.clock = VirtualClock()
        self._outbox: list[Payload] = []

    @property
    def devices(self) -> list[Device]:
        """Every registered device except the hub itself."""
        return [d for d in self.state.registry if d.address != self.state.address]

    @property
    def pending(self) -> list[Payload]:
        return list(self._outbox)

    def _drain(self) -> list[Payload]:
        out, self._outbox = self._outbox, []
        return out

    def discover(self) -> list[Device]:
        """Broadcast WHOISHERE and register everyone who answers in the window."""
        whoishere = build_whoishere(self.state.address, self.state.next_serial(), self.state.name)
        request = frame_all(self._drain()) + frame(whoishere)

        self.state.discovering = True
        try:
            responses = collect_responses(self._transport, request, self.clock, self._window)
            self._outbox += process_batch(self.state, responses)
        finally:
            self.state.discovering = False

        logger.info("Discovered %d devices", len(self.devices))
        return self.devices

    def seed_statuses(self) -> dict[int, int]:
        """Poll every pollable device once and record the answers.

        Returns:
            The status table after seeding.
        """
        polls = [
            build_getstatus(
                self.state.address, device.address, self.state.next_serial(),
                device.device_type,
            )
            for device in self.devices
            if device.device_type not in UNPOLLED_TYPES
        ]
        if not polls:
            return self.state.statuses.as_dict()

        request = frame_all(self._drain() + polls)
        responses = collect_responses(self._transport, request, self.clock, self._window)
        for packet in responses:
            if packet.payload.command == Command.STATUS:
                seed_status(self.state, packet)
            else:
                self._outbox += handle_packet(self.state, packet)
        self.state.flush_topology()

        logger.info("Seeded %d statuses", len(self.state.statuses.as_dict()))
        return self.state.statuses.as_dict()

    def poll(self) -> list[Packet]:
        """One round-trip: send what is pending, apply what comes back.

        Returns:
            The packets received in this round-trip.
        """
        request = frame_all(self._drain())
        packets = decode_stream(self._transport.exchange(request))
        for packet in packets:
            timestamp = tick_timestamp(packet)
            if timestamp is not None:
                self.clock.observe(timestamp)
        self._outbox += process_batch(self.state, packets)
        return packets

    def run(self, max_polls: int | None = None) -> None:
        """Discover, seed statuses, then monitor until the transport closes.

        Args:
            max_polls: Stop after this many monitoring round-trips.

        Raises:
            TransportError: On any transport failure other than a clean close.
        """
        try:
            self.discover()
            self.seed_statuses()
            polls = 0
            while max_polls is None or polls < max_polls:
                self.poll()
                polls += 1
        except TransportClosed:
            logger.info("Transport closed, hub run finished")
