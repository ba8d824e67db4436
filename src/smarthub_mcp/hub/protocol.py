"""Hub protocol state machine.

:func:`handle_packet` applies one received packet to a :class:`HubState`
and returns the payloads the hub sends in reaction. Dispatch depends only
on the packet's command and the sender's device type:

- WHOISHERE: register the sender, broadcast IAMHERE
- IAMHERE: register the sender
- STATUS: record it; a changed Switch status becomes SETSTATUS to its slaves
- GETSTATUS, SETSTATUS, TICK: ignored (the hub sends these, never acts on them)
"""

from __future__ import annotations

import logging
from typing import Callable

from ..protocol.commands import build_getstatus, build_iamhere, build_setstatus
from ..protocol.constants import (
    RESERVED_ADDRESS,
    UNPOLLED_TYPES,
    Command,
    DeviceType,
)
from ..protocol.framing import Packet
from ..protocol.parser import FlagBody, SensorValuesBody
from ..protocol.payload import Payload
from .state import HubState

logger = logging.getLogger(__name__)

# Devices that accept SETSTATUS from a controlling Switch
SETTABLE_TYPES = frozenset({DeviceType.LAMP, DeviceType.SOCKET})


def _unicast(
    state: HubState, dst: int, build: Callable[[int, int], Payload]
) -> list[Payload]:
    """Build one payload to a registered device, or nothing.

    ``build`` receives ``(device_type, serial)``; the hub serial is only
    consumed when the payload is actually produced.
    """
    device = state.registry.get(dst)
    if dst == RESERVED_ADDRESS or device is None:
        logger.warning("Not sending to unregistered address 0x%04X", dst)
        return []
    return [build(device.device_type, state.next_serial())]


def _register(state: HubState, payload: Payload) -> bool:
    """Register the sender of a discovery payload; return True if new."""
    body = payload.body
    device, created = state.registry.upsert_device(
        payload.src, payload.device_type, body.name, payload.serial
    )
    if not created:
        return False

    logger.info("Discovered %r", device)
    if device.is_master:
        for name in body.slave_names:
            state.registry.add_slave_name(device.address, name)
        state.pending_masters.append(device.address)
    return True


def _on_whoishere(state: HubState, payload: Payload) -> list[Payload]:
    created = _register(state, payload)
    out = [build_iamhere(state.address, state.next_serial(), state.name)]

    # Late joiners get polled right away; during discovery the hub polls
    # everyone in one batch afterwards.
    if created and not state.discovering and payload.device_type not in UNPOLLED_TYPES:
        out += _unicast(
            state,
            payload.src,
            lambda dev_type, serial: build_getstatus(
                state.address, payload.src, serial, dev_type
            ),
        )
    return out


def _on_iamhere(state: HubState, payload: Payload) -> list[Payload]:
    _register(state, payload)
    return []


def _propagate(state: HubState, master: int, value: int) -> list[Payload]:
    out: list[Payload] = []
    for slave in state.graph.get(master, []):
        device = state.registry.get(slave)
        if device is not None and device.device_type not in SETTABLE_TYPES:
            logger.warning("Slave %r does not accept SETSTATUS, skipped", device)
            continue
        out += _unicast(
            state,
            slave,
            lambda dev_type, serial, slave=slave: build_setstatus(
                state.address, slave, serial, dev_type, value
            ),
        )
    return out


def _record(state: HubState, payload: Payload) -> bool:
    """Record a STATUS body; return whether the stored value changed."""
    body = payload.body
    if isinstance(body, SensorValuesBody):
        return state.record_readings(payload.src, body.values)
    if isinstance(body, FlagBody):
        return state.statuses.record_status(payload.src, body.value)
    return False


def _on_status(state: HubState, payload: Payload) -> list[Payload]:
    state.flush_topology()
    if not _record(state, payload):
        return []

    logger.debug("Status of 0x%04X changed: %r", payload.src, payload.body)
    if payload.device_type == DeviceType.SWITCH:
        return _propagate(state, payload.src, payload.body.value)
    # TODO: evaluate EnvSensor triggers against the new readings.
    return []


_HANDLERS: dict[Command, Callable[[HubState, Payload], list[Payload]]] = {
    Command.WHOISHERE: _on_whoishere,
    Command.IAMHERE: _on_iamhere,
    Command.STATUS: _on_status,
}


def _accept(state: HubState, payload: Payload) -> bool:
    if payload.src == RESERVED_ADDRESS:
        logger.warning("Ignoring packet from reserved address: %r", payload)
        return False
    if payload.src == state.address:
        logger.debug("Ignoring own packet: %r", payload)
        return False
    if payload.is_opaque:
        logger.debug("Ignoring unknown device type/command: %r", payload)
        return False
    return True


def handle_packet(state: HubState, packet: Packet) -> list[Payload]:
    """Apply one received packet and return the hub's outgoing payloads."""
    payload = packet.payload
    if not _accept(state, payload):
        return []

    sender = state.registry.get(payload.src)
    if sender is not None:
        sender.observe_serial(payload.serial)

    handler = _HANDLERS.get(payload.command)
    if handler is None:
        return []
    return handler(state, payload)


def process_batch(state: HubState, packets: list[Packet]) -> list[Payload]:
    """Apply packets in order, then resolve any newly registered masters."""
    out: list[Payload] = []
    for packet in packets:
        out += handle_packet(state, packet)
    state.flush_topology()
    return out


def seed_status(state: HubState, packet: Packet) -> None:
    """Record a polled STATUS as the initial value, without propagating."""
    payload = packet.payload
    if payload.command != Command.STATUS or not _accept(state, payload):
        return
    sender = state.registry.get(payload.src)
    if sender is not None:
        sender.observe_serial(payload.serial)
    _record(state, payload)
