"""MCP server entry point for the smart-home hub.

Exposes discovery, monitoring and the hub's registry as tools and
resources via the Model Context Protocol, using the official Python MCP
SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .errors import SmartHubError, TransportClosed
from .hub.controller import SmartHub
from .hub.state import DEFAULT_HUB_NAME
from .transport.http_connection import READ_TIMEOUT, HTTPConnection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "smarthub",
    instructions="MCP server acting as the hub of a smart-home device network",
)

# Global connection state
_connection: HTTPConnection | None = None
_hub: SmartHub | None = None


def _get_hub() -> SmartHub:
    """Get the active hub, raising if not connected."""
    if _hub is None or _connection is None or not _connection.connected:
        raise RuntimeError("Not connected to a network. Use the 'connect' tool first.")
    return _hub


def _parse_address(address: str) -> int:
    """Parse a hub address given in hex, with or without a 0x prefix."""
    try:
        return int(address, 16)
    except ValueError as e:
        raise ValueError(f"Hub address must be hexadecimal, got {address!r}") from e


def _statuses(hub: SmartHub) -> dict[str, Any]:
    state = hub.state
    result: dict[str, Any] = {}
    for address, value in state.statuses.as_dict().items():
        device = state.registry.get(address)
        result[device.name if device else f"0x{address:04X}"] = value
    for address, values in state.sensor_readings.items():
        device = state.registry.get(address)
        result[device.name if device else f"0x{address:04X}"] = list(values)
    return result


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    url: str, address: str, name: str = DEFAULT_HUB_NAME, timeout: float = READ_TIMEOUT
) -> dict[str, Any]:
    """Attach the hub to a smart-home network server.

    Args:
        url: Network server URL the hub POSTs its packets to.
        address: Hub address in hex (0001-3FFE).
        name: Name the hub announces in WHOISHERE/IAMHERE.
        timeout: Per round-trip timeout in seconds.
    """
    global _connection, _hub
    if _connection is not None and _connection.connected:
        return {"connected": True, "message": "Already connected", "url": _connection.url}

    hub_address = _parse_address(address)
    connection = HTTPConnection(url, timeout=timeout)
    # SmartHub validates the address; nothing is opened until it succeeds
    hub = SmartHub(connection, hub_address, name=name)
    connection.open()
    _connection, _hub = connection, hub
    return {"connected": True, "url": url, "address": f"0x{hub_address:04X}", "name": name}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Detach from the network server and forget the hub state."""
    global _connection, _hub
    if _connection is not None:
        _connection.close()
    _connection = None
    _hub = None
    return {"disconnected": True}


# ─── HUB TOOLS ────────────────────────────────────────────────────────

@mcp.tool()
def discover() -> dict[str, Any]:
    """Broadcast WHOISHERE, register every answering device, then poll
    each pollable device once to seed the status table."""
    hub = _get_hub()
    try:
        devices = hub.discover()
        hub.seed_statuses()
    except TransportClosed:
        return {"error": "Network has no more data", "devices": [d.to_dict() for d in hub.devices]}
    except SmartHubError as e:
        return {"error": str(e)}
    return {
        "devices": [d.to_dict() for d in devices],
        "topology": hub.state.topology_by_name(),
        "statuses": _statuses(hub),
    }


@mcp.tool()
def poll(rounds: int = 1) -> dict[str, Any]:
    """Run monitoring round-trips: send pending packets, apply received ones.

    Switch status changes are forwarded to the Lamps and Sockets they
    control on the following round-trip.

    Args:
        rounds: Number of round-trips (1-100).
    """
    if not 1 <= rounds <= 100:
        return {"error": "Rounds must be 1-100"}
    hub = _get_hub()
    received = 0
    finished = False
    try:
        for _ in range(rounds):
            received += len(hub.poll())
    except TransportClosed:
        finished = True
    except SmartHubError as e:
        return {"error": str(e), "received": received}
    return {
        "received": received,
        "finished": finished,
        "pending": len(hub.pending),
        "virtual_time": hub.clock.now,
        "statuses": _statuses(hub),
    }


@mcp.tool()
def refresh_statuses() -> dict[str, Any]:
    """Send GETSTATUS to every pollable device and record the answers."""
    hub = _get_hub()
    try:
        hub.seed_statuses()
    except SmartHubError as e:
        return {"error": str(e)}
    return {"statuses": _statuses(hub)}


@mcp.tool()
def list_devices() -> dict[str, Any]:
    """List registered devices with type, address, serial and slave names."""
    hub = _get_hub()
    return {"devices": [d.to_dict() for d in hub.devices]}


@mcp.tool()
def get_topology() -> dict[str, Any]:
    """Show which Switch/EnvSensor controls which devices, by name."""
    hub = _get_hub()
    return {"topology": hub.state.topology_by_name()}


@mcp.tool()
def get_statuses() -> dict[str, Any]:
    """Show the last-known status of every device that reported one."""
    hub = _get_hub()
    return {"statuses": _statuses(hub)}


# ─── RESOURCES ────────────────────────────────────────────────────────

@mcp.resource("smarthub://devices")
def resource_devices() -> str:
    """Registered devices as JSON."""
    if _hub is None:
        return json.dumps({"connected": False})
    return json.dumps([d.to_dict() for d in _hub.devices], indent=2)


@mcp.resource("smarthub://topology")
def resource_topology() -> str:
    """Master/slave topology as JSON."""
    if _hub is None:
        return json.dumps({"connected": False})
    return json.dumps(_hub.state.topology_by_name(), indent=2)


@mcp.resource("smarthub://statuses")
def resource_statuses() -> str:
    """Status table as JSON."""
    if _hub is None:
        return json.dumps({"connected": False})
    return json.dumps(_statuses(_hub), indent=2)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
