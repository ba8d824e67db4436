"""The hub's mutable state, owned by one hub run."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..models.device import Device
from ..models.registry import DeviceRegistry, StatusTable, resolve_slaves
from ..protocol.constants import (
    BROADCAST_ADDRESS,
    MAX_ADDRESS,
    RESERVED_ADDRESS,
    DeviceType,
)

DEFAULT_HUB_NAME = "HUB01"


@dataclass
class HubState:
    """Registry, topology graph, status table and the hub's own counter.

    ``hub.serial`` is the serial of the last packet the hub sent.
    ``pending_masters`` holds masters registered since the graph was last
    brought up to date; see :meth:`flush_topology`.
    """

    hub: Device
    registry: DeviceRegistry = field(default_factory=DeviceRegistry)
    graph: dict[int, list[int]] = field(default_factory=dict)
    statuses: StatusTable = field(default_factory=StatusTable)
    sensor_readings: dict[int, tuple[int, ...]] = field(default_factory=dict)
    pending_masters: list[int] = field(default_factory=list)
    discovering: bool = False

    @classmethod
    def create(cls, address: int, name: str = DEFAULT_HUB_NAME) -> HubState:
        if address in (RESERVED_ADDRESS, BROADCAST_ADDRESS) or not 0 < address <= MAX_ADDRESS:
            raise ValueError(f"Hub address must be 0x0001-0x3FFE, got {address:#x}")
        registry = DeviceRegistry()
        hub, _ = registry.upsert_device(address, DeviceType.SMARTHUB, name, 0)
        return cls(hub=hub, registry=registry)

    @property
    def address(self) -> int:
        return self.hub.address

    @property
    def name(self) -> str:
        return self.hub.name

    def next_serial(self) -> int:
        return self.hub.next_serial()

    def record_readings(self, address: int, values: tuple[int, ...]) -> bool:
        """Store EnvSensor readings; return whether they changed."""
        if self.sensor_readings.get(address) == values:
            return False
        self.sensor_readings[address] = values
        return True

    def flush_topology(self) -> None:
        """Resolve the edges of every master registered since the last flush.

        Each master is resolved once; slave names that are still unknown
        are dropped for the rest of the run.
        """
        for address in self.pending_masters:
            master = self.registry.get(address)
            if master is not None:
                self.graph[address] = resolve_slaves(self.registry, master)
        self.pending_masters.clear()

    def topology_by_name(self) -> dict[str, list[str]]:
        named: dict[str, list[str]] = {}
        for master_address, slave_addresses in self.graph.items():
            master = self.registry.get(master_address)
            if master is None:
                continue
            named[master.name] = [
                self.registry.get(a).name for a in slave_addresses if a in self.registry
            ]
        return named
